"""Run-state bookkeeping and pairing cost functions.

Lower scores are better; 0 is ideal and there is no upper bound. A small
random jitter is added last so exact ties break differently run to run
(and identically under a fixed seed).
"""

import random
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from courtmatch.models import pair_key

NEVER_PLAYED = -999


@dataclass(frozen=True)
class DoublesWeights:
    partner: float = 30.0         # squared partner repeats
    opponent: float = 12.0        # squared opponent repeats
    recent_partner: float = 60.0
    recent_opponent: float = 22.0
    fairness: float = 16.0        # projected games-played spread
    rating: float = 6.0           # team average rating gap
    gap_1: float = 120.0          # played last round
    gap_2: float = 45.0           # played two rounds ago
    pace: float = 18.0
    pace_tolerance: float = 0.6
    jitter: float = 0.01


@dataclass(frozen=True)
class SinglesWeights:
    fairness: float = 50.0
    load: float = 8.0             # games already played by the pair
    opponent: float = 30.0
    gap_1: float = 60.0
    gap_2: float = 20.0
    rating: float = 5.0
    default_rating: float = 2.0
    jitter: float = 2.0


@dataclass(frozen=True)
class MixedWeights:
    partner: float = 200.0        # flat, per repeated team
    opponent: float = 25.0        # flat, per repeated cross pair
    game_count: float = 2.0
    rating: float = 12.0
    default_rating: float = 3.0
    jitter: float = 0.01


DOUBLES_WEIGHTS = DoublesWeights()
SINGLES_WEIGHTS = SinglesWeights()
MIXED_WEIGHTS = MixedWeights()


class RunState:
    """Per-call history: games played, partner/opponent counts, recency.

    Created fresh for every generation call and discarded afterwards.
    """

    def __init__(self, players: list[str]):
        self.games: dict[str, int] = {p: 0 for p in players}
        self.partner_counts: dict[tuple[str, str], int] = {}
        self.opponent_counts: dict[tuple[str, str], int] = {}
        self.last_partner: dict[str, Optional[str]] = {p: None for p in players}
        self.last_opponents: dict[str, set[str]] = {p: set() for p in players}
        self.last_round: dict[str, int] = {p: NEVER_PLAYED for p in players}
        self._histogram: Counter = Counter({0: len(players)})

    def partners(self, a: str, b: str) -> int:
        return self.partner_counts.get(pair_key(a, b), 0)

    def opponents(self, a: str, b: str) -> int:
        return self.opponent_counts.get(pair_key(a, b), 0)

    def rounds_since(self, player: str, round_no: int) -> int:
        return round_no - self.last_round[player]

    def projected_spread(self, selected: list[str]) -> int:
        """Games-played spread over everyone if selected each play once more."""
        bumped = Counter(self.games[p] for p in selected)
        lo = hi = None
        for count, num in self._histogram.items():
            if num - bumped.get(count, 0) > 0:
                lo = count if lo is None else min(lo, count)
                hi = count if hi is None else max(hi, count)
        for count in bumped:
            lo = count + 1 if lo is None else min(lo, count + 1)
            hi = count + 1 if hi is None else max(hi, count + 1)
        return hi - lo

    def _bump(self, player: str) -> None:
        count = self.games[player]
        self._histogram[count] -= 1
        if not self._histogram[count]:
            del self._histogram[count]
        self.games[player] = count + 1
        self._histogram[count + 1] += 1

    def record(self, team1: list[str], team2: list[str], round_no: int) -> None:
        """Apply a committed match to the running history."""
        for p in team1 + team2:
            self._bump(p)
            self.last_round[p] = round_no

        for team in (team1, team2):
            if len(team) == 2:
                a, b = team
                key = pair_key(a, b)
                self.partner_counts[key] = self.partner_counts.get(key, 0) + 1
                self.last_partner[a] = b
                self.last_partner[b] = a

        for x in team1:
            for y in team2:
                key = pair_key(x, y)
                self.opponent_counts[key] = self.opponent_counts.get(key, 0) + 1

        for p in team1:
            self.last_opponents[p] = set(team2)
        for p in team2:
            self.last_opponents[p] = set(team1)


def team_average(team: list[str], ratings: dict[str, Optional[float]]) -> float:
    """Average of the known ratings on a team, 0 when none are known."""
    vals = [ratings[p] for p in team if ratings.get(p) is not None]
    return sum(vals) / len(vals) if vals else 0.0


def estimate_total_rounds(n_players: int, max_games: int, court_count: int,
                          players_per_match: int) -> int:
    """Rounds needed for everyone to reach max_games at full court use."""
    per_round = min(court_count, n_players // players_per_match)
    matches_needed = -(-n_players * max_games // players_per_match)
    return max(1, -(-matches_needed // max(1, per_round)))


class PairingScorer:
    """Cost of a candidate 2v2 (or 1v1) split under the current run-state.

    ratings is None unless rating balance is enabled.
    """

    def __init__(self, state: RunState, max_games: int, total_rounds: int,
                 rng: random.Random,
                 ratings: Optional[dict[str, Optional[float]]] = None,
                 weights: DoublesWeights = DOUBLES_WEIGHTS):
        self.state = state
        self.max_games = max_games
        self.total_rounds = max(1, total_rounds)
        self.rng = rng
        self.ratings = ratings
        self.w = weights

    def gap_penalty(self, player: str, round_no: int) -> float:
        gap = self.state.rounds_since(player, round_no)
        if gap == 1:
            return self.w.gap_1
        if gap == 2:
            return self.w.gap_2
        return 0.0

    def pace_penalty(self, player: str, round_no: int) -> float:
        expected = self.max_games * (round_no / self.total_rounds)
        diff = self.state.games[player] + 1 - expected
        if diff > self.w.pace_tolerance:
            return (diff - self.w.pace_tolerance) * self.w.pace
        return 0.0

    def score(self, team1: list[str], team2: list[str], round_no: int) -> float:
        state, w = self.state, self.w
        s = 0.0

        for team in (team1, team2):
            if len(team) == 2:
                a, b = team
                s += state.partners(a, b) ** 2 * w.partner
                if state.last_partner[a] == b or state.last_partner[b] == a:
                    s += w.recent_partner

        for x in team1:
            for y in team2:
                s += state.opponents(x, y) ** 2 * w.opponent
                if y in state.last_opponents[x]:
                    s += w.recent_opponent

        selected = team1 + team2
        for p in selected:
            s += self.gap_penalty(p, round_no)
            s += self.pace_penalty(p, round_no)

        s += state.projected_spread(selected) * w.fairness

        if self.ratings is not None:
            s += abs(team_average(team1, self.ratings)
                     - team_average(team2, self.ratings)) * w.rating

        return s + self.rng.random() * w.jitter


class SinglesScorer:
    """Cost of a 1v1 pairing: fairness first, then variety and rest."""

    def __init__(self, state: RunState, rng: random.Random,
                 ratings: Optional[dict[str, Optional[float]]] = None,
                 weights: SinglesWeights = SINGLES_WEIGHTS):
        self.state = state
        self.rng = rng
        self.ratings = ratings
        self.w = weights

    def _rating(self, player: str) -> float:
        rating = self.ratings.get(player)
        return self.w.default_rating if rating is None else rating

    def score(self, a: str, b: str, round_no: int) -> float:
        state, w = self.state, self.w
        s = state.projected_spread([a, b]) * w.fairness
        s += (state.games[a] + state.games[b]) * w.load
        s += state.opponents(a, b) ** 2 * w.opponent

        for p in (a, b):
            gap = state.rounds_since(p, round_no)
            if gap == 1:
                s += w.gap_1
            elif gap == 2:
                s += w.gap_2

        if self.ratings is not None:
            s += abs(self._rating(a) - self._rating(b)) * w.rating

        return s + self.rng.random() * w.jitter


class MixedScorer:
    """Simplified cost for mixed doubles candidates (teams are M+F)."""

    def __init__(self, state: RunState, rng: random.Random,
                 ratings: Optional[dict[str, Optional[float]]] = None,
                 weights: MixedWeights = MIXED_WEIGHTS):
        self.state = state
        self.rng = rng
        self.ratings = ratings
        self.w = weights

    def _team_rating(self, team: list[str]) -> float:
        vals = [self.w.default_rating if self.ratings.get(p) is None
                else self.ratings[p] for p in team]
        return sum(vals) / len(vals)

    def score(self, team1: list[str], team2: list[str]) -> float:
        state, w = self.state, self.w
        s = 0.0
        for a, b in (team1, team2):
            if state.partners(a, b):
                s += w.partner
        for x in team1:
            for y in team2:
                if state.opponents(x, y):
                    s += w.opponent
        s += w.game_count * sum(state.games[p] for p in team1 + team2)
        if self.ratings is not None:
            s += w.rating * abs(self._team_rating(team1) - self._team_rating(team2))
        return s + self.rng.random() * w.jitter
