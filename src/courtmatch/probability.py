"""Win probability for a proposed match from history and ratings.

Four optional factors, each a (team1, team2) pair of probabilities:

- partner: win rate of the exact doubles pairing
- head_to_head: mean win rate over cross-team individual matchups
- overall: mean lifetime win rate of each team's members
- rating: 0.5 shifted by RATING_SLOPE per rating point of average gap,
  clamped to [RATING_MIN, RATING_MAX]

Only factors with enough data take part in the weighted average, and the
two weighted values are renormalized to sum to 1. With no factor at all
the result carries no numbers and has_enough_data is False.
"""

from dataclasses import dataclass, field
from typing import Optional

from courtmatch.history import (
    PlayerStats, Record, aggregate_stats, opponent_stats, partner_stats,
)
from courtmatch.models import Match, Player, Session

RATING_SLOPE = 0.3      # 0.5 rating points ~ 15% win rate
RATING_MIN = 0.1
RATING_MAX = 0.9
NEUTRAL = 0.5


@dataclass(frozen=True)
class FactorWeights:
    head_to_head: float = 2.5
    partner: float = 2.0
    rating: float = 1.5
    overall: float = 1.0


@dataclass
class Factor:
    team1: Optional[float] = None
    team2: Optional[float] = None

    @property
    def present(self) -> bool:
        return self.team1 is not None or self.team2 is not None


@dataclass
class MatchProbability:
    team1_win_rate: Optional[float]
    team2_win_rate: Optional[float]
    has_enough_data: bool
    details: dict[str, Factor] = field(default_factory=dict)


def _mean(values: list[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def rating_probability(team1_avg: float, team2_avg: float) -> float:
    """Team1 win probability from the average rating gap."""
    p = NEUTRAL + (team1_avg - team2_avg) * RATING_SLOPE
    return max(RATING_MIN, min(RATING_MAX, p))


class ProbabilityEstimator:
    """Estimates match odds against a fixed archive snapshot.

    Per-player archive lookups are cached, so one estimator can score a
    whole schedule cheaply.
    """

    def __init__(self, sessions: dict[str, Session],
                 roster: Optional[dict[str, Player]] = None,
                 min_games: int = 1, use_admin_rating: bool = False,
                 weights: FactorWeights = FactorWeights()):
        self.sessions = sessions
        self.roster = roster or {}
        self.min_games = max(1, min_games)
        self.use_admin_rating = use_admin_rating
        self.weights = weights
        self._overall: Optional[dict[str, PlayerStats]] = None
        self._partners: dict[str, dict[str, Record]] = {}
        self._opponents: dict[str, dict[str, Record]] = {}

    def _overall_stats(self) -> dict[str, PlayerStats]:
        if self._overall is None:
            self._overall = aggregate_stats(self.sessions)
        return self._overall

    def _partner_record(self, a: str, b: str) -> Optional[Record]:
        if a not in self._partners:
            self._partners[a] = partner_stats(self.sessions, a)
        return self._partners[a].get(b)

    def _opponent_record(self, a: str, b: str) -> Optional[Record]:
        if a not in self._opponents:
            self._opponents[a] = opponent_stats(self.sessions, a)
        return self._opponents[a].get(b)

    def _qualified(self, record: Optional[Record]) -> bool:
        return record is not None and record.games >= self.min_games

    def partner_factor(self, team1: list[str], team2: list[str]) -> Factor:
        factor = Factor()
        for attr, team in (("team1", team1), ("team2", team2)):
            if len(team) == 2:
                record = self._partner_record(team[0], team[1])
                if self._qualified(record):
                    setattr(factor, attr, record.win_rate)
        return factor

    def head_to_head_factor(self, team1: list[str], team2: list[str]) -> Factor:
        rates = []
        for a in team1:
            for b in team2:
                record = self._opponent_record(a, b)
                if self._qualified(record):
                    rates.append(record.win_rate)
        mean = _mean(rates)
        if mean is None:
            return Factor()
        return Factor(mean, 1 - mean)

    def overall_factor(self, team1: list[str], team2: list[str]) -> Factor:
        stats = self._overall_stats()

        def team_mean(team):
            return _mean([stats[p].win_rate for p in team
                          if p in stats and stats[p].games >= self.min_games])

        return Factor(team_mean(team1), team_mean(team2))

    def rating_factor(self, team1: list[str], team2: list[str]) -> Factor:
        def team_avg(team):
            vals = []
            for p in team:
                player = self.roster.get(p)
                rating = player.effective_rating(self.use_admin_rating) if player else None
                if rating is not None and rating > 0:
                    vals.append(rating)
            return _mean(vals)

        avg1, avg2 = team_avg(team1), team_avg(team2)
        if avg1 is None or avg2 is None:
            return Factor()
        p = rating_probability(avg1, avg2)
        return Factor(p, 1 - p)

    def estimate(self, team1: list[str], team2: list[str]) -> MatchProbability:
        factors = {
            "partner": self.partner_factor(team1, team2),
            "head_to_head": self.head_to_head_factor(team1, team2),
            "overall": self.overall_factor(team1, team2),
            "rating": self.rating_factor(team1, team2),
        }

        total_weight = sum1 = sum2 = 0.0
        for name, factor in factors.items():
            if not factor.present:
                continue
            weight = getattr(self.weights, name)
            v1 = NEUTRAL if factor.team1 is None else factor.team1
            v2 = NEUTRAL if factor.team2 is None else factor.team2
            sum1 += v1 * weight
            sum2 += v2 * weight
            total_weight += weight

        if total_weight == 0:
            return MatchProbability(None, None, False, factors)

        p1 = sum1 / total_weight
        p2 = sum2 / total_weight
        if p1 + p2 > 0:
            p1 = p1 / (p1 + p2)
            p2 = 1.0 - p1
        else:
            p1 = p2 = NEUTRAL
        return MatchProbability(p1, p2, True, factors)

    def estimate_match(self, match: Match) -> MatchProbability:
        return self.estimate(match.team1, match.team2)


def estimate_match_probability(sessions: dict[str, Session], team1: list[str],
                               team2: list[str],
                               roster: Optional[dict[str, Player]] = None,
                               min_games: int = 1,
                               use_admin_rating: bool = False) -> MatchProbability:
    """One-off estimate; build a ProbabilityEstimator to score many matches."""
    estimator = ProbabilityEstimator(sessions, roster, min_games, use_admin_rating)
    return estimator.estimate(team1, team2)
