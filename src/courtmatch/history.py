"""Win/loss statistics from the archive of past sessions.

Only matches with both scores recorded count. Deleted matches and
special-match sessions (inter-club events) are skipped everywhere.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from courtmatch.models import GameType, Match, MatchResult, Session

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


@dataclass
class Record:
    """Games/wins/draws/losses for a player, partnership or matchup."""
    games: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    def add(self, outcome: str) -> None:
        self.games += 1
        if outcome == "W":
            self.wins += 1
        elif outcome == "D":
            self.draws += 1
        else:
            self.losses += 1


@dataclass
class PlayerStats(Record):
    points: int = 0
    score_for: int = 0
    score_against: int = 0


def flip(outcome: str) -> str:
    return {"W": "L", "L": "W"}.get(outcome, outcome)


def scored_matches(sessions: dict[str, Session]) -> Iterator[tuple[Match, MatchResult, str]]:
    """Yield (match, result, team1 outcome) for every counted match, oldest first."""
    for day in sorted(sessions):
        session = sessions[day]
        if session.special_match:
            continue
        for idx, match in enumerate(session.schedule, start=1):
            if match.game_type is GameType.DELETED:
                continue
            result = session.result_for(idx)
            if result is None:
                continue
            outcome = result.outcome()
            if outcome is None:
                continue
            yield match, result, outcome


def _perspective(match: Match, outcome: str, player: str):
    """(own team, other team, outcome) for player, or None if absent."""
    if player in match.team1:
        return match.team1, match.team2, outcome
    if player in match.team2:
        return match.team2, match.team1, flip(outcome)
    return None


def aggregate_stats(sessions: dict[str, Session],
                    members: Optional[set[str]] = None) -> dict[str, PlayerStats]:
    """Lifetime record per player (optionally restricted to members)."""
    stats: dict[str, PlayerStats] = {}
    for match, result, outcome in scored_matches(sessions):
        for team, own, opp, team_outcome in (
            (match.team1, result.t1, result.t2, outcome),
            (match.team2, result.t2, result.t1, flip(outcome)),
        ):
            for p in team:
                if not p or (members is not None and p not in members):
                    continue
                s = stats.setdefault(p, PlayerStats())
                s.add(team_outcome)
                s.score_for += own
                s.score_against += opp
                if team_outcome == "W":
                    s.points += WIN_POINTS
                elif team_outcome == "D":
                    s.points += DRAW_POINTS
                else:
                    s.points += LOSS_POINTS
    return stats


def _sorted(records: dict[str, Record]) -> dict[str, Record]:
    return dict(sorted(records.items(), key=lambda kv: (-kv[1].games, kv[0])))


def partner_stats(sessions: dict[str, Session], player: str) -> dict[str, Record]:
    """Record of player alongside each doubles partner, most games first."""
    partners: dict[str, Record] = {}
    for match, _result, outcome in scored_matches(sessions):
        if match.game_type is GameType.SINGLES:
            continue
        view = _perspective(match, outcome, player)
        if view is None:
            continue
        team, _other, own_outcome = view
        for partner in team:
            if partner and partner != player:
                partners.setdefault(partner, Record()).add(own_outcome)
    return _sorted(partners)


def opponent_stats(sessions: dict[str, Session], player: str) -> dict[str, Record]:
    """Record of player against each individual opponent, most games first."""
    opponents: dict[str, Record] = {}
    for match, _result, outcome in scored_matches(sessions):
        view = _perspective(match, outcome, player)
        if view is None:
            continue
        _team, other, own_outcome = view
        for opponent in other:
            if opponent:
                opponents.setdefault(opponent, Record()).add(own_outcome)
    return _sorted(opponents)


def head_to_head(sessions: dict[str, Session], a: str, b: str) -> Record:
    """Record of a against b, from a's side."""
    return opponent_stats(sessions, a).get(b, Record())
