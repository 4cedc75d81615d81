"""Data models for the courtmatch pairing engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


UNASSIGNED_GROUP = "unassigned"


class Gender(Enum):
    M = "M"
    F = "F"

    @classmethod
    def from_str(cls, s: str) -> "Gender":
        key = str(s).strip().lower()
        if key in ("m", "male", "man", "men", "남"):
            return cls.M
        if key in ("f", "female", "woman", "women", "여"):
            return cls.F
        raise ValueError(f"Unknown gender: {s!r}")

    def opposite(self) -> "Gender":
        return Gender.F if self is Gender.M else Gender.M


class GameType(Enum):
    DOUBLES = "doubles"
    SINGLES = "singles"
    DELETED = "deleted"

    @classmethod
    def from_str(cls, s: str) -> "GameType":
        return cls(str(s).strip().lower())

    @property
    def players_per_team(self) -> int:
        return 1 if self is GameType.SINGLES else 2


class PairingMode(Enum):
    RANDOM = "random"
    SAME_GENDER = "same_gender"
    MIXED = "mixed"
    FIXED_PATTERN = "fixed_pattern"
    MANUAL = "manual"

    @classmethod
    def from_str(cls, s: str) -> "PairingMode":
        return cls(str(s).strip().lower().replace("-", "_").replace(" ", "_"))


class ManualGenderMode(Enum):
    RANDOM = "random"
    SAME = "same"
    MIXED = "mixed"
    MEN_ONLY = "men_only"
    WOMEN_ONLY = "women_only"

    @classmethod
    def from_str(cls, s: str) -> "ManualGenderMode":
        return cls(str(s).strip().lower().replace("-", "_").replace(" ", "_"))


class Side(Enum):
    DEUCE = "deuce"
    AD = "ad"
    UNKNOWN = "unknown"


@dataclass
class Player:
    """A roster entry. Read-only to the scheduler."""
    name: str
    gender: Gender = Gender.M
    group: str = UNASSIGNED_GROUP
    ntrp: Optional[float] = None
    admin_ntrp: Optional[float] = None
    team: Optional[str] = None

    def effective_rating(self, use_admin: bool = False) -> Optional[float]:
        """Admin rating wins when enabled and present."""
        if use_admin and self.admin_ntrp is not None:
            return self.admin_ntrp
        return self.ntrp


@dataclass
class Match:
    """One match on one court. Teams have equal arity (1 or 2)."""
    game_type: GameType
    team1: list[str]
    team2: list[str]
    court: int

    @property
    def players(self) -> list[str]:
        return self.team1 + self.team2


@dataclass(frozen=True)
class ScheduleOptions:
    """Immutable input to a single generation call."""
    mode: PairingMode = PairingMode.RANDOM
    game_type: GameType = GameType.DOUBLES
    team_mode: bool = False
    manual_mode: bool = False
    max_games: int = 4
    court_count: int = 2
    total_rounds: int = 4
    balance_by_rating: bool = False
    group_only: bool = False
    use_admin_rating: bool = False
    total_games: Optional[int] = None
    by_group: bool = False

    def __post_init__(self):
        if self.court_count < 1:
            raise ValueError(f"court_count must be >= 1, got {self.court_count}")
        if self.max_games < 0:
            raise ValueError(f"max_games must be >= 0, got {self.max_games}")
        if self.total_rounds < 0:
            raise ValueError(f"total_rounds must be >= 0, got {self.total_rounds}")
        if self.game_type is GameType.DELETED:
            raise ValueError("cannot schedule deleted matches")


@dataclass
class ManualSlot:
    """One round/court cell of a manual grid. None marks an empty seat."""
    team1: list[Optional[str]]
    team2: list[Optional[str]]
    selected: bool = False
    gender_mode: Optional[ManualGenderMode] = None

    def seated(self) -> list[str]:
        return [p for p in self.team1 + self.team2 if p]

    def copy(self) -> "ManualSlot":
        return ManualSlot(list(self.team1), list(self.team2),
                          self.selected, self.gender_mode)


@dataclass
class MatchResult:
    """Recorded score of one match, team1 first."""
    t1: Optional[int] = None
    t2: Optional[int] = None
    sides: dict[str, Side] = field(default_factory=dict)

    def outcome(self) -> Optional[str]:
        """'W' if team1 won, 'L' if it lost, 'D' for a draw, None if incomplete."""
        if self.t1 is None or self.t2 is None:
            return None
        if self.t1 > self.t2:
            return "W"
        if self.t1 < self.t2:
            return "L"
        return "D"


@dataclass
class Session:
    """A past day's schedule plus its results, keyed by 1-based position."""
    schedule: list[Match]
    results: dict[int, MatchResult] = field(default_factory=dict)
    special_match: bool = False

    def result_for(self, position: int) -> Optional[MatchResult]:
        return self.results.get(position)


class ScheduleStatus(Enum):
    OK = "ok"
    INSUFFICIENT_PLAYERS = "insufficient_players"
    CONSTRAINT_UNSATISFIABLE = "constraint_unsatisfiable"
    OUT_OF_PATTERN_RANGE = "out_of_pattern_range"
    SEARCH_BUDGET_EXCEEDED = "search_budget_exceeded"


@dataclass
class ScheduleResult:
    """Outcome of a generation call.

    Only OK carries a complete schedule. SEARCH_BUDGET_EXCEEDED keeps the
    partial schedule built before the budget ran out; every other status
    has an empty match list.
    """
    status: ScheduleStatus
    matches: list[Match] = field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is ScheduleStatus.OK

    @classmethod
    def success(cls, matches: list[Match]) -> "ScheduleResult":
        return cls(ScheduleStatus.OK, matches)

    @classmethod
    def failure(cls, status: ScheduleStatus, message: str) -> "ScheduleResult":
        return cls(status, [], message)


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for a pair of player names."""
    return (a, b) if a <= b else (b, a)


def lookup_player(roster: dict[str, Player], name: str) -> Player:
    """Roster entry for name, or a default entry for unknown names."""
    player = roster.get(name)
    if player is None:
        return Player(name=name)
    return player
