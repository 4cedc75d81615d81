"""Config and archive loading for courtmatch."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from courtmatch.budget import DEFAULT_MAX_EVALUATIONS, SearchBudget
from courtmatch.models import (
    UNASSIGNED_GROUP, GameType, Gender, ManualGenderMode, ManualSlot, Match,
    MatchResult, PairingMode, Player, ScheduleOptions, Session, Side,
)

logger = logging.getLogger(__name__)


def parse_rating(value) -> Optional[float]:
    """Ratings may be blank, 'unknown' or a number."""
    if value is None:
        return None
    s = str(value).strip().lower()
    if s in ("", "unknown", "none", "-"):
        return None
    return float(s)


def parse_player(raw: dict) -> Player:
    return Player(
        name=str(raw["name"]),
        gender=Gender.from_str(raw.get("gender", "M")),
        group=str(raw.get("group") or UNASSIGNED_GROUP),
        ntrp=parse_rating(raw.get("ntrp")),
        admin_ntrp=parse_rating(raw.get("admin_ntrp")),
        team=raw.get("team"),
    )


def parse_options(raw: dict) -> ScheduleOptions:
    total_games = raw.get("total_games")
    return ScheduleOptions(
        mode=PairingMode.from_str(raw.get("mode", "random")),
        game_type=GameType.from_str(raw.get("game_type", "doubles")),
        team_mode=bool(raw.get("team_mode", False)),
        manual_mode=bool(raw.get("manual_mode", False)),
        max_games=int(raw.get("max_games", 4)),
        court_count=int(raw.get("court_count", 2)),
        total_rounds=int(raw.get("total_rounds", 4)),
        balance_by_rating=bool(raw.get("balance_by_rating", False)),
        group_only=bool(raw.get("group_only", False)),
        use_admin_rating=bool(raw.get("use_admin_rating", False)),
        total_games=int(total_games) if total_games is not None else None,
        by_group=bool(raw.get("by_group", False)),
    )


def parse_slot(raw: dict) -> ManualSlot:
    mode = raw.get("gender_mode")
    return ManualSlot(
        team1=[p or None for p in raw.get("team1", [])],
        team2=[p or None for p in raw.get("team2", [])],
        selected=bool(raw.get("selected", False)),
        gender_mode=ManualGenderMode.from_str(mode) if mode else None,
    )


def parse_match(raw: dict) -> Match:
    return Match(
        game_type=GameType.from_str(raw.get("game_type", "doubles")),
        team1=[str(p) for p in raw["team1"]],
        team2=[str(p) for p in raw["team2"]],
        court=int(raw.get("court", 1)),
    )


def parse_result(raw: dict) -> MatchResult:
    sides = {str(p): Side(str(s).lower()) for p, s in (raw.get("sides") or {}).items()}
    t1 = raw.get("t1")
    t2 = raw.get("t2")
    return MatchResult(
        t1=int(t1) if t1 is not None else None,
        t2=int(t2) if t2 is not None else None,
        sides=sides,
    )


def load_config(path: str | Path) -> dict:
    """Load and validate a session config YAML, returning structured data.

    Returns dict with:
    - roster: dict[name -> Player]
    - players: attending names (defaults to the whole roster)
    - options: ScheduleOptions
    - team_assignments: dict[name -> team] (roster 'team' plus overrides)
    - seed_players: list of names pinned in fixed-pattern mode
    - manual_slots: manual grid or None
    - manual_gender_mode: ManualGenderMode or None
    - budget: SearchBudget
    - archive: Path to the session archive, or None
    - warnings: non-fatal config problems (also logged)
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    roster: dict[str, Player] = {}
    for entry in raw.get("roster", []):
        player = parse_player(entry)
        if player.name in roster:
            raise ValueError(f"Duplicate roster name: {player.name}")
        roster[player.name] = player

    session = raw.get("session") or {}
    options = parse_options(session)

    players = [str(p) for p in raw.get("attending") or roster.keys()]

    team_assignments = {name: p.team for name, p in roster.items() if p.team}
    team_assignments.update({str(k): str(v) for k, v in
                             (raw.get("team_assignments") or {}).items()})

    manual_slots = None
    if raw.get("manual_slots"):
        manual_slots = [[parse_slot(s) for s in rnd] for rnd in raw["manual_slots"]]
    gender_mode = session.get("manual_gender_mode")

    search = raw.get("search") or {}
    time_limit = search.get("time_limit_seconds")
    budget = SearchBudget(
        max_evaluations=int(search.get("max_evaluations", DEFAULT_MAX_EVALUATIONS)),
        time_limit=float(time_limit) if time_limit is not None else None,
    )

    archive = raw.get("archive")
    if archive is not None:
        archive = (path.parent / archive).resolve()

    # Validate
    warnings = []
    for name in players:
        if name not in roster:
            warnings.append(f"Attending player {name} not in roster (defaults used)")
    for name in team_assignments:
        if name not in roster:
            warnings.append(f"Team assignment for unknown player {name}")
    for name in session.get("seed_players", []):
        if name not in players:
            warnings.append(f"Seed player {name} is not attending")
    for w in warnings:
        logger.warning(w)

    return {
        "roster": roster,
        "players": players,
        "options": options,
        "team_assignments": team_assignments,
        "seed_players": [str(p) for p in session.get("seed_players", [])],
        "manual_slots": manual_slots,
        "manual_gender_mode": ManualGenderMode.from_str(gender_mode) if gender_mode else None,
        "budget": budget,
        "archive": archive,
        "warnings": warnings,
    }


def load_archive(path: str | Path) -> dict[str, Session]:
    """Load a date-keyed session archive.

    Each entry has 'schedule' (list of matches), 'results' keyed by 1-based
    match position, and an optional 'special_match' flag.
    """
    with open(Path(path)) as f:
        raw = yaml.safe_load(f) or {}

    sessions: dict[str, Session] = {}
    for day, entry in raw.items():
        schedule = [parse_match(m) for m in entry.get("schedule", [])]
        results = {}
        for pos, res in (entry.get("results") or {}).items():
            position = int(pos)
            if not 1 <= position <= len(schedule):
                logger.warning("Session %s: result for missing match %s", day, pos)
                continue
            results[position] = parse_result(res or {})
        sessions[str(day)] = Session(
            schedule=schedule,
            results=results,
            special_match=bool(entry.get("special_match", False)),
        )
    logger.info("Loaded %d sessions from %s", len(sessions), path)
    return sessions
