"""Constraint validation for generated schedules.

Works on any match list, whether freshly generated or re-imported from CSV.
"""

from collections import defaultdict
from typing import Optional

from courtmatch.adaptive import satisfies_mode
from courtmatch.models import (
    GameType, Match, PairingMode, Player, ScheduleOptions, lookup_player,
    pair_key,
)
from courtmatch.patterns import APPEARANCES_PER_PLAYER

PARTNER_REPEAT_WARN = 2


def rounds_of(matches: list[Match], court_count: int) -> list[list[Match]]:
    """Split a flat match list into rounds.

    Courts ascend within a round, so a round ends after court_count
    matches or when the court number does not increase (a court the
    scheduler could not fill).
    """
    rounds: list[list[Match]] = []
    for m in matches:
        if (not rounds or len(rounds[-1]) >= court_count
                or m.court <= rounds[-1][-1].court):
            rounds.append([])
        rounds[-1].append(m)
    return rounds


def games_cap(options: ScheduleOptions) -> int:
    """Per-player cap; the fixed pattern has its own four-game design."""
    if options.mode is PairingMode.FIXED_PATTERN and options.game_type is GameType.DOUBLES:
        return max(options.max_games, APPEARANCES_PER_PLAYER)
    return options.max_games


def validate_schedule(matches: list[Match], roster: dict[str, Player],
                      options: ScheduleOptions,
                      players: Optional[list[str]] = None) -> dict:
    """Validate a schedule against the hard constraints.

    Returns dict with:
    - valid: bool (True if no hard constraint violations)
    - errors: list of hard constraint violations
    - warnings: list of soft issues (partner repeats, idle players,
      round overlaps inherent to the fixed pattern)
    """
    errors = []
    warnings = []

    k = options.game_type.players_per_team
    genders = {}
    groups = {}
    games = defaultdict(int)
    partner_counts = defaultdict(int)
    fixed_pattern = options.mode is PairingMode.FIXED_PATTERN

    for i, m in enumerate(matches, start=1):
        label = f"Match {i} (court {m.court})"
        names = m.players
        for p in names:
            if p not in genders:
                player = lookup_player(roster, p)
                genders[p] = player.gender
                groups[p] = player.group
            if players is not None and p not in players:
                errors.append(f"{label}: {p} is not in the player list")

        if m.game_type is GameType.DELETED:
            continue
        if len(m.team1) != len(m.team2):
            errors.append(f"{label}: teams of {len(m.team1)} and {len(m.team2)}")
            continue
        if len(m.team1) != k:
            errors.append(f"{label}: {len(m.team1)} per side, expected {k}")
        if len(set(names)) != len(names):
            errors.append(f"{label}: a player appears twice")
        if not 1 <= m.court <= options.court_count:
            errors.append(
                f"{label}: court outside 1..{options.court_count}"
            )

        if options.group_only and len({groups[p] for p in names}) > 1:
            errors.append(
                f"{label}: mixes groups {sorted({groups[p] for p in names})}"
            )
        if not fixed_pattern and not satisfies_mode(m.team1, m.team2,
                                                    options.mode, genders):
            errors.append(f"{label}: breaks the {options.mode.value} gender rule")

        for p in names:
            games[p] += 1
        if len(m.team1) == 2:
            partner_counts[pair_key(*m.team1)] += 1
            partner_counts[pair_key(*m.team2)] += 1

    # Check: nobody plays twice in one round
    for r, rnd in enumerate(rounds_of(matches, options.court_count), start=1):
        seen = set()
        for m in rnd:
            for p in m.players:
                if p in seen:
                    msg = f"Round {r}: {p} plays twice"
                    if fixed_pattern:
                        warnings.append(msg)
                    else:
                        errors.append(msg)
                seen.add(p)

    # Check: per-player cap
    cap = games_cap(options)
    for p, n in sorted(games.items()):
        if n > cap:
            errors.append(f"{p} plays {n} games (cap {cap})")

    for (a, b), n in sorted(partner_counts.items()):
        if n > PARTNER_REPEAT_WARN:
            warnings.append(f"{a} and {b} partner {n} times")

    if players is not None:
        for p in players:
            if games.get(p, 0) == 0:
                warnings.append(f"{p} has no games")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def format_validation_report(result: dict) -> str:
    """Format validation results as text."""
    lines = []
    lines.append("=" * 60)
    lines.append("SCHEDULE VALIDATION REPORT")
    lines.append("=" * 60)

    if result["valid"]:
        lines.append("\nRESULT: VALID (no hard constraint violations)")
    else:
        lines.append(f"\nRESULT: INVALID ({len(result['errors'])} violations)")

    if result["errors"]:
        lines.append(f"\n--- ERRORS ({len(result['errors'])}) ---")
        for e in result["errors"]:
            lines.append(f"  ERROR: {e}")

    if result["warnings"]:
        lines.append(f"\n--- WARNINGS ({len(result['warnings'])}) ---")
        for w in result["warnings"]:
            lines.append(f"  WARN: {w}")

    return "\n".join(lines)
