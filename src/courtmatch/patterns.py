"""Fixed-pattern doubles schedules for 5-16 players.

Each table is a balanced design: every player appears in exactly four
matches. Positions are written 1-9 then A-G (10th to 16th player), and a
match is "team1:team2", e.g. "12:34".
"""

import logging

from courtmatch.models import GameType, Match, ScheduleResult, ScheduleStatus

logger = logging.getLogger(__name__)

MIN_PATTERN_PLAYERS = 5
MAX_PATTERN_PLAYERS = 16
APPEARANCES_PER_PLAYER = 4

PATTERNS: dict[int, list[str]] = {
    5: ["12:34", "13:25", "14:35", "15:24", "23:45"],
    6: ["12:34", "15:46", "23:56", "14:25", "24:36", "16:35"],
    7: ["12:34", "56:17", "35:24", "14:67", "23:57", "16:25", "46:37"],
    8: ["12:34", "56:78", "13:57", "24:68", "37:48", "15:26", "16:38",
        "25:47"],
    9: ["12:34", "56:78", "19:57", "23:68", "49:38", "15:26", "17:89",
        "36:45", "24:79"],
    10: ["12:34", "56:78", "23:6A", "19:58", "3A:45", "27:89", "4A:68",
         "13:79", "46:59", "17:2A"],
    11: ["12:34", "56:78", "1B:9A", "23:68", "4A:57", "26:9B", "13:5B",
         "49:8A", "17:28", "5A:6B", "39:47"],
    12: ["12:34", "56:78", "9A:BC", "15:26", "39:4A", "7B:8C", "13:59",
         "24:6A", "7C:14", "8B:23", "67:9B", "58:AC"],
    13: ["12:34", "56:78", "9A:BC", "1D:25", "37:4A", "68:9B", "CD:13",
         "26:5A", "47:8B", "9C:2D", "15:AB", "3C:67", "48:9D"],
    14: ["12:34", "56:78", "9A:BC", "DE:13", "24:57", "68:9B", "26:CD",
         "79:AE", "14:8B", "5E:6A", "3C:7B", "2D:89", "3E:45", "AC:1D"],
    15: ["12:34", "56:78", "9A:BC", "DE:1F", "23:57", "46:AB", "8D:9E",
         "4F:5C", "13:6B", "27:8A", "9C:5E", "36:DF", "1B:8C", "47:EF",
         "2A:9D"],
    16: ["12:34", "56:78", "9A:BC", "DE:FG", "13:57", "24:68", "9B:DF",
         "AC:EG", "15:9D", "37:BF", "26:AE", "48:CG", "19:2A", "5D:6E",
         "3B:4C", "7F:8G"],
}

# Positions where seeded players are pinned, in seed order.
SEED_SLOTS: dict[int, list[str]] = {
    6: ["1", "3"],
    7: ["1", "5"],
    8: ["1", "7"],
    9: ["1", "4", "8"],
    10: ["1", "8", "A"],
    11: ["1", "5", "8", "9"],
    12: ["2", "3", "8", "A"],
    13: ["1", "4", "6", "B"],
    14: ["2", "5", "8", "C"],
    15: ["1", "4", "5", "A", "D"],
    16: ["1", "6", "B", "G", "7", "A"],
}


def position_index(ch: str) -> int:
    """Convert a pattern position character to a 0-based index."""
    if "1" <= ch <= "9":
        return int(ch) - 1
    return 9 + (ord(ch.upper()) - ord("A"))


def parse_pattern(pattern: str, players: list[str]) -> tuple[list[str], list[str]]:
    """Substitute player names into a 'team1:team2' pattern entry."""
    raw1, raw2 = pattern.split(":")
    team1 = [players[position_index(c)] for c in raw1
             if 0 <= position_index(c) < len(players)]
    team2 = [players[position_index(c)] for c in raw2
             if 0 <= position_index(c) < len(players)]
    return team1, team2


def supports(n: int) -> bool:
    return n in PATTERNS


def build_pattern_schedule(players: list[str], court_count: int) -> ScheduleResult:
    """Build the fixed doubles schedule for an ordered list of 5-16 players.

    The i-th match goes to court (i mod court_count) + 1. Outside the
    supported range the result is OUT_OF_PATTERN_RANGE and the caller is
    expected to fall back to an adaptive strategy.
    """
    n = len(players)
    if not supports(n):
        return ScheduleResult.failure(
            ScheduleStatus.OUT_OF_PATTERN_RANGE,
            f"fixed pattern supports {MIN_PATTERN_PLAYERS}-{MAX_PATTERN_PLAYERS} "
            f"players, got {n}",
        )
    if len(set(players)) != n:
        raise ValueError("player list contains duplicates")

    matches = []
    for i, pattern in enumerate(PATTERNS[n]):
        team1, team2 = parse_pattern(pattern, players)
        if len(team1) != 2 or len(team2) != 2:
            continue
        matches.append(Match(
            game_type=GameType.DOUBLES,
            team1=team1,
            team2=team2,
            court=(i % court_count) + 1,
        ))
    logger.debug("Fixed pattern for %d players: %d matches", n, len(matches))
    return ScheduleResult.success(matches)


def apply_seed_order(players: list[str],
                     seed_players: list[str]) -> tuple[list[str], list[str]]:
    """Pin seeded players to their pattern positions.

    Unknown and duplicate seeds are dropped, and seeds beyond the number of
    slots for this size are ignored. Everyone else fills the remaining
    positions in the order supplied. Returns (ordered players, seed slots).
    """
    n = len(players)
    slots = SEED_SLOTS.get(n, [])
    if not slots or not seed_players:
        return list(players), list(slots)

    seeds: list[str] = []
    for p in seed_players:
        if p in players and p not in seeds:
            seeds.append(p)
    seeds = seeds[:len(slots)]

    ordered: list[str | None] = [None] * n
    for seed, slot in zip(seeds, slots):
        idx = position_index(slot)
        if 0 <= idx < n:
            ordered[idx] = seed

    remaining = [p for p in players if p not in seeds]
    for i in range(n):
        if ordered[i] is None and remaining:
            ordered[i] = remaining.pop(0)

    return [p for p in ordered if p is not None], list(slots)
