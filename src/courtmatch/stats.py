"""Balance statistics and reporting for a generated schedule."""

from collections import defaultdict
from typing import Optional

from courtmatch.constraints import rounds_of
from courtmatch.models import GameType, Match, pair_key


def compute_stats(matches: list[Match], court_count: int,
                  players: Optional[list[str]] = None) -> dict:
    """Compute per-player and per-pair statistics for a schedule.

    Returns dict with games_per_player, partner_counts, opponent_counts,
    sit_outs (per player), max_streak (longest run of consecutive rounds
    played), rounds, spread (max - min games) and repeat counts.
    """
    matches = [m for m in matches if m.game_type is not GameType.DELETED]
    rounds = rounds_of(matches, court_count)
    everyone = list(players) if players is not None else []
    for m in matches:
        for p in m.players:
            if p not in everyone:
                everyone.append(p)

    games = {p: 0 for p in everyone}
    partner_counts = defaultdict(int)
    opponent_counts = defaultdict(int)
    sit_outs = {p: 0 for p in everyone}
    streak = {p: 0 for p in everyone}
    max_streak = {p: 0 for p in everyone}

    for rnd in rounds:
        playing = set()
        for m in rnd:
            playing.update(m.players)
            for p in m.players:
                games[p] += 1
            for team in (m.team1, m.team2):
                if len(team) == 2:
                    partner_counts[pair_key(*team)] += 1
            for a in m.team1:
                for b in m.team2:
                    opponent_counts[pair_key(a, b)] += 1
        for p in everyone:
            if p in playing:
                streak[p] += 1
                max_streak[p] = max(max_streak[p], streak[p])
            else:
                streak[p] = 0
                sit_outs[p] += 1

    counts = list(games.values())
    return {
        "games_per_player": games,
        "partner_counts": dict(partner_counts),
        "opponent_counts": dict(opponent_counts),
        "sit_outs": sit_outs,
        "max_streak": max_streak,
        "rounds": len(rounds),
        "matches": len(matches),
        "spread": (max(counts) - min(counts)) if counts else 0,
        "partner_repeats": sum(n - 1 for n in partner_counts.values() if n > 1),
        "opponent_repeats": sum(n - 1 for n in opponent_counts.values() if n > 1),
    }


def format_stats_report(stats: dict) -> str:
    """Format schedule statistics as text."""
    lines = []
    lines.append("=" * 60)
    lines.append("SCHEDULE STATISTICS")
    lines.append("=" * 60)
    lines.append(f"\nMatches: {stats['matches']}   Rounds: {stats['rounds']}   "
                 f"Games spread: {stats['spread']}")
    lines.append(f"Repeated partners: {stats['partner_repeats']}   "
                 f"Repeated opponents: {stats['opponent_repeats']}")

    lines.append("\n--- PER PLAYER ---")
    lines.append(f"{'Player':<16} {'Games':>5} {'Sat':>4} {'Streak':>6}")
    lines.append("-" * 34)
    for p in sorted(stats["games_per_player"]):
        g = stats["games_per_player"][p]
        sat = stats["sit_outs"][p]
        st = stats["max_streak"][p]
        flag = " ***" if st >= 3 else ""
        lines.append(f"{p:<16} {g:>5} {sat:>4} {st:>6}{flag}")

    repeated = sorted(
        ((n, pair) for pair, n in stats["partner_counts"].items() if n > 1),
        reverse=True,
    )
    if repeated:
        lines.append("\n--- REPEATED PARTNERS ---")
        for n, (a, b) in repeated:
            lines.append(f"  {a} + {b}: {n}")

    return "\n".join(lines)
