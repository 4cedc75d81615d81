"""Schedule output: human-readable text and an editable CSV."""

import csv
from io import StringIO
from pathlib import Path
from typing import Optional

from courtmatch.constraints import rounds_of
from courtmatch.models import Match
from courtmatch.probability import MatchProbability

CSV_HEADER = ["Match", "Round", "Court", "Type", "Team1", "Team2"]


def _team(names: list[str]) -> str:
    return " / ".join(names)


def format_schedule(matches: list[Match], court_count: int,
                    odds: Optional[list[MatchProbability]] = None) -> str:
    """Format the schedule grouped by round.

    odds, when given, is parallel to matches and adds a win-rate column.
    """
    lines = []
    lines.append("=" * 60)
    lines.append(f"MATCH SCHEDULE ({len(matches)} matches, {court_count} courts)")
    lines.append("=" * 60)

    position = 0
    for r, rnd in enumerate(rounds_of(matches, court_count), start=1):
        lines.append(f"\nRound {r}")
        lines.append("-" * 40)
        for m in rnd:
            line = (f"  {position + 1:>2}. Court {m.court}: "
                    f"{_team(m.team1)}  vs  {_team(m.team2)}")
            if odds is not None:
                prob = odds[position]
                if prob.has_enough_data:
                    line += (f"   ({prob.team1_win_rate:.0%} / "
                             f"{prob.team2_win_rate:.0%})")
                else:
                    line += "   (no data)"
            lines.append(line)
            position += 1

    return "\n".join(lines)


def format_schedule_csv(matches: list[Match], court_count: int) -> str:
    """Format schedule as an editable CSV.

    Team columns hold names joined with '/' so verify can re-import them.
    """
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)

    position = 0
    for r, rnd in enumerate(rounds_of(matches, court_count), start=1):
        for m in rnd:
            position += 1
            writer.writerow([position, r, m.court, m.game_type.value,
                             "/".join(m.team1), "/".join(m.team2)])

    return output.getvalue()


def write_schedule(matches: list[Match], court_count: int,
                   output_prefix: str = "output",
                   odds: Optional[list[MatchProbability]] = None):
    """Write schedule.txt and schedule.csv into {output_prefix}/ directory."""
    out_dir = Path(output_prefix)
    out_dir.mkdir(parents=True, exist_ok=True)

    schedule_path = out_dir / "schedule.txt"
    schedule_path.write_text(format_schedule(matches, court_count, odds))
    print(f"Written: {schedule_path}")

    csv_path = out_dir / "schedule.csv"
    csv_path.write_text(format_schedule_csv(matches, court_count))
    print(f"Written: {csv_path}")
