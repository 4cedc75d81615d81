"""Standalone verifier for courtmatch schedules.

Validates a schedule by reading the CSV written by courtmatch + config.yaml.
Usage: courtmatch-verify <schedule.csv> [config.yaml]
"""

import csv
import sys
from pathlib import Path

from courtmatch.config import load_config
from courtmatch.constraints import format_validation_report, validate_schedule
from courtmatch.models import GameType, Match
from courtmatch.stats import compute_stats, format_stats_report


def _names(cell: str) -> list[str]:
    return [n.strip() for n in cell.split("/") if n.strip()]


def parse_csv_schedule(csv_path: str | Path) -> list[Match]:
    """Parse a schedule CSV back into Match objects, in file order."""
    matches = []

    with open(csv_path, newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            team1 = _names(row.get("Team1", ""))
            team2 = _names(row.get("Team2", ""))
            if not team1 or not team2:
                continue
            game_type = row.get("Type", "").strip()
            if not game_type:
                game_type = "doubles" if len(team1) == 2 else "singles"
            court = row.get("Court", "").strip()
            matches.append(Match(
                game_type=GameType.from_str(game_type),
                team1=team1,
                team2=team2,
                court=int(court) if court else 1,
            ))

    return matches


def verify_csv(csv_path: str | Path, config: dict) -> int:
    """Validate a CSV against config and print reports. Returns exit code."""
    options = config["options"]

    print(f"Parsing schedule from {csv_path}...")
    matches = parse_csv_schedule(csv_path)
    print(f"Loaded {len(matches)} matches")

    if not matches:
        print("No matches found in CSV. Check the format.")
        return 1

    result = validate_schedule(matches, config["roster"], options,
                               config["players"])
    print(format_validation_report(result))

    stats = compute_stats(matches, options.court_count, config["players"])
    print("\n" + format_stats_report(stats))
    return 0 if result["valid"] else 1


def main():
    if len(sys.argv) < 2:
        print("Usage: courtmatch-verify <schedule.csv> [config.yaml]")
        print("  Validates a schedule CSV against constraints in config.")
        sys.exit(1)

    csv_path = sys.argv[1]
    config_path = sys.argv[2] if len(sys.argv) > 2 else "config.yaml"

    if not Path(csv_path).exists():
        print(f"Error: {csv_path} not found")
        sys.exit(1)
    if not Path(config_path).exists():
        print(f"Error: {config_path} not found")
        sys.exit(1)

    print(f"Loading config from {config_path}...")
    config = load_config(config_path)
    sys.exit(verify_csv(csv_path, config))


if __name__ == "__main__":
    main()
