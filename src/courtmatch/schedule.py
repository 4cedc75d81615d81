#!/usr/bin/env python3
"""courtmatch: match schedule builder for a club session.

Generate mode (default):
    courtmatch [config.yaml] [--seed N] [-o DIR] [--archive FILE] [-v]

    Generates a schedule from the YAML config and writes:
      {DIR}/schedule.txt  - Round-by-round schedule (with odds if an archive is given)
      {DIR}/schedule.csv  - Editable CSV, re-importable with courtmatch-verify
      {DIR}/stats.txt     - Validation report + statistics

Verify mode:
    courtmatch --verify <schedule.csv> [config.yaml]

Examples:
    courtmatch                          # default config, random seed
    courtmatch --seed 42 -o tuesday     # reproducible, custom directory
    courtmatch --archive archive.yaml   # print win odds from past sessions
"""

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Optional

from courtmatch.config import load_archive, load_config
from courtmatch.constraints import format_validation_report, validate_schedule
from courtmatch.models import ScheduleResult
from courtmatch.output import format_schedule, write_schedule
from courtmatch.probability import ProbabilityEstimator
from courtmatch.scheduler import build_schedule
from courtmatch.stats import compute_stats, format_stats_report


def generate(config: dict, seed: Optional[int] = None) -> ScheduleResult:
    """Run the scheduler for a loaded config."""
    return build_schedule(
        config["players"], config["roster"], config["options"],
        rng=random.Random(seed),
        slots=config["manual_slots"],
        team_assignments=config["team_assignments"],
        seed_players=config["seed_players"],
        gender_mode=config["manual_gender_mode"],
        budget=config["budget"],
    )


def estimate_odds(config: dict, archive_path) -> ProbabilityEstimator:
    sessions = load_archive(archive_path)
    return ProbabilityEstimator(
        sessions, config["roster"],
        use_admin_rating=config["options"].use_admin_rating,
    )


def main():
    parser = argparse.ArgumentParser(
        description="courtmatch match schedule builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Output files (generate mode):
  {dir}/schedule.txt   Round-by-round schedule
  {dir}/schedule.csv   Editable CSV (courtmatch-verify reads it back)
  {dir}/stats.txt      Validation report + balance statistics

Exit codes:
  0  Schedule generated and valid
  1  Generation did not finish OK, or constraint violations found
""",
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducible schedules. courtmatch-scan "
             "ranks seeds for you."
    )
    parser.add_argument(
        "--output-prefix", "-o", default="output",
        help="Output directory for generated files (default: output/)"
    )
    parser.add_argument(
        "--archive", metavar="FILE",
        help="Session archive YAML for win odds (overrides the config's archive)"
    )
    parser.add_argument(
        "--verify", metavar="CSV",
        help="Verify an existing schedule CSV instead of generating"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        sys.exit(1)

    print(f"Loading config from {config_path}...")
    config = load_config(config_path)
    options = config["options"]

    if args.verify:
        from courtmatch.verify import verify_csv
        sys.exit(verify_csv(args.verify, config))

    # Generation mode
    print(f"Generating schedule (seed={args.seed})...")
    result = generate(config, seed=args.seed)
    matches = result.matches

    if not result.ok:
        print(f"Generation ended with {result.status.value}: {result.message}")
    if not matches:
        print("Error: no matches were scheduled!")
        sys.exit(1)

    odds = None
    archive_path = args.archive or config["archive"]
    if archive_path is not None:
        if Path(archive_path).exists():
            estimator = estimate_odds(config, archive_path)
            odds = [estimator.estimate_match(m) for m in matches]
        else:
            print(f"Warning: archive {archive_path} not found, skipping odds")

    print("\n" + format_schedule(matches, options.court_count, odds))

    # Validate
    print("\nValidating...")
    validation = validate_schedule(matches, config["roster"], options,
                                   config["players"])
    report = format_validation_report(validation)
    print(report)

    # Stats
    stats = compute_stats(matches, options.court_count, config["players"])
    stats_text = format_stats_report(stats)
    print("\n" + stats_text)

    # Write outputs
    print("\nWriting output files...")
    write_schedule(matches, options.court_count,
                   output_prefix=args.output_prefix, odds=odds)

    stats_path = Path(args.output_prefix) / "stats.txt"
    stats_path.write_text(report + "\n\n" + stats_text)
    print(f"Written: {stats_path}")

    if result.ok and validation["valid"]:
        print("\nSchedule generated successfully!")
        sys.exit(0)
    if not validation["valid"]:
        print(f"\nSchedule has {len(validation['errors'])} constraint violations.")
        print("Review errors above and adjust config or seed.")
    sys.exit(1)


if __name__ == "__main__":
    main()
