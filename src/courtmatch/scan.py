#!/usr/bin/env python3
"""Scan seeds and rank the schedules they produce.

Seeds are ranked by repeated partner pairs, then repeated opponent pairs,
then the spread of games per player (fewer is better for all three).

Usage: courtmatch-scan [config.yaml] [-n MAX_SEED]
"""

import argparse
import logging
import sys
from pathlib import Path

from courtmatch.config import load_config
from courtmatch.constraints import validate_schedule
from courtmatch.schedule import generate
from courtmatch.stats import compute_stats


def scan_seed(config: dict, seed: int) -> dict:
    """Run a single seed and return summary info."""
    result = generate(config, seed=seed)
    if not result.matches:
        return {"seed": seed, "ok": False, "status": result.status.value,
                "error": result.message}

    options = config["options"]
    stats = compute_stats(result.matches, options.court_count, config["players"])
    validation = validate_schedule(result.matches, config["roster"], options,
                                   config["players"])
    return {
        "seed": seed,
        "ok": result.ok and validation["valid"],
        "status": result.status.value,
        "matches": stats["matches"],
        "partner_repeats": stats["partner_repeats"],
        "opponent_repeats": stats["opponent_repeats"],
        "spread": stats["spread"],
    }


def rank_key(summary: dict) -> tuple:
    return (summary["partner_repeats"], summary["opponent_repeats"],
            summary["spread"], summary["seed"])


def main():
    parser = argparse.ArgumentParser(
        description="Scan seeds and rank schedules by partner repeats, "
                    "opponent repeats and games spread",
    )
    parser.add_argument(
        "config", nargs="?", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)"
    )
    parser.add_argument(
        "-n", "--max-seed", type=int, default=100,
        help="Maximum seed to try (default: 100, scans 0..N-1)"
    )
    parser.add_argument(
        "--top", type=int, default=5,
        help="How many of the best seeds to list (default: 5)"
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.ERROR)

    config_path = args.config
    if not Path(config_path).exists():
        print(f"Error: config file {config_path} not found")
        sys.exit(1)

    config = load_config(config_path)
    max_seed = args.max_seed

    print(f"Scanning seeds 0..{max_seed - 1} using {config_path}...")
    print(f"{'Seed':>6}  {'Matches':>7}  {'PRep':>4}  {'ORep':>4}  {'Spread':>6}  Result")
    print("-" * 50)

    good = []
    for seed in range(max_seed):
        summary = scan_seed(config, seed)
        if "error" in summary:
            print(f"{seed:>6}  {'-':>7}  {'-':>4}  {'-':>4}  {'-':>6}  "
                  f"{summary['status']}", flush=True)
            continue
        status = "OK" if summary["ok"] else summary["status"]
        print(f"{seed:>6}  {summary['matches']:>7}  "
              f"{summary['partner_repeats']:>4}  {summary['opponent_repeats']:>4}  "
              f"{summary['spread']:>6}  {status}", flush=True)
        if summary["ok"]:
            good.append(summary)

    print("-" * 50)
    if not good:
        print(f"\nNo valid seeds found in 0..{max_seed - 1}")
        sys.exit(1)

    good.sort(key=rank_key)
    print(f"\nBest seeds ({len(good)}/{max_seed} valid):")
    for summary in good[:args.top]:
        print(f"  seed {summary['seed']}: {summary['partner_repeats']} partner repeats, "
              f"{summary['opponent_repeats']} opponent repeats, "
              f"spread {summary['spread']}")
    sys.exit(0)


if __name__ == "__main__":
    main()
