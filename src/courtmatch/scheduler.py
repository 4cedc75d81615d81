"""Strategy dispatch: one entry point for every scheduling mode.

Selection order:
1. Team mode -> teams.build_team_schedule
2. Manual mode -> fill the grid, then convert complete slots to matches
3. Per-group generation (by_group, or fixed pattern with group_only)
4. Fixed pattern (doubles) -> patterns, falling back to random doubles
5. Singles -> adaptive.build_singles_schedule
6. Doubles -> adaptive.build_doubles_schedule (mixed mode samples)

A total_games limit is applied last.
"""

import dataclasses
import logging
import random
from typing import Optional

from courtmatch.adaptive import (
    build_doubles_schedule, build_singles_schedule, unique_players,
)
from courtmatch.budget import SearchBudget
from courtmatch.manual import ManualSlotFiller, create_empty_slots, slots_to_matches
from courtmatch.models import (
    UNASSIGNED_GROUP, GameType, ManualGenderMode, ManualSlot, Match,
    PairingMode, Player, ScheduleOptions, ScheduleResult, ScheduleStatus,
    lookup_player,
)
from courtmatch.patterns import apply_seed_order, build_pattern_schedule
from courtmatch.teams import build_team_schedule

logger = logging.getLogger(__name__)


def min_players(options: ScheduleOptions) -> int:
    return 2 * options.game_type.players_per_team


def group_players(players: list[str],
                  roster: dict[str, Player]) -> dict[str, list[str]]:
    """Players by group label, groups sorted with 'unassigned' last."""
    groups: dict[str, list[str]] = {}
    for p in players:
        groups.setdefault(lookup_player(roster, p).group, []).append(p)
    order = sorted(groups, key=lambda g: (g == UNASSIGNED_GROUP, g))
    return {g: groups[g] for g in order}


def trim_to_total(matches: list[Match], total_games: int) -> list[Match]:
    """Keep the first total_games matches.

    Courts are left as generated so round boundaries survive the cut.
    """
    return matches[:total_games]


def manual_gender_mode(mode: PairingMode) -> ManualGenderMode:
    if mode is PairingMode.SAME_GENDER:
        return ManualGenderMode.SAME
    if mode is PairingMode.MIXED:
        return ManualGenderMode.MIXED
    return ManualGenderMode.RANDOM


def build_manual_schedule(players: list[str], roster: dict[str, Player],
                          options: ScheduleOptions, rng: random.Random,
                          slots: Optional[list[list[ManualSlot]]] = None,
                          gender_mode: Optional[ManualGenderMode] = None,
                          selected_only: bool = False) -> ScheduleResult:
    if slots is None:
        slots = create_empty_slots(options.total_rounds, options.court_count,
                                   options.game_type)
    filler = ManualSlotFiller(players, roster, options, rng)
    grid = filler.fill(slots, gender_mode or manual_gender_mode(options.mode),
                       selected_only=selected_only)
    matches = slots_to_matches(grid, options.game_type, options.court_count)
    if matches:
        return ScheduleResult.success(matches)
    if len(unique_players(players)) < min_players(options):
        return ScheduleResult.failure(
            ScheduleStatus.INSUFFICIENT_PLAYERS,
            f"manual grid needs at least {min_players(options)} players",
        )
    return ScheduleResult.failure(
        ScheduleStatus.CONSTRAINT_UNSATISFIABLE,
        "no slot could be completed under the gender/group constraints",
    )


def _build_single_pool(players: list[str], roster: dict[str, Player],
                       options: ScheduleOptions, rng: random.Random,
                       seed_players: Optional[list[str]],
                       budget: Optional[SearchBudget]) -> ScheduleResult:
    if options.game_type is GameType.SINGLES:
        return build_singles_schedule(players, roster, options, rng, budget)

    if options.mode is PairingMode.FIXED_PATTERN:
        ordered = unique_players(players)
        if seed_players:
            ordered, _slots = apply_seed_order(ordered, seed_players)
        result = build_pattern_schedule(ordered, options.court_count)
        if result.status is not ScheduleStatus.OUT_OF_PATTERN_RANGE:
            return result
        logger.info("%s; falling back to random doubles", result.message)
        options = dataclasses.replace(options, mode=PairingMode.RANDOM)

    return build_doubles_schedule(players, roster, options, rng, budget)


def _build_by_group(players: list[str], roster: dict[str, Player],
                    options: ScheduleOptions, rng: random.Random,
                    seed_players: Optional[list[str]],
                    budget: Optional[SearchBudget]) -> ScheduleResult:
    group_options = dataclasses.replace(options, group_only=False, by_group=False)
    needed = min_players(options)
    combined: list[Match] = []
    failures: list[ScheduleResult] = []

    for group, members in group_players(unique_players(players), roster).items():
        if len(members) < needed:
            logger.info("Skipping group %s: %d players", group, len(members))
            continue
        result = _build_single_pool(members, roster, group_options, rng,
                                    seed_players, budget)
        combined.extend(result.matches)
        if result.status is ScheduleStatus.SEARCH_BUDGET_EXCEEDED:
            return ScheduleResult(result.status, combined, result.message)
        if not result.ok:
            failures.append(result)

    if combined:
        return ScheduleResult.success(combined)
    if failures:
        return ScheduleResult.failure(failures[0].status, failures[0].message)
    return ScheduleResult.failure(
        ScheduleStatus.INSUFFICIENT_PLAYERS,
        f"no group has the {needed} players needed for a match",
    )


def build_schedule(players: list[str], roster: dict[str, Player],
                   options: ScheduleOptions,
                   rng: Optional[random.Random] = None,
                   seed: Optional[int] = None, *,
                   slots: Optional[list[list[ManualSlot]]] = None,
                   team_assignments: Optional[dict[str, str]] = None,
                   seed_players: Optional[list[str]] = None,
                   gender_mode: Optional[ManualGenderMode] = None,
                   selected_only: bool = False,
                   budget: Optional[SearchBudget] = None) -> ScheduleResult:
    """Generate a schedule for players under options.

    Pass rng, or seed for a reproducible run. players is the attending
    subset; roster supplies gender, group and ratings by name.
    """
    if rng is None:
        rng = random.Random(seed)

    if options.team_mode:
        result = build_team_schedule(players, roster, options, rng,
                                     team_assignments, budget)
    elif options.manual_mode or options.mode is PairingMode.MANUAL:
        result = build_manual_schedule(players, roster, options, rng, slots,
                                       gender_mode, selected_only)
    elif options.by_group or (options.group_only
                              and options.mode is PairingMode.FIXED_PATTERN):
        result = _build_by_group(players, roster, options, rng,
                                 seed_players, budget)
    else:
        result = _build_single_pool(players, roster, options, rng,
                                    seed_players, budget)

    if options.total_games is not None and result.matches:
        result = ScheduleResult(
            result.status,
            trim_to_total(result.matches, options.total_games),
            result.message,
        )

    if not result.ok:
        logger.warning("Schedule generation ended with %s: %s",
                       result.status.value, result.message)
    return result
