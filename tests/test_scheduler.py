"""Tests for scheduler.py — strategy dispatch, grouping and trimming."""

import random
from collections import Counter

from courtmatch.budget import SearchBudget
from courtmatch.constraints import validate_schedule
from courtmatch.models import (
    UNASSIGNED_GROUP, GameType, Gender, ManualGenderMode, ManualSlot, Match,
    PairingMode, Player, ScheduleOptions, ScheduleStatus,
)
from courtmatch.scheduler import (
    build_schedule, group_players, manual_gender_mode, min_players,
    trim_to_total,
)


def _make_roster(n, groups=None, gender=Gender.M):
    roster = {f"P{i}": Player(f"P{i}", gender) for i in range(1, n + 1)}
    for name, group in (groups or {}).items():
        roster[name].group = group
    return roster


def _make_match(i, court):
    return Match(GameType.DOUBLES, [f"a{i}", f"b{i}"], [f"c{i}", f"d{i}"], court)


class TestHelpers:
    def test_min_players(self):
        assert min_players(ScheduleOptions()) == 4
        assert min_players(ScheduleOptions(game_type=GameType.SINGLES)) == 2

    def test_group_players_unassigned_last(self):
        roster = _make_roster(4, {"P1": "B", "P2": "A", "P4": "B"})
        groups = group_players(list(roster), roster)
        assert list(groups) == ["A", "B", UNASSIGNED_GROUP]
        assert groups["B"] == ["P1", "P4"]

    def test_trim_keeps_courts(self):
        matches = [_make_match(i, 1) for i in range(6)]
        trimmed = trim_to_total(matches, 4)
        assert trimmed == matches[:4]
        assert [m.court for m in trimmed] == [1, 1, 1, 1]

    def test_trim_noop_when_short(self):
        matches = [_make_match(i, 1) for i in range(2)]
        assert trim_to_total(matches, 5) == matches

    def test_manual_gender_mode(self):
        assert manual_gender_mode(PairingMode.MIXED) is ManualGenderMode.MIXED
        assert manual_gender_mode(PairingMode.SAME_GENDER) is ManualGenderMode.SAME
        assert manual_gender_mode(PairingMode.RANDOM) is ManualGenderMode.RANDOM


class TestDispatch:
    def test_random_doubles(self):
        roster = _make_roster(8)
        result = build_schedule(list(roster), roster, ScheduleOptions(), seed=1)
        assert result.ok
        assert all(m.game_type is GameType.DOUBLES for m in result.matches)

    def test_seed_reproducible(self):
        roster = _make_roster(9)
        a = build_schedule(list(roster), roster, ScheduleOptions(), seed=11)
        b = build_schedule(list(roster), roster, ScheduleOptions(), seed=11)
        assert a.matches == b.matches

    def test_singles(self):
        roster = _make_roster(4)
        opts = ScheduleOptions(game_type=GameType.SINGLES)
        result = build_schedule(list(roster), roster, opts, seed=1)
        assert result.ok
        assert all(len(m.team1) == 1 for m in result.matches)

    def test_fixed_pattern(self):
        roster = _make_roster(8)
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN)
        result = build_schedule(list(roster), roster, opts, seed=1)
        assert result.ok
        assert len(result.matches) == 8
        assert result.matches[0].team1 == ["P1", "P2"]

    def test_fixed_pattern_with_seed_players(self):
        roster = _make_roster(8)
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN)
        result = build_schedule(list(roster), roster, opts, seed=1,
                                seed_players=["P8"])
        assert result.matches[0].team1[0] == "P8"

    def test_fixed_pattern_falls_back_out_of_range(self):
        roster = _make_roster(18)
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN, court_count=4)
        result = build_schedule(list(roster), roster, opts, seed=1)
        assert result.ok
        games = Counter(p for m in result.matches for p in m.players)
        assert max(games.values()) <= 4

    def test_team_mode_first(self):
        roster = _make_roster(8)
        for i, p in enumerate(roster.values()):
            p.team = "X" if i < 4 else "Y"
        opts = ScheduleOptions(team_mode=True, mode=PairingMode.FIXED_PATTERN)
        result = build_schedule(list(roster), roster, opts, seed=2)
        assert result.ok
        for m in result.matches:
            assert roster[m.team1[0]].team != roster[m.team2[0]].team

    def test_manual_mode(self):
        roster = _make_roster(8)
        opts = ScheduleOptions(manual_mode=True, total_rounds=2)
        slots = [[ManualSlot(["P1", "P2"], ["P3", None]),
                  ManualSlot([None, None], [None, None])],
                 [ManualSlot([None, None], [None, None]),
                  ManualSlot([None, None], [None, None])]]
        result = build_schedule(list(roster), roster, opts, seed=3, slots=slots)
        assert result.ok
        assert len(result.matches) == 4
        assert result.matches[0].team1 == ["P1", "P2"]
        assert result.matches[0].team2[0] == "P3"

    def test_manual_mode_enum_without_grid(self):
        roster = _make_roster(8)
        opts = ScheduleOptions(mode=PairingMode.MANUAL, total_rounds=3)
        result = build_schedule(list(roster), roster, opts, seed=3)
        assert len(result.matches) == 6

    def test_manual_insufficient(self):
        roster = _make_roster(3)
        opts = ScheduleOptions(manual_mode=True)
        result = build_schedule(list(roster), roster, opts, seed=3)
        assert result.status is ScheduleStatus.INSUFFICIENT_PLAYERS

    def test_by_group(self):
        groups = {f"P{i}": ("A" if i <= 4 else "B") for i in range(1, 10)}
        roster = _make_roster(9, groups)
        opts = ScheduleOptions(by_group=True, court_count=1)
        result = build_schedule(list(roster), roster, opts, seed=4)
        assert result.ok
        for m in result.matches:
            assert len({roster[p].group for p in m.players}) == 1
        first_b = next(i for i, m in enumerate(result.matches)
                       if roster[m.team1[0]].group == "B")
        assert all(roster[m.team1[0]].group == "A"
                   for m in result.matches[:first_b])

    def test_by_group_skips_small_groups(self):
        groups = {"P1": "A", "P2": "A"}
        roster = _make_roster(6, groups)
        opts = ScheduleOptions(by_group=True, court_count=1)
        result = build_schedule(list(roster), roster, opts, seed=4)
        assert result.ok
        assert all(roster[p].group == UNASSIGNED_GROUP
                   for m in result.matches for p in m.players)

    def test_by_group_all_too_small(self):
        groups = {"P1": "A", "P2": "A", "P3": "B"}
        roster = _make_roster(3, groups)
        result = build_schedule(list(roster), roster,
                                ScheduleOptions(by_group=True), seed=4)
        assert result.status is ScheduleStatus.INSUFFICIENT_PLAYERS

    def test_fixed_pattern_group_only_runs_per_group(self):
        groups = {f"P{i}": ("A" if i <= 5 else "B") for i in range(1, 11)}
        roster = _make_roster(10, groups)
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN, group_only=True)
        result = build_schedule(list(roster), roster, opts, seed=5)
        assert len(result.matches) == 10
        for m in result.matches:
            assert len({roster[p].group for p in m.players}) == 1

    def test_total_games_trim(self):
        roster = _make_roster(8)
        opts = ScheduleOptions(total_games=3)
        result = build_schedule(list(roster), roster, opts, seed=6)
        assert result.ok
        assert [m.court for m in result.matches] == [1, 2, 1]

    def test_total_games_trim_keeps_rounds_valid(self):
        # six players fill one court per round; the cut must not merge rounds
        roster = _make_roster(6)
        opts = ScheduleOptions(court_count=2, max_games=4, total_games=3)
        result = build_schedule(list(roster), roster, opts, seed=1)
        assert len(result.matches) == 3
        assert [m.court for m in result.matches] == [1, 1, 1]
        validation = validate_schedule(result.matches, roster, opts)
        assert validation["valid"], validation["errors"]

    def test_rng_argument(self):
        roster = _make_roster(8)
        a = build_schedule(list(roster), roster, ScheduleOptions(),
                           rng=random.Random(9))
        b = build_schedule(list(roster), roster, ScheduleOptions(), seed=9)
        assert a.matches == b.matches

    def test_budget_passed_through(self):
        roster = _make_roster(12)
        result = build_schedule(list(roster), roster, ScheduleOptions(), seed=1,
                                budget=SearchBudget(max_evaluations=100))
        assert result.status is ScheduleStatus.SEARCH_BUDGET_EXCEEDED
