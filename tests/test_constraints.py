"""Tests for constraints.py — schedule validation."""

from courtmatch.constraints import (
    format_validation_report, games_cap, rounds_of, validate_schedule,
)
from courtmatch.models import (
    GameType, Gender, Match, PairingMode, Player, ScheduleOptions,
)


def _make_match(t1, t2, court, game_type=GameType.DOUBLES):
    return Match(game_type, list(t1), list(t2), court)


def _make_roster():
    roster = {}
    for name in ("a", "b", "c", "d", "e", "f", "g", "h"):
        gender = Gender.M if name in "abcd" else Gender.F
        roster[name] = Player(name, gender, group="X" if name in "abef" else "Y")
    return roster


class TestRoundsOf:
    def test_full_rounds(self):
        matches = [_make_match("ab", "cd", c) for c in (1, 2, 1, 2)]
        assert [len(r) for r in rounds_of(matches, 2)] == [2, 2]

    def test_skipped_court_starts_new_round(self):
        matches = [_make_match("ab", "cd", c) for c in (1, 1, 2, 1)]
        assert [len(r) for r in rounds_of(matches, 2)] == [1, 2, 1]


class TestValidate:
    def test_valid_schedule(self):
        matches = [
            _make_match("ab", "cd", 1), _make_match("ef", "gh", 2),
            _make_match("ac", "bd", 1), _make_match("eg", "fh", 2),
        ]
        result = validate_schedule(matches, _make_roster(), ScheduleOptions(),
                                   list("abcdefgh"))
        assert result["valid"], result["errors"]
        assert result["warnings"] == []

    def test_double_booking(self):
        matches = [_make_match("ab", "cd", 1), _make_match("ae", "fg", 2)]
        result = validate_schedule(matches, _make_roster(), ScheduleOptions())
        assert not result["valid"]
        assert any("plays twice" in e for e in result["errors"])

    def test_double_booking_warning_for_fixed_pattern(self):
        matches = [_make_match("ab", "cd", 1), _make_match("ae", "fg", 2)]
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN)
        result = validate_schedule(matches, _make_roster(), opts)
        assert result["valid"]
        assert any("plays twice" in w for w in result["warnings"])

    def test_cap_exceeded(self):
        matches = [_make_match("ab", "cd", 1) for _ in range(3)]
        result = validate_schedule(matches, _make_roster(),
                                   ScheduleOptions(max_games=2, court_count=1))
        assert any("cap 2" in e for e in result["errors"])
        assert any("partner 3 times" in w for w in result["warnings"])

    def test_games_cap_for_fixed_pattern(self):
        opts = ScheduleOptions(mode=PairingMode.FIXED_PATTERN, max_games=2)
        assert games_cap(opts) == 4
        assert games_cap(ScheduleOptions(max_games=2)) == 2

    def test_mixed_rule(self):
        matches = [_make_match("ab", "ef", 1)]
        opts = ScheduleOptions(mode=PairingMode.MIXED, court_count=1)
        result = validate_schedule(matches, _make_roster(), opts)
        assert any("mixed" in e for e in result["errors"])

    def test_group_only(self):
        matches = [_make_match("ab", "ef", 1), _make_match("ac", "eg", 2)]
        opts = ScheduleOptions(group_only=True)
        result = validate_schedule(matches[:1], _make_roster(), opts)
        assert result["valid"]
        result = validate_schedule(matches[1:], _make_roster(), opts)
        assert any("mixes groups" in e for e in result["errors"])

    def test_arity_and_court(self):
        matches = [_make_match("a", "c", 3)]
        result = validate_schedule(matches, _make_roster(), ScheduleOptions())
        assert any("expected 2" in e for e in result["errors"])
        assert any("court outside" in e for e in result["errors"])

    def test_same_player_on_both_sides(self):
        matches = [_make_match("ab", "ac", 1)]
        result = validate_schedule(matches, _make_roster(), ScheduleOptions())
        assert any("appears twice" in e for e in result["errors"])

    def test_unknown_and_idle_players(self):
        matches = [_make_match("ab", "cz", 1)]
        result = validate_schedule(matches, _make_roster(), ScheduleOptions(),
                                   players=list("abcd"))
        assert any("z is not in the player list" in e for e in result["errors"])
        assert any("d has no games" in w for w in result["warnings"])

    def test_deleted_matches_ignored(self):
        matches = [_make_match("ab", "cd", 1, GameType.DELETED)] * 5
        result = validate_schedule(matches, _make_roster(),
                                   ScheduleOptions(max_games=1, court_count=1))
        assert result["valid"]


class TestReport:
    def test_report_lists_errors(self):
        result = {"valid": False, "errors": ["boom"], "warnings": ["hmm"]}
        text = format_validation_report(result)
        assert "INVALID (1 violations)" in text
        assert "ERROR: boom" in text
        assert "WARN: hmm" in text

    def test_report_valid(self):
        text = format_validation_report({"valid": True, "errors": [], "warnings": []})
        assert "RESULT: VALID" in text
