"""Tests for config.py — parsing and loading."""

from pathlib import Path

import pytest

from courtmatch.config import (
    load_archive, load_config, parse_options, parse_player, parse_rating,
    parse_result,
)
from courtmatch.models import (
    UNASSIGNED_GROUP, GameType, Gender, ManualGenderMode, PairingMode, Side,
)

ROOT = Path(__file__).resolve().parent.parent


class TestParseRating:
    def test_numbers(self):
        assert parse_rating(3.5) == 3.5
        assert parse_rating("4") == 4.0

    def test_blank_and_unknown(self):
        assert parse_rating(None) is None
        assert parse_rating("") is None
        assert parse_rating("Unknown") is None

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_rating("great")


class TestParsers:
    def test_player_defaults(self):
        p = parse_player({"name": "Kim"})
        assert p.gender is Gender.M
        assert p.group == UNASSIGNED_GROUP
        assert p.ntrp is None

    def test_player_fields(self):
        p = parse_player({"name": "Lee", "gender": "여", "group": "A",
                          "ntrp": "3.5", "admin_ntrp": 4, "team": "Red"})
        assert p.gender is Gender.F
        assert p.admin_ntrp == 4.0
        assert p.team == "Red"

    def test_options(self):
        opts = parse_options({"mode": "same-gender", "game_type": "singles",
                              "court_count": 3, "total_games": 5})
        assert opts.mode is PairingMode.SAME_GENDER
        assert opts.game_type is GameType.SINGLES
        assert opts.court_count == 3
        assert opts.total_games == 5

    def test_options_rejects_zero_courts(self):
        with pytest.raises(ValueError):
            parse_options({"court_count": 0})

    def test_result(self):
        r = parse_result({"t1": 6, "t2": 4, "sides": {"a": "Deuce"}})
        assert r.outcome() == "W"
        assert r.sides["a"] is Side.DEUCE


class TestLoadConfig:
    def test_loads_real_config(self):
        config = load_config(ROOT / "config.yaml")
        assert len(config["roster"]) == 10
        assert config["players"] == list(config["roster"])
        assert config["options"].court_count == 2
        assert config["options"].balance_by_rating
        assert config["roster"]["Dana"].ntrp is None
        assert config["roster"]["Ivan"].group == UNASSIGNED_GROUP
        assert config["team_assignments"]["Alice"] == "Blue"
        assert config["archive"] == (ROOT / "archive.yaml").resolve()
        assert config["warnings"] == []

    def test_minimal_config(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("roster:\n  - name: a\n  - name: b\n")
        config = load_config(path)
        assert config["players"] == ["a", "b"]
        assert config["options"].mode is PairingMode.RANDOM
        assert config["manual_slots"] is None
        assert config["archive"] is None
        assert config["budget"].time_limit is None

    def test_duplicate_roster_name(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("roster:\n  - name: a\n  - name: a\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_warnings(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text(
            "roster:\n  - name: a\n"
            "attending: [a, ghost]\n"
            "team_assignments: {nobody: X}\n"
            "session:\n  seed_players: [b]\n"
        )
        config = load_config(path)
        assert len(config["warnings"]) == 3

    def test_manual_grid_and_search(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text(
            "roster:\n  - name: a\n  - name: b\n"
            "session:\n  manual_mode: true\n  manual_gender_mode: women-only\n"
            "manual_slots:\n"
            "  - - {team1: [a, null], team2: [null, null], selected: true}\n"
            "search:\n  max_evaluations: 500\n  time_limit_seconds: 2.5\n"
        )
        config = load_config(path)
        slot = config["manual_slots"][0][0]
        assert slot.team1 == ["a", None]
        assert slot.selected
        assert config["manual_gender_mode"] is ManualGenderMode.WOMEN_ONLY
        assert config["budget"].max_evaluations == 500
        assert config["budget"].time_limit == 2.5

    def test_null_sections(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("roster:\n  - name: a\n  - name: b\nsession:\nsearch:\n")
        config = load_config(path)
        assert config["options"].mode is PairingMode.RANDOM
        assert config["budget"].time_limit is None

    def test_quoted_time_limit(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("roster:\n  - name: a\n"
                        "search:\n  time_limit_seconds: '2.5'\n")
        config = load_config(path)
        assert config["budget"].time_limit == 2.5
        assert isinstance(config["budget"].time_limit, float)


class TestLoadArchive:
    def test_loads_real_archive(self):
        sessions = load_archive(ROOT / "archive.yaml")
        assert set(sessions) == {"2026-09-01", "2026-09-08", "2026-09-15"}
        day = sessions["2026-09-01"]
        assert len(day.schedule) == 4
        assert day.result_for(1).outcome() == "W"
        assert day.result_for(4).outcome() == "D"
        assert sessions["2026-09-08"].schedule[2].game_type is GameType.SINGLES
        assert sessions["2026-09-15"].special_match

    def test_out_of_range_result_dropped(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text(
            "'2026-01-01':\n"
            "  schedule:\n    - {team1: [a, b], team2: [c, d]}\n"
            "  results:\n    1: {t1: 6, t2: 1}\n    5: {t1: 6, t2: 1}\n"
        )
        sessions = load_archive(path)
        assert list(sessions["2026-01-01"].results) == [1]
