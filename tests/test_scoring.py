"""Tests for scoring.py — run-state and cost functions."""

import random

from courtmatch.scoring import (
    DOUBLES_WEIGHTS, NEVER_PLAYED, MixedScorer, PairingScorer, RunState,
    SinglesScorer, estimate_total_rounds, team_average,
)


def _make_state(n=8):
    return RunState([f"P{i}" for i in range(1, n + 1)])


def _no_jitter_scorer(state, **kwargs):
    scorer = PairingScorer(state, max_games=4, total_rounds=4,
                           rng=random.Random(0), **kwargs)
    scorer.rng = _ZeroRng()
    return scorer


class _ZeroRng:
    def random(self):
        return 0.0


class TestRunState:
    def test_initial(self):
        state = _make_state(4)
        assert all(g == 0 for g in state.games.values())
        assert state.last_round["P1"] == NEVER_PLAYED

    def test_record_updates_counts(self):
        state = _make_state(4)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        assert state.partners("P2", "P1") == 1
        assert state.opponents("P1", "P3") == 1
        assert state.opponents("P1", "P2") == 0
        assert state.last_partner["P1"] == "P2"
        assert state.last_opponents["P3"] == {"P1", "P2"}
        assert state.last_round["P4"] == 1
        assert state.rounds_since("P4", 3) == 2

    def test_projected_spread(self):
        state = _make_state(6)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        # P5 and P6 catching up closes the gap
        assert state.projected_spread(["P5", "P6"]) == 0
        # P1 going again widens it
        assert state.projected_spread(["P1", "P5"]) == 2

    def test_estimate_total_rounds(self):
        # 8 players x 4 games / 4 per match = 8 matches, 2 courts -> 4 rounds
        assert estimate_total_rounds(8, 4, 2, 4) == 4
        # 5 players only fill one court
        assert estimate_total_rounds(5, 4, 2, 4) == 5
        assert estimate_total_rounds(0, 4, 2, 4) == 1

    def test_team_average_ignores_unknown(self):
        ratings = {"a": 3.0, "b": None}
        assert team_average(["a", "b"], ratings) == 3.0
        assert team_average(["b"], ratings) == 0.0


class TestPairingScorer:
    def test_fresh_state_scores_zero_without_rating(self):
        state = _make_state(4)
        scorer = _no_jitter_scorer(state)
        assert scorer.score(["P1", "P2"], ["P3", "P4"], 1) == 0.0

    def test_repeat_partner_costs_more(self):
        state = _make_state(8)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        scorer = _no_jitter_scorer(state)
        repeat = scorer.score(["P1", "P2"], ["P5", "P6"], 3)
        fresh = scorer.score(["P1", "P5"], ["P2", "P6"], 3)
        assert repeat > fresh

    def test_gap_penalties(self):
        state = _make_state(4)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        scorer = _no_jitter_scorer(state)
        assert scorer.gap_penalty("P1", 2) == DOUBLES_WEIGHTS.gap_1
        assert scorer.gap_penalty("P1", 3) == DOUBLES_WEIGHTS.gap_2
        assert scorer.gap_penalty("P1", 4) == 0.0

    def test_pace_penalty_only_when_ahead(self):
        state = _make_state(4)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        state.record(["P1", "P2"], ["P3", "P4"], 2)
        scorer = _no_jitter_scorer(state)
        # round 1 of 4 expects 1 game; a third game is well ahead
        assert scorer.pace_penalty("P1", 1) > 0
        assert scorer.pace_penalty("P1", 4) == 0.0

    def test_rating_gap(self):
        state = _make_state(4)
        ratings = {"P1": 4.0, "P2": 4.0, "P3": 3.0, "P4": 3.0}
        scorer = _no_jitter_scorer(state, ratings=ratings)
        lopsided = scorer.score(["P1", "P2"], ["P3", "P4"], 1)
        balanced = scorer.score(["P1", "P3"], ["P2", "P4"], 1)
        assert lopsided == DOUBLES_WEIGHTS.rating
        assert balanced == 0.0

    def test_seeded_jitter_is_reproducible(self):
        s1 = PairingScorer(_make_state(4), 4, 4, random.Random(7))
        s2 = PairingScorer(_make_state(4), 4, 4, random.Random(7))
        assert s1.score(["P1", "P2"], ["P3", "P4"], 1) == \
            s2.score(["P1", "P2"], ["P3", "P4"], 1)


class TestSinglesAndMixed:
    def test_singles_prefers_new_opponent(self):
        state = _make_state(4)
        state.record(["P1"], ["P2"], 1)
        scorer = SinglesScorer(state, _ZeroRng())
        assert scorer.score("P1", "P2", 4) > scorer.score("P1", "P3", 4)

    def test_singles_unknown_rating_uses_default(self):
        state = _make_state(2)
        scorer = SinglesScorer(state, _ZeroRng(), ratings={"P1": 2.0, "P2": None})
        assert scorer.score("P1", "P2", 1) == 0.0

    def test_mixed_partner_repeat_flat(self):
        state = _make_state(4)
        state.record(["P1", "P2"], ["P3", "P4"], 1)
        scorer = MixedScorer(state, _ZeroRng())
        repeat = scorer.score(["P1", "P2"], ["P3", "P4"])
        swapped = scorer.score(["P1", "P4"], ["P3", "P2"])
        # two repeated teams, two fewer repeated cross pairs
        assert repeat - swapped == 2 * 200.0 + 2 * 25.0
