"""Tests for budget.py — search ceilings."""

import pytest

from courtmatch.budget import BudgetExceeded, SearchBudget


class TestSearchBudget:
    def test_counts_until_limit(self):
        budget = SearchBudget(max_evaluations=10).start()
        for _ in range(10):
            budget.charge()
        with pytest.raises(BudgetExceeded):
            budget.charge()

    def test_bulk_charge(self):
        budget = SearchBudget(max_evaluations=10).start()
        with pytest.raises(BudgetExceeded):
            budget.charge(11)

    def test_start_resets(self):
        budget = SearchBudget(max_evaluations=5).start()
        budget.charge(5)
        budget.start()
        budget.charge(5)
        assert budget.evaluations == 5

    def test_time_limit(self):
        budget = SearchBudget(time_limit=0.0).start()
        budget._started -= 1.0
        with pytest.raises(BudgetExceeded):
            budget.charge(256)

    def test_invalid(self):
        with pytest.raises(ValueError):
            SearchBudget(max_evaluations=0)
