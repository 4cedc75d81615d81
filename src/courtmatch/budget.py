"""Evaluation and wall-clock ceiling for the combinatorial search."""

import time
from typing import Optional

DEFAULT_MAX_EVALUATIONS = 2_000_000


class BudgetExceeded(Exception):
    """Raised inside a search loop when its SearchBudget runs out.

    Schedulers catch it and turn it into a SEARCH_BUDGET_EXCEEDED result;
    it never escapes a public generation call.
    """


class SearchBudget:
    """Counts scored candidates and optionally elapsed seconds.

    A budget is started by the scheduler that uses it, so one instance can
    be reused across calls.
    """

    def __init__(self, max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
                 time_limit: Optional[float] = None):
        if max_evaluations < 1:
            raise ValueError("max_evaluations must be positive")
        self.max_evaluations = max_evaluations
        self.time_limit = time_limit
        self.evaluations = 0
        self._started = time.monotonic()

    def start(self) -> "SearchBudget":
        self.evaluations = 0
        self._started = time.monotonic()
        return self

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    def charge(self, n: int = 1) -> None:
        self.evaluations += n
        if self.evaluations > self.max_evaluations:
            raise BudgetExceeded(
                f"search exceeded {self.max_evaluations} evaluations"
            )
        # Clock is sampled every 256 evaluations.
        if (self.time_limit is not None
                and self.evaluations // 256 != (self.evaluations - n) // 256):
            if self.elapsed > self.time_limit:
                raise BudgetExceeded(
                    f"search exceeded {self.time_limit:.1f}s time limit"
                )
