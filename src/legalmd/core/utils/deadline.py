"""Wall-clock budgets for stages that can run away on pathological input"""

import time

from legalmd.errors import BudgetExceededError


class Deadline:
    """A monotonic-clock budget; check() raises once the budget is spent."""

    def __init__(self, seconds: float, stage: str):
        self.seconds = seconds
        self.stage = stage
        self._expires = time.monotonic() + seconds

    def expired(self) -> bool:
        return time.monotonic() >= self._expires

    def check(self, snippet: str = "") -> None:
        """Raise BudgetExceededError if the budget is spent."""
        if self.expired():
            raise BudgetExceededError(
                f"{self.stage} exceeded its {self.seconds:g}s budget",
                stage=self.stage,
                budget=self.seconds,
                snippet=snippet,
            )
