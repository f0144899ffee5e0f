"""
vm_math.runtime.compute_meter — the compute-unit budget of one invocation.

The host owns a fresh ComputeMeter per invocation and charges it as the
program runs:

- Units are charged *before* the work they pay for.
- A charge that would overspend the budget raises ComputeBudgetExceeded and
  leaves the meter exactly as it was.
- `remaining` is the figure the program reads through its budget capability;
  it never goes negative.
"""
from __future__ import annotations

from ..errors import ComputeBudgetExceeded


def _units(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


class ComputeMeter:
    """
    Compute-unit budget.

        cm = ComputeMeter(limit=1_400_000)
        cm.consume(100)      # one syscall
        cm.remaining         # 1_399_900
    """

    __slots__ = ("_budget", "_spent")

    def __init__(self, *, limit: int) -> None:
        self._budget = _units(limit, "limit")
        self._spent = 0

    @property
    def limit(self) -> int:
        return self._budget

    @property
    def used(self) -> int:
        return self._spent

    @property
    def remaining(self) -> int:
        return self._budget - self._spent

    def consume(self, amount: int) -> None:
        """Charge `amount` units or raise ComputeBudgetExceeded without charging anything."""
        units = _units(amount, "consume amount")
        if units > self.remaining:
            raise ComputeBudgetExceeded(
                f"exceeded maximum compute units: need {units} (used {self._spent}, limit {self._budget})",
                data={"limit": self._budget, "used": self._spent, "requested": units},
            )
        self._spent += units

    def __repr__(self) -> str:  # pragma: no cover
        return f"ComputeMeter(limit={self._budget}, used={self._spent})"


__all__ = ["ComputeMeter"]
