from __future__ import annotations

from typing import Iterable, List, Optional

import pytest

from vm_math.config import load_config
from vm_math.runtime.host import LocalHost


class ScriptedContext:
    """
    Unmetered stand-in for a host: `remaining_compute_units()` replays a
    scripted sequence of readings so cost arithmetic can be checked exactly.
    """

    def __init__(self, readings: Iterable[int]) -> None:
        self._readings = list(readings)
        self.logs: List[str] = []
        self.return_data: Optional[bytes] = None
        self.reads = 0

    def remaining_compute_units(self) -> int:
        value = self._readings[self.reads]
        self.reads += 1
        return value

    def log(self, message: str) -> None:
        self.logs.append(message)

    def log_compute_units(self) -> None:
        pass

    def set_return_data(self, data: bytes) -> None:
        self.return_data = bytes(data)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Each test sees the environment it sets, not a config cached by an earlier test."""
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture()
def host() -> LocalHost:
    return LocalHost(compute_max_units=1_400_000, syscall_base_cost=100, opcode_cost=1)


@pytest.fixture()
def scripted():
    return ScriptedContext
