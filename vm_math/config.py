"""
vm_math.config — measurement constants and host limits.

This module centralizes configuration for the math kernel and its benchmark
harness. It has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (VM_MATH_*)
  2) Hardcoded defaults below

Key env vars:
  - VM_MATH_CU_CORRECTION       (int)  default: 102
  - VM_MATH_COMPUTE_MAX_UNITS   (int)  default: 1_400_000
  - VM_MATH_SYSCALL_BASE_COST   (int)  default: 100
  - VM_MATH_OPCODE_COST         (int)  default: 1
  - VM_MATH_LOG_LEVEL           (str)  default: WARNING

The correction constant is calibrated against one host profile (the no-op
request must report ~0). A host with a different syscall or opcode price
needs a new value; `vm_math.processor.calibrate_correction` measures it.

Usage:
    from vm_math.config import load_config
    CFG = load_config()
    host = LocalHost(compute_max_units=CFG.compute_max_units)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_level(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in _LEVELS else default


@dataclass(frozen=True)
class MathConfig:
    # Subtracted from every before/after delta (overhead of the measurement itself)
    cu_correction: int

    # Host profile
    compute_max_units: int
    syscall_base_cost: int
    opcode_cost: int

    log_level: str

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "cu_correction": self.cu_correction,
            "compute_max_units": self.compute_max_units,
            "syscall_base_cost": self.syscall_base_cost,
            "opcode_cost": self.opcode_cost,
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> MathConfig:
    """
    Build and cache a MathConfig from environment + defaults.
    """
    return MathConfig(
        cu_correction=_env_int("VM_MATH_CU_CORRECTION", 102, min_v=0, max_v=1_000_000),
        compute_max_units=_env_int(
            "VM_MATH_COMPUTE_MAX_UNITS", 1_400_000, min_v=1_000, max_v=100_000_000
        ),
        syscall_base_cost=_env_int("VM_MATH_SYSCALL_BASE_COST", 100, min_v=0, max_v=100_000),
        opcode_cost=_env_int("VM_MATH_OPCODE_COST", 1, min_v=1, max_v=1_000),
        log_level=_env_level("VM_MATH_LOG_LEVEL", "WARNING"),
    )


# Module-level singleton for convenience; load_config() stays the canonical
# accessor (cached, cleared in tests via load_config.cache_clear()).
CFG: MathConfig = load_config()

__all__ = ["MathConfig", "load_config", "CFG"]
