"""
vm_math runtime package: the metered host that benchmark programs run in.

    from vm_math.runtime import LocalHost, ComputeMeter

Notes
-----
- Costs are counted in interpreter instructions plus a flat price per host
  call; see `vm_math.runtime.host` for the model.
- No wall-clock timing is involved, so repeated runs report the same numbers.
"""

from __future__ import annotations

from .compute_meter import ComputeMeter
from .host import InvocationContext, InvocationResult, LocalHost, Program

__all__ = [
    "ComputeMeter",
    "InvocationContext",
    "InvocationResult",
    "LocalHost",
    "Program",
]
