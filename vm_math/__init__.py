"""
vm_math — deterministic fixed-point / integer arithmetic and a compute-unit
benchmark harness for it.

This module exposes a tiny, stable façade so downstream tools can rely on a
consistent API:

- __version__ / version(): semantic version (optionally with a git describe suffix)
- encode(op, *operands) -> bytes
    Build the wire bytes of one benchmark request, e.g. encode("sqrt_u64", 2**64 - 1).
- bench(data, *, correction=None, compute_max_units=None) -> dict
    Run one request on a fresh LocalHost and return the invocation envelope.

The arithmetic itself lives in submodules (`vm_math.precise_number`,
`vm_math.sqrt`, `vm_math.scalar`, `vm_math.approximations`). Heavier imports
(numpy via the processor) are lazy so that `import vm_math` stays cheap.
"""

from __future__ import annotations

import importlib
from typing import Any, Dict, Optional

from .version import __version__ as __version__


def version() -> str:
    """Return the vm_math semantic version string."""
    return __version__


def encode(op: str, *operands: Any) -> bytes:
    """
    Encode a request by its snake_case name.

    Parameters
    ----------
    op : str
        Variant name, e.g. "sqrt_u64", "f64_pow", "noop".
    *operands :
        Operand values in declaration order.

    Raises
    ------
    DecodeError
        Unknown name, wrong arity or an operand outside its declared type.
    """
    instruction = importlib.import_module(".instruction", __name__)
    cls = instruction.by_name(op)
    return cls(*operands).encode()


def bench(
    data: bytes,
    *,
    correction: Optional[int] = None,
    compute_max_units: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run one encoded request and return the result envelope, e.g.
    {"ok": True, "logs": [...], "compute_units_consumed": N, "bench_units": M, ...}
    """
    processor = importlib.import_module(".processor", __name__)
    host_mod = importlib.import_module(".runtime.host", __name__)
    host = host_mod.LocalHost(compute_max_units=compute_max_units)
    return processor.run(data, host=host, correction=correction).to_dict()


__all__ = [
    "__version__",
    "version",
    "encode",
    "bench",
]
