"""
vm_math.tests helpers

- Provides deterministic test defaults (Hypothesis profile).
- Pick a profile with HYPOTHESIS_PROFILE=local|ci (defaults to ci when CI is set).
"""

from __future__ import annotations

import os

from hypothesis import settings

# Local: fewer examples for snappy feedback; no deadline because metered runs are slow
settings.register_profile("local", settings(max_examples=60, deadline=None))
settings.register_profile("ci", settings(max_examples=250, deadline=None))
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE") or ("ci" if os.environ.get("CI") else "local"))
