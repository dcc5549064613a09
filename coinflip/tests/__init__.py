"""
coinflip.tests
--------------
Test package for the coin flip core.

Notes:
- Tests inject deterministic entropy sources where they need reproducible
  secrets; production code always uses os.urandom.
- Metrics are recorded into throwaway registries so tests stay independent.
"""

from __future__ import annotations

__all__: tuple[str, ...] = ()
