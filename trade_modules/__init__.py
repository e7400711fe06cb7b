"""
Trade Modules.

Domain modules built on the trade kernel.  Each module contains:
- Domain models (the nouns, as frozen dataclasses)
- Workflows (state machine definitions)
- Configuration schemas
- ORM persistence models and a service facade

Modules:
- Contracts: commodity purchase/sale contract authoring (wizard, quota
  schedule, economic terms, persistence)
"""

from trade_modules import contracts

__all__ = [
    "contracts",
]
