"""
Contract Authoring Domain Models (``trade_modules.contracts.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of contract authoring: the
in-session ``ContractDraft`` aggregate, its monthly ``Quota`` schedule, the
read-only ``ContractTemplate`` a draft may be seeded from, and the
``CommitResult`` returned by the persistence coordinator.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Produced and
consumed by the wizard transition functions and by
``ContractPersistenceCoordinator``.

Invariants enforced
-------------------
* All models are ``frozen=True``; every draft edit returns a new draft.
* Tonnages and percentages use ``Decimal`` -- NEVER ``float``.
* Months are ``date`` values on the first day of the month.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from trade_modules.contracts.terms import (
    TERM_COLLECTIONS,
    Payable,
    Penalty,
    QualitySpec,
    RefiningExpense,
)


class ContractType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"


class ContractStatus(str, Enum):
    """Lifecycle status written on the contract row.

    The authoring engine only ever writes ``DRAFT``.
    """
    DRAFT = "draft"


@dataclass(frozen=True)
class Quota:
    """One month's contracted delivery allocation."""
    month: date
    tmh: Decimal  # wet metric tonnes
    tms: Decimal  # dry metric tonnes
    h2o_percentage: Decimal


@dataclass(frozen=True)
class ContractDraft:
    """
    Root aggregate of one wizard session.

    Term collections are tuples keyed by each term's ``temp_id``; their order
    is the order the user added them in, which is also the insert order at
    commit time.
    """
    contract_type: ContractType | None = ContractType.PURCHASE
    vendor_id: UUID | None = None
    buyer_id: UUID | None = None
    product_id: UUID | None = None
    country_id: UUID | None = None
    start_month: date | None = None
    end_month: date | None = None
    incoterm_id: UUID | None = None
    delivery_location: str = ""
    quotas: tuple[Quota, ...] = ()
    payables: tuple[Payable, ...] = ()
    penalties: tuple[Penalty, ...] = ()
    quality_specs: tuple[QualitySpec, ...] = ()
    refining_expenses: tuple[RefiningExpense, ...] = ()
    draft_id: UUID = field(default_factory=uuid4)

    def terms(self, collection: str) -> tuple:
        if collection not in TERM_COLLECTIONS:
            raise ValueError(f"Unknown term collection: {collection}")
        return getattr(self, collection)


@dataclass(frozen=True)
class TemplateSummary:
    id: UUID
    name: str
    contract_type: ContractType


@dataclass(frozen=True)
class ContractTemplate:
    """
    A read-only contract template.

    Only ``contract_type``, ``incoterm_code``, ``payables`` and ``penalties``
    seed a new draft; quality specs and refining expenses are loaded for
    preview only.
    """
    id: UUID
    name: str
    contract_type: ContractType
    incoterm_code: str | None = None
    payables: tuple[Payable, ...] = ()
    penalties: tuple[Penalty, ...] = ()
    quality_specs: tuple[QualitySpec, ...] = ()
    refining_expenses: tuple[RefiningExpense, ...] = ()


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a successful contract commit."""
    contract_id: UUID
    contract_number: str
    row_counts: dict[str, int] = field(default_factory=dict)
