"""
Contracts Module (``trade_modules.contracts``).

Responsibility
--------------
Contract authoring for concentrate purchase and sale contracts: the
multi-section wizard, the monthly quota schedule derived from the delivery
window, the economic terms engine (payables, penalties, quality specs,
refining expenses) and the coordinator that persists a finished draft.

Architecture position
---------------------
**Modules layer** -- pure domain logic (``quotas``, ``terms``, ``wizard``)
over frozen value objects (``models``, ``catalog``), with ``loader`` and
``service`` as the only database-facing parts.

Invariants enforced
-------------------
* Navigation and save are gated on the basic-info and incoterm predicates.
* Formula text rendering never raises; incomplete terms render ``""``.
* "No Aplica" terms persist with their nullable fields set to NULL.
* Contract saves are atomic unless ``atomic_commit`` is switched off.

Failure modes
-------------
* ``DraftValidationError``, ``CatalogMisconfigurationError``,
  ``ContractPersistenceError`` -- see ``trade_kernel.exceptions``.

Usage::

    catalog = CatalogLoader(session).load()
    draft_session = DraftSession(catalog)
    draft_session.dispatch("set_field", name="vendor_id", value=vendor_id)
    draft_session.dispatch("set_start_month", value="2024-01")
    draft_session.dispatch("set_end_month", value="2024-06")
    payable = draft_session.dispatch("add_term", collection="payables")
    ...
    ContractPersistenceCoordinator(session, catalog).commit(draft_session.draft, actor_id)
"""

from trade_modules.contracts.catalog import EconomicTermCatalog
from trade_modules.contracts.config import ContractAuthoringConfig
from trade_modules.contracts.loader import CatalogLoader
from trade_modules.contracts.models import (
    CommitResult,
    ContractDraft,
    ContractStatus,
    ContractTemplate,
    ContractType,
    Quota,
)
from trade_modules.contracts.quotas import generate_quotas, months_between_inclusive
from trade_modules.contracts.service import ContractPersistenceCoordinator
from trade_modules.contracts.terms import (
    EconomicTerm,
    EconomicTermsEngine,
    Payable,
    Penalty,
    QualitySpec,
    RefiningExpense,
)
from trade_modules.contracts.wizard import DraftSession, SectionWizard
from trade_modules.contracts.workflows import CONTRACT_WIZARD_WORKFLOW, SECTIONS

__all__ = [
    "CONTRACT_WIZARD_WORKFLOW",
    "SECTIONS",
    "CatalogLoader",
    "CommitResult",
    "ContractAuthoringConfig",
    "ContractDraft",
    "ContractPersistenceCoordinator",
    "ContractStatus",
    "ContractTemplate",
    "ContractType",
    "DraftSession",
    "EconomicTerm",
    "EconomicTermCatalog",
    "EconomicTermsEngine",
    "Payable",
    "Penalty",
    "QualitySpec",
    "Quota",
    "RefiningExpense",
    "SectionWizard",
    "generate_quotas",
    "months_between_inclusive",
]
