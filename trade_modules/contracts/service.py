"""
Contract Persistence Coordinator (``trade_modules.contracts.service``).

Responsibility
--------------
Commits a finished ``ContractDraft`` as one parent contract row plus its
dependent record sets: quotas, payables, penalties, quality specs and
refining expenses.

Architecture position
---------------------
**Modules layer** -- imperative shell.  ``ContractPersistenceCoordinator``
is the sole write path for authored contracts.  It composes the pure
terms engine output (``EconomicTerm.to_record``) with the ORM models in
``trade_modules.contracts.orm``.

Invariants enforced
-------------------
* No write happens unless both the basic-info and the incoterm section
  predicates hold.
* Steps run in a fixed order; each dependent row carries the parent id
  produced by the contract step.
* Empty term collections are skipped.  The quota step is never empty
  because basic-info requires at least one quota.
* "No Aplica" terms are persisted with every nullable field set to NULL.
* Owns the transaction boundary: in atomic mode (default) one commit at
  the end, rollback on any failure.  In saga mode one commit per step.

Failure modes
-------------
* ``DraftValidationError`` -- draft incomplete; nothing written.
* ``ContractPersistenceError`` -- a step failed.  Atomic mode leaves no
  rows.  Saga mode leaves the parent and the completed steps committed and
  reports them on the exception; there is no automatic compensation.

Usage::

    coordinator = ContractPersistenceCoordinator(session, catalog, clock)
    result = coordinator.commit(session_state.draft, actor_id)
    result.contract_number  # "CTR-1704110400000"
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from trade_kernel.db.base import TrackedBase
from trade_kernel.domain.clock import Clock, SystemClock
from trade_kernel.exceptions import ContractPersistenceError, DraftValidationError
from trade_kernel.logging_config import LogContext, get_logger
from trade_modules.contracts.catalog import EconomicTermCatalog
from trade_modules.contracts.config import ContractAuthoringConfig
from trade_modules.contracts.models import CommitResult, ContractDraft, ContractStatus
from trade_modules.contracts.orm import (
    ContractModel,
    ContractPayableModel,
    ContractPenaltyModel,
    ContractQualitySpecModel,
    ContractQuotaModel,
    ContractRefiningExpenseModel,
)
from trade_modules.contracts.wizard import failed_save_sections

logger = get_logger("modules.contracts.service")

CONTRACT_STEP = "contract"
QUOTAS_STEP = "quotas"
FINAL_COMMIT_STEP = "commit"

# Draft term collection -> row model, in insert order
TERM_ROW_MODELS: dict[str, type] = {
    "payables": ContractPayableModel,
    "penalties": ContractPenaltyModel,
    "quality_specs": ContractQualitySpecModel,
    "refining_expenses": ContractRefiningExpenseModel,
}

COMMIT_STEPS: tuple[str, ...] = (CONTRACT_STEP, QUOTAS_STEP, *TERM_ROW_MODELS)


class ContractPersistenceCoordinator:
    """
    Writes an authored contract and its dependent records.

    Contract:
        ``commit`` validates, then writes the steps in ``COMMIT_STEPS``
        order.  Returns a ``CommitResult`` or raises.

    Non-goals:
        - Does NOT support cancelling an in-flight commit.
        - Does NOT compensate partial saga commits; the exception carries
          what an administrator needs to reconcile them.
    """

    def __init__(
        self,
        session: Session,
        catalog: EconomicTermCatalog,
        clock: Clock | None = None,
        config: ContractAuthoringConfig | None = None,
    ):
        self._session = session
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._config = config or ContractAuthoringConfig.with_defaults()

    @property
    def atomic(self) -> bool:
        return self._config.atomic_commit

    def next_contract_number(self) -> str:
        return f"{self._config.contract_number_prefix}-{self._clock.epoch_millis()}"

    def commit(self, draft: ContractDraft, actor_id: UUID) -> CommitResult:
        """
        Persist ``draft`` as a new contract with status ``draft``.

        Raises:
            DraftValidationError: basic-info or incoterm incomplete.
            ContractPersistenceError: a write step failed.
        """
        failed = failed_save_sections(draft)
        if failed:
            logger.warning("contract_commit_rejected", extra={
                "draft_id": draft.draft_id,
                "failed_sections": failed,
            })
            raise DraftValidationError(failed)

        with LogContext.bind(actor_id=actor_id, draft_id=draft.draft_id):
            return self._commit_steps(draft, actor_id)

    # =========================================================================
    # Steps
    # =========================================================================

    def _commit_steps(self, draft: ContractDraft, actor_id: UUID) -> CommitResult:
        contract_number = self.next_contract_number()
        atomic = self.atomic
        logger.info("contract_commit_started", extra={
            "contract_number": contract_number,
            "atomic": atomic,
            "quota_count": len(draft.quotas),
            "payable_count": len(draft.payables),
            "penalty_count": len(draft.penalties),
            "quality_spec_count": len(draft.quality_specs),
            "refining_expense_count": len(draft.refining_expenses),
        })

        dependent_steps: list[tuple[str, Callable[[UUID], list[TrackedBase]]]] = [
            (QUOTAS_STEP, lambda cid: self._quota_rows(draft, cid, actor_id)),
        ]
        for collection, model in TERM_ROW_MODELS.items():
            if draft.terms(collection):
                dependent_steps.append(
                    (collection, self._term_rows_builder(draft, collection, model, actor_id))
                )

        step = CONTRACT_STEP
        contract_id: UUID | None = None
        completed: list[str] = []
        row_counts: dict[str, int] = {}
        try:
            contract = self._contract_row(draft, contract_number, actor_id)
            self._write(step, [contract], atomic)
            contract_id = contract.id
            completed.append(step)
            row_counts[step] = 1

            for step, build_rows in dependent_steps:
                rows = build_rows(contract_id)
                self._write(step, rows, atomic)
                completed.append(step)
                row_counts[step] = len(rows)

            if atomic:
                step = FINAL_COMMIT_STEP
                self._session.commit()
        except Exception as exc:
            self._session.rollback()
            orphan_id = None if atomic or contract_id is None else str(contract_id)
            logger.error("contract_step_failed", extra={
                "step": step,
                "contract_number": contract_number,
                "atomic": atomic,
                "orphaned_contract_id": orphan_id,
                "completed_steps": [] if atomic else completed,
            }, exc_info=True)
            raise ContractPersistenceError(
                step=step,
                reason=str(exc),
                contract_id=orphan_id,
                completed_steps=() if atomic else tuple(completed),
                atomic=atomic,
            ) from exc

        logger.info("contract_committed", extra={
            "contract_id": contract_id,
            "contract_number": contract_number,
            "row_counts": row_counts,
        })
        return CommitResult(
            contract_id=contract_id,
            contract_number=contract_number,
            row_counts=row_counts,
        )

    def _write(self, step: str, rows: list[TrackedBase], atomic: bool) -> None:
        self._session.add_all(rows)
        if atomic:
            self._session.flush()
        else:
            self._session.commit()
        logger.debug("contract_step_completed", extra={
            "step": step,
            "row_count": len(rows),
        })

    def _contract_row(
        self, draft: ContractDraft, contract_number: str, actor_id: UUID
    ) -> ContractModel:
        return ContractModel(
            contract_number=contract_number,
            contract_type=draft.contract_type.value,
            vendor_id=draft.vendor_id,
            buyer_id=draft.buyer_id,
            product_id=draft.product_id,
            country_id=draft.country_id,
            start_month=draft.start_month,
            end_month=draft.end_month,
            incoterm_id=draft.incoterm_id,
            delivery_location=draft.delivery_location.strip(),
            status=ContractStatus.DRAFT.value,
            created_by_id=actor_id,
        )

    def _quota_rows(
        self, draft: ContractDraft, contract_id: UUID, actor_id: UUID
    ) -> list[TrackedBase]:
        return [
            ContractQuotaModel.from_record(contract_id, asdict(quota), actor_id)
            for quota in draft.quotas
        ]

    def _term_rows_builder(
        self, draft: ContractDraft, collection: str, model: type, actor_id: UUID
    ) -> Callable[[UUID], list[TrackedBase]]:
        def build(contract_id: UUID) -> list[TrackedBase]:
            return [
                model.from_record(contract_id, term.to_record(self._catalog), actor_id)
                for term in draft.terms(collection)
            ]
        return build
