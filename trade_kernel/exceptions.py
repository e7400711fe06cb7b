"""
Typed Exception Hierarchy for the Trade Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the contract authoring engine (a UI, an API handler, a batch
import) have to react differently to different failures: an incomplete draft
disables the save button, a misconfigured catalog is a setup problem for an
administrator, and a failed save must name the step that failed.  Parsing
message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        coordinator.commit(draft, actor_id)
    except DraftValidationError as e:
        disable_save(e.failed_sections)
    except ContractPersistenceError as e:
        notify(f"Save failed at step {e.step}", contract_id=e.contract_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TradeKernelError (base)
    |
    +-- ContractAuthoringError
        +-- DraftValidationError
        +-- CatalogMisconfigurationError
        +-- ContractPersistenceError
        +-- UnknownSectionError
        +-- TermNotFoundError
        +-- TemplateNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                    | When Raised
------------------------|-----------------------------------------------------
DRAFT_INCOMPLETE        | Save attempted before basic-info/incoterm complete
CATALOG_MISCONFIGURED   | Catalog lacks an entry a term type requires
CONTRACT_SAVE_FAILED    | A persistence step failed during commit
UNKNOWN_SECTION         | Navigation to a section id that does not exist
TERM_NOT_FOUND          | Edit/remove of a term id not present in the draft
TEMPLATE_NOT_FOUND      | Template id not present in contract_templates

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Navigation refusals are NOT exceptions.  ``SectionWizard.go_to_next``
   returns ``False``; the UI disables the control.  Only ``commit`` raises
   ``DraftValidationError``, because a caller that bypassed the disabled
   button must not get a silent no-op.

2. ``CatalogMisconfigurationError`` is deliberately NOT a subclass of
   ``DraftValidationError``.  It describes reference data, not user input.

===============================================================================
"""


class TradeKernelError(Exception):
    """
    Base exception for all trade kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TRADE_KERNEL_ERROR"


class ContractAuthoringError(TradeKernelError):
    """Base exception for contract authoring errors."""

    code: str = "CONTRACT_AUTHORING_ERROR"


class DraftValidationError(ContractAuthoringError):
    """The draft does not satisfy the section predicates required to save."""

    code: str = "DRAFT_INCOMPLETE"

    def __init__(self, failed_sections: list[str]):
        self.failed_sections = list(failed_sections)
        super().__init__(
            f"Draft incomplete; sections not valid: {', '.join(self.failed_sections)}"
        )


class CatalogMisconfigurationError(ContractAuthoringError):
    """
    Reference data is missing an entry the engine depends on.

    Raised, for example, when a payable is added but no payable formula
    carries the ``is_deduction`` flag.
    """

    code: str = "CATALOG_MISCONFIGURED"

    def __init__(self, catalog: str, requirement: str):
        self.catalog = catalog
        self.requirement = requirement
        super().__init__(f"Catalog '{catalog}' misconfigured: {requirement}")


class ContractPersistenceError(ContractAuthoringError):
    """
    A step of the contract commit failed.

    ``contract_id`` is set when the parent contract row was committed
    before the failure (non-atomic commits only); ``completed_steps`` lists
    the steps whose rows remain in the database.
    """

    code: str = "CONTRACT_SAVE_FAILED"

    def __init__(
        self,
        step: str,
        reason: str,
        contract_id: str | None = None,
        completed_steps: tuple[str, ...] = (),
        atomic: bool = True,
    ):
        self.step = step
        self.reason = reason
        self.contract_id = contract_id
        self.completed_steps = tuple(completed_steps)
        self.atomic = atomic
        message = f"Contract save failed at step '{step}': {reason}"
        if contract_id is not None:
            message += f" (partial contract {contract_id} left committed)"
        super().__init__(message)


class UnknownSectionError(ContractAuthoringError):
    """Section id is not part of the wizard's section list."""

    code: str = "UNKNOWN_SECTION"

    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__(f"Unknown wizard section: {section_id}")


class TermNotFoundError(ContractAuthoringError):
    """No term with the given temporary id exists in the draft collection."""

    code: str = "TERM_NOT_FOUND"

    def __init__(self, collection: str, temp_id: str):
        self.collection = collection
        self.temp_id = temp_id
        super().__init__(f"No term '{temp_id}' in {collection}")


class TemplateNotFoundError(ContractAuthoringError):
    """Contract template does not exist."""

    code: str = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Contract template not found: {template_id}")
