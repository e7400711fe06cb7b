"""
Section Wizard (``trade_modules.contracts.wizard``).

Responsibility
--------------
Runs the contract authoring session: sequences the wizard sections with
per-section completion gates, applies user edits to the draft through pure
transition functions, and gates the save action.

Architecture position
---------------------
**Modules layer** -- pure state handling, ZERO I/O.  ``DraftSession`` is the
explicit state container a UI (or API handler) drives through
``dispatch``; the finished draft is handed to
``ContractPersistenceCoordinator``.

Invariants enforced
-------------------
* ``go_to_next`` moves only when the current section is valid and a next
  section exists.  ``go_to_previous`` and ``go_to_section`` never validate.
* Only basic-info and incoterm have completion criteria.  Every other
  section is valid for navigation and reports "incomplete" for display.
* Save is gated on basic-info AND incoterm, whatever section is shown.
* Changing either delivery month regenerates the quota table once both
  months are set.  Regeneration replaces the table and discards hand edits.

Failure modes
-------------
* Refused navigation returns ``False``; it never raises.
* ``UnknownSectionError`` on ``go_to_section`` with an id outside the list.
* ``TermNotFoundError`` on update/remove of an absent term.
* ``CatalogMisconfigurationError`` propagates from adding a payable.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Callable
from trade_kernel.db.types import uuid_from_input
from trade_kernel.domain.workflow import Workflow
from trade_kernel.exceptions import TermNotFoundError, UnknownSectionError
from trade_kernel.logging_config import LogContext, get_logger
from trade_modules.contracts.catalog import EconomicTermCatalog
from trade_modules.contracts.config import ContractAuthoringConfig
from trade_modules.contracts.models import ContractDraft, ContractTemplate, ContractType
from trade_modules.contracts.quotas import generate_quotas, parse_month, update_quota
from trade_modules.contracts.terms import TERM_COLLECTIONS, EconomicTerm, EconomicTermsEngine
from trade_modules.contracts.workflows import (
    BASIC_INFO,
    BASIC_INFO_COMPLETE_GUARD,
    CONTRACT_WIZARD_WORKFLOW,
    INCOTERM,
    INCOTERM_COMPLETE_GUARD,
)

logger = get_logger("modules.contracts.wizard")

SECTION_COMPLETE = "complete"
SECTION_INCOMPLETE = "incomplete"

_REFERENCE_FIELDS = ("vendor_id", "buyer_id", "product_id", "country_id", "incoterm_id")


# =============================================================================
# Section predicates
# =============================================================================


def is_basic_section_valid(draft: ContractDraft) -> bool:
    return (
        draft.contract_type is not None
        and draft.vendor_id is not None
        and draft.buyer_id is not None
        and draft.product_id is not None
        and draft.country_id is not None
        and draft.start_month is not None
        and draft.end_month is not None
        and len(draft.quotas) > 0
    )


def is_incoterm_section_valid(draft: ContractDraft) -> bool:
    return draft.incoterm_id is not None and bool(draft.delivery_location.strip())


# Guard name -> predicate
GUARD_PREDICATES: dict[str, Callable[[ContractDraft], bool]] = {
    BASIC_INFO_COMPLETE_GUARD.name: is_basic_section_valid,
    INCOTERM_COMPLETE_GUARD.name: is_incoterm_section_valid,
}

SAVE_REQUIRED_SECTIONS: dict[str, Callable[[ContractDraft], bool]] = {
    BASIC_INFO: is_basic_section_valid,
    INCOTERM: is_incoterm_section_valid,
}


def failed_save_sections(draft: ContractDraft) -> list[str]:
    """Sections whose predicate blocks saving, in wizard order."""
    return [sid for sid, predicate in SAVE_REQUIRED_SECTIONS.items() if not predicate(draft)]


def can_save(draft: ContractDraft) -> bool:
    return not failed_save_sections(draft)


# =============================================================================
# Navigation
# =============================================================================


class SectionWizard:
    """
    Finite-state sequencer over the wizard sections.

    The section graph comes from a ``Workflow``; this class evaluates its
    guards against the draft.
    """

    def __init__(self, workflow: Workflow = CONTRACT_WIZARD_WORKFLOW):
        self._workflow = workflow
        self._current = workflow.initial_state

    @property
    def current_section(self) -> str:
        return self._current

    @property
    def sections(self) -> tuple[str, ...]:
        return self._workflow.states

    def is_section_valid(self, section_id: str, draft: ContractDraft) -> bool:
        """Whether navigation out of ``section_id`` is allowed."""
        self._require_known(section_id)
        predicate = SAVE_REQUIRED_SECTIONS.get(section_id)
        return predicate(draft) if predicate is not None else True

    def section_status(self, section_id: str, draft: ContractDraft) -> str:
        """
        Display status of a section.

        Sections without completion criteria always report "incomplete";
        that status never blocks navigation.
        """
        self._require_known(section_id)
        predicate = SAVE_REQUIRED_SECTIONS.get(section_id)
        if predicate is not None and predicate(draft):
            return SECTION_COMPLETE
        return SECTION_INCOMPLETE

    def can_save(self, draft: ContractDraft) -> bool:
        return can_save(draft)

    def go_to_next(self, draft: ContractDraft) -> bool:
        transition = self._workflow.find_transition(self._current, "next")
        if transition is None:
            logger.debug("wizard_navigation_refused", extra={
                "section": self._current, "reason": "last_section",
            })
            return False
        if transition.guard is not None:
            predicate = GUARD_PREDICATES[transition.guard.name]
            if not predicate(draft):
                logger.info("wizard_navigation_refused", extra={
                    "section": self._current,
                    "reason": "guard_failed",
                    "guard": transition.guard.name,
                })
                return False
        self._move(transition.to_state, "next")
        return True

    def go_to_previous(self) -> bool:
        transition = self._workflow.find_transition(self._current, "previous")
        if transition is None:
            return False
        self._move(transition.to_state, "previous")
        return True

    def go_to_section(self, section_id: str) -> None:
        """Jump to any section without validating the current one."""
        self._require_known(section_id)
        self._move(section_id, "jump")

    def _move(self, section_id: str, via: str) -> None:
        logger.debug("wizard_section_changed", extra={
            "from_section": self._current, "to_section": section_id, "via": via,
        })
        self._current = section_id

    def _require_known(self, section_id: str) -> None:
        if section_id not in self._workflow.states:
            raise UnknownSectionError(section_id)


# =============================================================================
# Draft transitions (pure: each returns a new draft)
# =============================================================================


def _coerce_month(value: Any) -> date | None:
    if value is None or value == "":
        return None
    return parse_month(value)


def set_field(draft: ContractDraft, name: str, value: Any) -> ContractDraft:
    """
    Set one basic-info or incoterm field.

    Delivery months go through ``set_start_month`` / ``set_end_month`` so the
    quota table follows them.

    Raises:
        TypeError: On a field that is not directly settable.
        ValueError: On a malformed id or contract type.
    """
    if name == "contract_type":
        value = ContractType(value) if value not in (None, "") else None
    elif name in _REFERENCE_FIELDS:
        value = uuid_from_input(value)
    elif name == "delivery_location":
        value = "" if value is None else str(value)
    else:
        raise TypeError(f"Draft field '{name}' cannot be set directly")
    return replace(draft, **{name: value})


def _regenerate_quotas(
    draft: ContractDraft, config: ContractAuthoringConfig | None
) -> ContractDraft:
    if draft.start_month is None or draft.end_month is None:
        return draft
    config = config or ContractAuthoringConfig.with_defaults()
    quotas = generate_quotas(
        draft.start_month,
        draft.end_month,
        tmh=config.default_quota_tmh,
        tms=config.default_quota_tms,
        h2o_percentage=config.default_quota_h2o,
    )
    if draft.quotas and draft.quotas != quotas:
        logger.info("quotas_regenerated", extra={
            "previous_count": len(draft.quotas), "quota_count": len(quotas),
        })
    return replace(draft, quotas=quotas)


def set_start_month(
    draft: ContractDraft, value: Any, config: ContractAuthoringConfig | None = None
) -> ContractDraft:
    month = _coerce_month(value)
    if month == draft.start_month:
        return draft
    return _regenerate_quotas(replace(draft, start_month=month), config)


def set_end_month(
    draft: ContractDraft, value: Any, config: ContractAuthoringConfig | None = None
) -> ContractDraft:
    month = _coerce_month(value)
    if month == draft.end_month:
        return draft
    return _regenerate_quotas(replace(draft, end_month=month), config)


def set_quota(draft: ContractDraft, index: int, **changes: Any) -> ContractDraft:
    return replace(draft, quotas=update_quota(draft.quotas, index, **changes))


def add_term(draft: ContractDraft, term: EconomicTerm) -> ContractDraft:
    collection = term.collection
    return replace(draft, **{collection: draft.terms(collection) + (term,)})


def update_term(
    draft: ContractDraft, collection: str, temp_id: str, **changes: Any
) -> ContractDraft:
    terms = draft.terms(collection)
    for i, term in enumerate(terms):
        if term.temp_id == temp_id:
            edited = terms[:i] + (term.with_changes(**changes),) + terms[i + 1:]
            return replace(draft, **{collection: edited})
    raise TermNotFoundError(collection, temp_id)


def remove_term(draft: ContractDraft, collection: str, temp_id: str) -> ContractDraft:
    terms = draft.terms(collection)
    remaining = tuple(t for t in terms if t.temp_id != temp_id)
    if len(remaining) == len(terms):
        raise TermNotFoundError(collection, temp_id)
    return replace(draft, **{collection: remaining})


def new_draft(
    catalog: EconomicTermCatalog, config: ContractAuthoringConfig | None = None
) -> ContractDraft:
    """Empty draft, pre-selecting the default country when the catalog has it."""
    config = config or ContractAuthoringConfig.with_defaults()
    country = catalog.country_by_code(config.default_country_code)
    return ContractDraft(country_id=country.id if country else None)


def draft_from_template(
    template: ContractTemplate,
    catalog: EconomicTermCatalog,
    engine: EconomicTermsEngine,
    config: ContractAuthoringConfig | None = None,
) -> ContractDraft:
    """
    New draft seeded from a template.

    Copies the contract type, the incoterm (resolved by code; an unknown
    code leaves it unset), the payables and the penalties.  Copied terms get
    fresh temporary ids.  Quality specs and refining expenses are not copied.
    """
    draft = new_draft(catalog, config)
    incoterm = catalog.incoterm_by_code(template.incoterm_code)
    draft = replace(
        draft,
        contract_type=template.contract_type,
        incoterm_id=incoterm.id if incoterm else None,
        payables=tuple(engine.adopt(t) for t in template.payables),
        penalties=tuple(engine.adopt(t) for t in template.penalties),
    )
    logger.info("draft_seeded_from_template", extra={
        "template_id": template.id,
        "payable_count": len(draft.payables),
        "penalty_count": len(draft.penalties),
        "incoterm_resolved": incoterm is not None,
    })
    return draft


# =============================================================================
# Session
# =============================================================================


class DraftSession:
    """
    Explicit state container for one authoring session.

    Every user event is a named action routed by ``dispatch``; draft edits
    replace ``self.draft`` with the transition's result, navigation actions
    return whether the wizard moved.

    Actions:
        set_field(name, value), set_start_month(value), set_end_month(value),
        update_quota(index, **changes), add_term(collection),
        update_term(collection, temp_id, **changes),
        remove_term(collection, temp_id), go_to_next(), go_to_previous(),
        go_to_section(section_id)
    """

    def __init__(
        self,
        catalog: EconomicTermCatalog,
        config: ContractAuthoringConfig | None = None,
        template: ContractTemplate | None = None,
    ):
        self.catalog = catalog
        self.config = config or ContractAuthoringConfig.with_defaults()
        self.engine = EconomicTermsEngine(catalog, self.config)
        self.wizard = SectionWizard()
        if template is not None:
            self.draft = draft_from_template(template, catalog, self.engine, self.config)
        else:
            self.draft = new_draft(catalog, self.config)

        self._handlers: dict[str, Callable[..., Any]] = {
            "set_field": self._set_field,
            "set_start_month": self._set_start_month,
            "set_end_month": self._set_end_month,
            "update_quota": self._update_quota,
            "add_term": self._add_term,
            "update_term": self._update_term,
            "remove_term": self._remove_term,
            "go_to_next": self._go_to_next,
            "go_to_previous": self._go_to_previous,
            "go_to_section": self._go_to_section,
        }

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    @property
    def can_save(self) -> bool:
        return self.wizard.can_save(self.draft)

    @property
    def current_section(self) -> str:
        return self.wizard.current_section

    def dispatch(self, action: str, **kwargs: Any) -> Any:
        """
        Apply a named action.

        Raises:
            ValueError: On an unknown action name.
        """
        handler = self._handlers.get(action)
        if handler is None:
            raise ValueError(f"Unknown draft action '{action}'")
        with LogContext.bind(draft_id=self.draft.draft_id):
            logger.debug("draft_action_dispatched", extra={"action": action})
            return handler(**kwargs)

    def render_terms(self, collection: str) -> dict[str, str]:
        """Formula text of each term in ``collection``, keyed by temp id."""
        return {t.temp_id: self.engine.render(t) for t in self.draft.terms(collection)}

    # -- handlers ------------------------------------------------------------

    def _set_field(self, name: str, value: Any) -> ContractDraft:
        self.draft = set_field(self.draft, name, value)
        return self.draft

    def _set_start_month(self, value: Any) -> ContractDraft:
        self.draft = set_start_month(self.draft, value, self.config)
        return self.draft

    def _set_end_month(self, value: Any) -> ContractDraft:
        self.draft = set_end_month(self.draft, value, self.config)
        return self.draft

    def _update_quota(self, index: int, **changes: Any) -> ContractDraft:
        self.draft = set_quota(self.draft, index, **changes)
        return self.draft

    def _add_term(self, collection: str) -> EconomicTerm:
        if collection not in TERM_COLLECTIONS:
            raise ValueError(f"Unknown term collection: {collection}")
        term = self.engine.new_term(collection)
        self.draft = add_term(self.draft, term)
        return term

    def _update_term(self, collection: str, temp_id: str, **changes: Any) -> ContractDraft:
        self.draft = update_term(self.draft, collection, temp_id, **changes)
        return self.draft

    def _remove_term(self, collection: str, temp_id: str) -> ContractDraft:
        self.draft = remove_term(self.draft, collection, temp_id)
        return self.draft

    def _go_to_next(self) -> bool:
        return self.wizard.go_to_next(self.draft)

    def _go_to_previous(self) -> bool:
        return self.wizard.go_to_previous()

    def _go_to_section(self, section_id: str) -> str:
        self.wizard.go_to_section(section_id)
        return self.wizard.current_section
