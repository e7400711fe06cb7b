"""
Economic Terms Engine (``trade_modules.contracts.terms``).

Responsibility
--------------
Builds the four economic term variants of a concentrate contract (payables,
penalties, quality specs, refining expenses) with their defaults, renders
each to its canonical formula text, and turns each into the field dict the
persistence coordinator writes.

Architecture position
---------------------
**Modules layer** -- pure domain logic, ZERO I/O.  Consumes an
``EconomicTermCatalog``; consumed by the wizard session and by
``ContractPersistenceCoordinator``.

Invariants enforced
-------------------
* Rendering never raises.  A term missing a required input renders to ``""``
  ("formula not yet determined").
* A term whose formula is the catalog's "No Aplica" entry renders exactly
  that name and persists with every nullable field set to ``None``,
  whatever the user typed while another formula was selected.
* Adding a payable requires a deduction-flagged payable formula;
  absence raises ``CatalogMisconfigurationError``.

Failure modes
-------------
* ``CatalogMisconfigurationError`` -- no ``is_deduction`` payable formula.
* ``ValueError`` -- non-numeric input to a numeric field.
* ``TypeError`` -- unknown field name in ``with_changes``.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Callable, ClassVar
from uuid import UUID

from trade_kernel.db.types import decimal_from_input, format_decimal, uuid_from_input
from trade_kernel.exceptions import CatalogMisconfigurationError
from trade_kernel.logging_config import get_logger
from trade_modules.contracts.catalog import EconomicTermCatalog, FormulaDefinition
from trade_modules.contracts.config import ContractAuthoringConfig

logger = get_logger("modules.contracts.terms")

TERM_COLLECTIONS = ("payables", "penalties", "quality_specs", "refining_expenses")


def _fmt(value: Decimal | None) -> str:
    return format_decimal(value) if value is not None else ""


def _missing(*values: Decimal | None) -> bool:
    """True if any value is unset or not a finite number."""
    return any(v is None or (isinstance(v, Decimal) and not v.is_finite()) for v in values)


@dataclass(frozen=True)
class EconomicTerm(ABC):
    """
    Base of the four term variants.

    ``temp_id`` is a session-local identifier; it is never persisted.
    """
    temp_id: str
    metal: str | None

    collection: ClassVar[str]
    decimal_fields: ClassVar[frozenset[str]] = frozenset()

    def formula(self, catalog: EconomicTermCatalog) -> FormulaDefinition | None:
        """The referenced catalog formula (None for formula-less variants)."""
        return None

    def is_not_applicable(self, catalog: EconomicTermCatalog) -> bool:
        return catalog.is_not_applicable(self.formula(catalog))

    @abstractmethod
    def render_formula_text(self, catalog: EconomicTermCatalog) -> str:
        """Canonical display string, or "" while inputs are incomplete."""

    @abstractmethod
    def to_record(self, catalog: EconomicTermCatalog) -> dict[str, Any]:
        """Persistable fields, including the rendered formula text."""

    def with_changes(self, **changes: Any) -> EconomicTerm:
        """Return a copy with edited fields; numeric and id fields accept strings."""
        if "temp_id" in changes:
            raise TypeError("temp_id cannot be changed")
        for name in changes.keys() & self.decimal_fields:
            changes[name] = decimal_from_input(changes[name])
        for name in ("formula_id", "market_index_id"):
            if name in changes:
                changes[name] = uuid_from_input(changes[name])
        return replace(self, **changes)


@dataclass(frozen=True)
class Payable(EconomicTerm):
    """Metal paid for: assay net of a deduction, times a balance percentage."""
    formula_id: UUID | None = None
    deduction_value: Decimal | None = None
    deduction_unit: str | None = None
    balance_percentage: Decimal | None = None
    market_index_id: UUID | None = None

    collection: ClassVar[str] = "payables"
    decimal_fields: ClassVar[frozenset[str]] = frozenset(
        {"deduction_value", "balance_percentage"}
    )

    def formula(self, catalog: EconomicTermCatalog) -> FormulaDefinition | None:
        return catalog.payable_formula(self.formula_id)

    def render_formula_text(self, catalog: EconomicTermCatalog) -> str:
        formula = self.formula(catalog)
        if catalog.is_not_applicable(formula):
            return catalog.not_applicable_name
        market_index = catalog.market_index(self.market_index_id)
        if (
            formula is None
            or market_index is None
            or _missing(self.deduction_value, self.balance_percentage)
        ):
            return ""
        return (
            f"{formula.name} - ({self.metal or ''}): "
            f"(Ensaye - {_fmt(self.deduction_value)}{self.deduction_unit or ''}) "
            f"* {_fmt(self.balance_percentage)}% ==> Índice {market_index.name}"
        )

    def to_record(self, catalog: EconomicTermCatalog) -> dict[str, Any]:
        record = {
            "formula_id": self.formula_id,
            "metal": self.metal,
            "deduction_value": self.deduction_value,
            "deduction_unit": self.deduction_unit,
            "balance_percentage": self.balance_percentage,
            "market_index_id": self.market_index_id,
            "formula_text": self.render_formula_text(catalog),
        }
        if self.is_not_applicable(catalog):
            record.update(
                metal=None,
                deduction_value=None,
                deduction_unit=None,
                balance_percentage=None,
                market_index_id=None,
            )
        return record


@dataclass(frozen=True)
class Penalty(EconomicTerm):
    """Per-TMS charge when an element exceeds a contractual band."""
    formula_id: UUID | None = None
    amount_usd: Decimal | None = None
    lower_limit: Decimal | None = None
    lower_limit_unit: str | None = None
    upper_limit: Decimal | None = None
    upper_limit_unit: str | None = None

    collection: ClassVar[str] = "penalties"
    decimal_fields: ClassVar[frozenset[str]] = frozenset(
        {"amount_usd", "lower_limit", "upper_limit"}
    )

    def formula(self, catalog: EconomicTermCatalog) -> FormulaDefinition | None:
        return catalog.penalty_formula(self.formula_id)

    def render_formula_text(self, catalog: EconomicTermCatalog) -> str:
        formula = self.formula(catalog)
        if catalog.is_not_applicable(formula):
            return catalog.not_applicable_name
        if formula is None or _missing(self.amount_usd, self.lower_limit, self.upper_limit):
            return ""
        return (
            f"{formula.name} - ({self.metal or ''}): "
            f"${_fmt(self.amount_usd)} por TMS por cada "
            f"{_fmt(self.lower_limit)}{self.lower_limit_unit or ''} "
            f"por encima de {_fmt(self.upper_limit)}{self.upper_limit_unit or ''}"
        )

    def to_record(self, catalog: EconomicTermCatalog) -> dict[str, Any]:
        record = {
            "formula_id": self.formula_id,
            "metal": self.metal,
            "amount_usd": self.amount_usd,
            "lower_limit": self.lower_limit,
            "lower_limit_unit": self.lower_limit_unit,
            "upper_limit": self.upper_limit,
            "upper_limit_unit": self.upper_limit_unit,
            "penalty_formula": self.render_formula_text(catalog),
        }
        if self.is_not_applicable(catalog):
            record.update(
                metal=None,
                amount_usd=None,
                lower_limit=None,
                lower_limit_unit=None,
                upper_limit=None,
                upper_limit_unit=None,
            )
        return record


@dataclass(frozen=True)
class QualitySpec(EconomicTerm):
    """
    Min / max / range constraint on an element's concentration.

    Has no formula catalog, so it is never "not applicable".  Values that do
    not belong to the selected ``spec_type`` are kept but ignored when
    rendering.
    """
    spec_type: str = "range"
    min_value: Decimal | None = None
    max_value: Decimal | None = None
    unit: str | None = None

    collection: ClassVar[str] = "quality_specs"
    decimal_fields: ClassVar[frozenset[str]] = frozenset({"min_value", "max_value"})

    def render_formula_text(self, catalog: EconomicTermCatalog) -> str:
        metal = self.metal or ""
        unit = self.unit or ""
        if self.spec_type == "range":
            if _missing(self.min_value, self.max_value):
                return ""
            return f"{metal}: {_fmt(self.min_value)} - {_fmt(self.max_value)} {unit}"
        if self.spec_type == "minimum":
            if _missing(self.min_value):
                return ""
            return f"{metal}: >={_fmt(self.min_value)} {unit}"
        if self.spec_type == "maximum":
            if _missing(self.max_value):
                return ""
            return f"{metal}: <{_fmt(self.max_value)} {unit}"
        return ""

    def to_record(self, catalog: EconomicTermCatalog) -> dict[str, Any]:
        return {
            "metal": self.metal,
            "spec_type": self.spec_type,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "unit": self.unit,
            "formula_text": self.render_formula_text(catalog),
        }


@dataclass(frozen=True)
class RefiningExpense(EconomicTerm):
    """Fixed per-unit refining fee for an element."""
    formula_id: UUID | None = None
    amount_usd: Decimal | None = None
    unit: str | None = None

    collection: ClassVar[str] = "refining_expenses"
    decimal_fields: ClassVar[frozenset[str]] = frozenset({"amount_usd"})

    def formula(self, catalog: EconomicTermCatalog) -> FormulaDefinition | None:
        return catalog.refining_expense_formula(self.formula_id)

    def render_formula_text(self, catalog: EconomicTermCatalog) -> str:
        if self.is_not_applicable(catalog):
            return catalog.not_applicable_name
        if _missing(self.amount_usd):
            return ""
        return f"({self.metal or ''}): ${_fmt(self.amount_usd)}{self.unit or ''}"

    def to_record(self, catalog: EconomicTermCatalog) -> dict[str, Any]:
        record = {
            "formula_id": self.formula_id,
            "metal": self.metal,
            "amount_usd": self.amount_usd,
            "unit": self.unit,
            "formula_text": self.render_formula_text(catalog),
        }
        if self.is_not_applicable(catalog):
            record.update(metal=None, amount_usd=None, unit=None)
        return record


class EconomicTermsEngine:
    """
    Creates economic terms with defaults for one wizard session.

    Contract
    --------
    * Temporary ids are ``tmp-1``, ``tmp-2``, ... and unique per engine.
    * ``new_term(collection)`` dispatches through a registry keyed by the
      draft collection name.

    Non-goals
    ---------
    * Does NOT evaluate formulas against market prices.
    """

    def __init__(
        self,
        catalog: EconomicTermCatalog,
        config: ContractAuthoringConfig | None = None,
    ):
        self._catalog = catalog
        self._config = config or ContractAuthoringConfig.with_defaults()
        self._ids = itertools.count(1)
        self._factories: dict[str, Callable[[], EconomicTerm]] = {
            "payables": self.new_payable,
            "penalties": self.new_penalty,
            "quality_specs": self.new_quality_spec,
            "refining_expenses": self.new_refining_expense,
        }

    @property
    def catalog(self) -> EconomicTermCatalog:
        return self._catalog

    def next_temp_id(self) -> str:
        return f"tmp-{next(self._ids)}"

    def new_term(self, collection: str) -> EconomicTerm:
        factory = self._factories.get(collection)
        if factory is None:
            raise ValueError(
                f"Unknown term collection '{collection}', expected one of {TERM_COLLECTIONS}"
            )
        return factory()

    def new_payable(self) -> Payable:
        """
        New payable bound to the catalog's deduction formula.

        Raises:
            CatalogMisconfigurationError: No payable formula has is_deduction.
        """
        formula = self._catalog.deduction_payable_formula()
        if formula is None:
            logger.error(
                "payable_deduction_formula_missing",
                extra={"payable_formula_count": len(self._catalog.payable_formulas)},
            )
            raise CatalogMisconfigurationError(
                "payable_formulas",
                "no payable formula is flagged is_deduction",
            )
        term = Payable(
            temp_id=self.next_temp_id(),
            metal=self._config.payable_default_metal,
            formula_id=formula.id,
            deduction_unit=self._config.payable_default_deduction_unit,
        )
        logger.debug("term_created", extra={"collection": "payables", "temp_id": term.temp_id})
        return term

    def new_penalty(self) -> Penalty:
        formulas = self._catalog.penalty_formulas
        term = Penalty(
            temp_id=self.next_temp_id(),
            metal=self._config.penalty_default_metal,
            formula_id=formulas[0].id if formulas else None,
            lower_limit_unit=self._config.penalty_default_limit_unit,
            upper_limit_unit=self._config.penalty_default_limit_unit,
        )
        logger.debug("term_created", extra={"collection": "penalties", "temp_id": term.temp_id})
        return term

    def new_quality_spec(self) -> QualitySpec:
        term = QualitySpec(
            temp_id=self.next_temp_id(),
            metal=self._config.quality_spec_default_metal,
            spec_type=self._config.quality_spec_default_type,
            unit=self._config.quality_spec_default_unit,
        )
        logger.debug("term_created", extra={"collection": "quality_specs", "temp_id": term.temp_id})
        return term

    def new_refining_expense(self) -> RefiningExpense:
        formulas = self._catalog.refining_expense_formulas
        term = RefiningExpense(
            temp_id=self.next_temp_id(),
            metal=self._config.refining_default_metal,
            formula_id=formulas[0].id if formulas else None,
            unit=self._config.refining_default_unit,
        )
        logger.debug(
            "term_created",
            extra={"collection": "refining_expenses", "temp_id": term.temp_id},
        )
        return term

    def adopt(self, term: EconomicTerm) -> EconomicTerm:
        """Copy a term from another source (e.g. a template) under a fresh temp id."""
        return replace(term, temp_id=self.next_temp_id())

    def render(self, term: EconomicTerm) -> str:
        return term.render_formula_text(self._catalog)

    def to_record(self, term: EconomicTerm) -> dict[str, Any]:
        return term.to_record(self._catalog)
