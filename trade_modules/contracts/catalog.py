"""
Economic Term Catalog (``trade_modules.contracts.catalog``).

Responsibility
--------------
Read-only reference data consumed by the contract authoring engine:
counterparties (vendors, buyers), products, countries, incoterms, the three
formula catalogs (payable, penalty, refining expense) and market indices.

Architecture position
---------------------
**Modules layer** -- pure value objects with ZERO I/O.  Built by
``CatalogLoader`` from the database, or directly in tests.  Supplied once per
wizard session and never mutated.

Invariants enforced
-------------------
* All records and the catalog itself are ``frozen=True``.
* A formula is "not applicable" iff its name equals the catalog's
  ``not_applicable_name`` exactly (no case folding, no trimming).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, TypeVar
from uuid import UUID

NOT_APPLICABLE_FORMULA_NAME = "No Aplica"


@dataclass(frozen=True)
class Vendor:
    id: UUID
    name: str
    tax_id: str = ""


@dataclass(frozen=True)
class Buyer:
    id: UUID
    name: str
    tax_id: str = ""


@dataclass(frozen=True)
class Product:
    id: UUID
    name: str


@dataclass(frozen=True)
class Country:
    id: UUID
    name: str
    code: str


@dataclass(frozen=True)
class Incoterm:
    id: UUID
    code: str
    description: str = ""


@dataclass(frozen=True)
class FormulaDefinition:
    """An entry of a payable, penalty or refining-expense formula catalog."""
    id: UUID
    name: str
    description: str = ""
    is_deduction: bool = False


@dataclass(frozen=True)
class MarketIndex:
    id: UUID
    name: str


_R = TypeVar("_R")


def _find_by_id(records: Iterable[_R], record_id: UUID | None) -> _R | None:
    if record_id is None:
        return None
    for record in records:
        if record.id == record_id:
            return record
    return None


@dataclass(frozen=True)
class EconomicTermCatalog:
    """
    Reference tables for one wizard session.

    Contract:
        Lookups by id return ``None`` for unknown or ``None`` ids; they never
        raise.  Callers decide whether absence is incompleteness or an error.
    """
    vendors: tuple[Vendor, ...] = ()
    buyers: tuple[Buyer, ...] = ()
    products: tuple[Product, ...] = ()
    countries: tuple[Country, ...] = ()
    incoterms: tuple[Incoterm, ...] = ()
    payable_formulas: tuple[FormulaDefinition, ...] = ()
    penalty_formulas: tuple[FormulaDefinition, ...] = ()
    refining_expense_formulas: tuple[FormulaDefinition, ...] = ()
    market_indices: tuple[MarketIndex, ...] = ()
    not_applicable_name: str = NOT_APPLICABLE_FORMULA_NAME

    def payable_formula(self, formula_id: UUID | None) -> FormulaDefinition | None:
        return _find_by_id(self.payable_formulas, formula_id)

    def penalty_formula(self, formula_id: UUID | None) -> FormulaDefinition | None:
        return _find_by_id(self.penalty_formulas, formula_id)

    def refining_expense_formula(self, formula_id: UUID | None) -> FormulaDefinition | None:
        return _find_by_id(self.refining_expense_formulas, formula_id)

    def market_index(self, index_id: UUID | None) -> MarketIndex | None:
        return _find_by_id(self.market_indices, index_id)

    def deduction_payable_formula(self) -> FormulaDefinition | None:
        """First payable formula flagged ``is_deduction``, if any."""
        for formula in self.payable_formulas:
            if formula.is_deduction:
                return formula
        return None

    def incoterm_by_code(self, code: str | None) -> Incoterm | None:
        if not code:
            return None
        for incoterm in self.incoterms:
            if incoterm.code == code:
                return incoterm
        return None

    def country_by_code(self, code: str | None) -> Country | None:
        if not code:
            return None
        for country in self.countries:
            if country.code == code:
                return country
        return None

    def is_not_applicable(self, formula: FormulaDefinition | None) -> bool:
        """True iff ``formula`` is this catalog's "No Aplica" sentinel."""
        return formula is not None and formula.name == self.not_applicable_name
