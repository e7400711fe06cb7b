"""
SQLAlchemy ORM persistence models for the Contracts module.

Responsibility
--------------
Provide database-backed persistence for contract authoring: the reference
tables the catalog is read from, contract templates, and the contract
aggregate the persistence coordinator writes (contract, quotas, payables,
penalties, quality specs, refining expenses).

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``CatalogLoader`` (reads) and
``ContractPersistenceCoordinator`` (writes).  Written rows inherit from
``TrackedBase``; reference and template tables are maintained outside the
engine and inherit from ``Base``.

Invariants enforced
-------------------
* Tonnages, percentages and USD amounts use ``Decimal`` (Numeric(38,9)) --
  NEVER float.
* Enum fields stored as String(50) for readability and portability.
* ``contract_number`` is unique.
* Every dependent row references ``contracts.id`` via FK.
* Term rows store the rendered formula text next to the structured fields.

Audit relevance
---------------
* ``created_by_id`` on every written row identifies the author of the save.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_kernel.db.base import Base, TrackedBase
from trade_modules.contracts.catalog import (
    Buyer,
    Country,
    FormulaDefinition,
    Incoterm,
    MarketIndex,
    Product,
    Vendor,
)
from trade_modules.contracts.models import ContractStatus, ContractType, TemplateSummary
from trade_modules.contracts.terms import Payable, Penalty, QualitySpec, RefiningExpense

# ---------------------------------------------------------------------------
# Reference tables (read-only for the engine)
# ---------------------------------------------------------------------------


class VendorModel(Base):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    def to_dto(self) -> Vendor:
        return Vendor(id=self.id, name=self.name, tax_id=self.tax_id)


class BuyerModel(Base):
    __tablename__ = "buyers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    def to_dto(self) -> Buyer:
        return Buyer(id=self.id, name=self.name, tax_id=self.tax_id)


class ProductModel(Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> Product:
        return Product(id=self.id, name=self.name)


class CountryModel(Base):
    __tablename__ = "countries"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)

    def to_dto(self) -> Country:
        return Country(id=self.id, name=self.name, code=self.code)


class IncotermModel(Base):
    __tablename__ = "incoterms"

    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    def to_dto(self) -> Incoterm:
        return Incoterm(id=self.id, code=self.code, description=self.description)


class PayableFormulaModel(Base):
    """
    Payable formula catalog.

    Exactly one entry is expected to carry ``is_deduction``; new payables
    are bound to it.
    """

    __tablename__ = "payable_formulas"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    is_deduction: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dto(self) -> FormulaDefinition:
        return FormulaDefinition(
            id=self.id,
            name=self.name,
            description=self.description,
            is_deduction=self.is_deduction,
        )


class PenaltyFormulaModel(Base):
    __tablename__ = "penalty_formulas"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    def to_dto(self) -> FormulaDefinition:
        return FormulaDefinition(id=self.id, name=self.name, description=self.description)


class RefiningExpenseFormulaModel(Base):
    __tablename__ = "refining_expense_formulas"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    def to_dto(self) -> FormulaDefinition:
        return FormulaDefinition(id=self.id, name=self.name, description=self.description)


class MarketIndexModel(Base):
    __tablename__ = "market_indices"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> MarketIndex:
        return MarketIndex(id=self.id, name=self.name)


# ---------------------------------------------------------------------------
# Contract templates
# ---------------------------------------------------------------------------


class ContractTemplateModel(Base):
    """
    A reusable contract template.

    Guarantees:
        - Term collections load in ``position`` order.
    """

    __tablename__ = "contract_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contract_type: Mapped[str] = mapped_column(String(50), nullable=False)
    incoterm_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    payables: Mapped[list[ContractTemplatePayableModel]] = relationship(
        order_by="ContractTemplatePayableModel.position",
    )
    penalties: Mapped[list[ContractTemplatePenaltyModel]] = relationship(
        order_by="ContractTemplatePenaltyModel.position",
    )
    quality_specs: Mapped[list[ContractTemplateQualitySpecModel]] = relationship(
        order_by="ContractTemplateQualitySpecModel.position",
    )
    refining_expenses: Mapped[list[ContractTemplateRefiningExpenseModel]] = relationship(
        order_by="ContractTemplateRefiningExpenseModel.position",
    )

    def to_summary(self) -> TemplateSummary:
        return TemplateSummary(
            id=self.id,
            name=self.name,
            contract_type=ContractType(self.contract_type),
        )


class ContractTemplatePayableModel(Base):
    __tablename__ = "contract_template_payables"

    template_id: Mapped[UUID] = mapped_column(ForeignKey("contract_templates.id"), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    formula_id: Mapped[UUID] = mapped_column(ForeignKey("payable_formulas.id"), nullable=False)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deduction_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    deduction_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    balance_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    market_index_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("market_indices.id"), nullable=True,
    )

    def to_term(self) -> Payable:
        return Payable(
            temp_id=str(self.id),
            metal=self.metal,
            formula_id=self.formula_id,
            deduction_value=self.deduction_value,
            deduction_unit=self.deduction_unit,
            balance_percentage=self.balance_percentage,
            market_index_id=self.market_index_id,
        )


class ContractTemplatePenaltyModel(Base):
    __tablename__ = "contract_template_penalties"

    template_id: Mapped[UUID] = mapped_column(ForeignKey("contract_templates.id"), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    formula_id: Mapped[UUID] = mapped_column(ForeignKey("penalty_formulas.id"), nullable=False)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount_usd: Mapped[Decimal | None] = mapped_column(nullable=True)
    lower_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    lower_limit_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    upper_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    upper_limit_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_term(self) -> Penalty:
        return Penalty(
            temp_id=str(self.id),
            metal=self.metal,
            formula_id=self.formula_id,
            amount_usd=self.amount_usd,
            lower_limit=self.lower_limit,
            lower_limit_unit=self.lower_limit_unit,
            upper_limit=self.upper_limit,
            upper_limit_unit=self.upper_limit_unit,
        )


class ContractTemplateQualitySpecModel(Base):
    __tablename__ = "contract_template_quality_specs"

    template_id: Mapped[UUID] = mapped_column(ForeignKey("contract_templates.id"), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    spec_type: Mapped[str] = mapped_column(String(50), nullable=False, default="range")
    min_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_term(self) -> QualitySpec:
        return QualitySpec(
            temp_id=str(self.id),
            metal=self.metal,
            spec_type=self.spec_type,
            min_value=self.min_value,
            max_value=self.max_value,
            unit=self.unit,
        )


class ContractTemplateRefiningExpenseModel(Base):
    __tablename__ = "contract_template_refining_expenses"

    template_id: Mapped[UUID] = mapped_column(ForeignKey("contract_templates.id"), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    formula_id: Mapped[UUID] = mapped_column(
        ForeignKey("refining_expense_formulas.id"), nullable=False,
    )
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount_usd: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_term(self) -> RefiningExpense:
        return RefiningExpense(
            temp_id=str(self.id),
            metal=self.metal,
            formula_id=self.formula_id,
            amount_usd=self.amount_usd,
            unit=self.unit,
        )


# ---------------------------------------------------------------------------
# ContractModel
# ---------------------------------------------------------------------------


class ContractModel(TrackedBase):
    """
    A concentrate purchase or sale contract.

    Guarantees:
        - ``contract_number`` is unique.
        - Written with status ``draft``; the engine never changes it.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contract_vendor", "vendor_id"),
        Index("idx_contract_buyer", "buyer_id"),
    )

    contract_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    contract_type: Mapped[str] = mapped_column(String(50), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(ForeignKey("vendors.id"), nullable=False)
    buyer_id: Mapped[UUID] = mapped_column(ForeignKey("buyers.id"), nullable=False)
    product_id: Mapped[UUID] = mapped_column(ForeignKey("products.id"), nullable=False)
    country_id: Mapped[UUID] = mapped_column(ForeignKey("countries.id"), nullable=False)
    start_month: Mapped[date] = mapped_column(nullable=False)
    end_month: Mapped[date] = mapped_column(nullable=False)
    incoterm_id: Mapped[UUID] = mapped_column(ForeignKey("incoterms.id"), nullable=False)
    delivery_location: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ContractStatus.DRAFT.value,
    )

    quotas: Mapped[list[ContractQuotaModel]] = relationship(
        order_by="ContractQuotaModel.month", viewonly=True,
    )
    payables: Mapped[list[ContractPayableModel]] = relationship(viewonly=True)
    penalties: Mapped[list[ContractPenaltyModel]] = relationship(viewonly=True)
    quality_specs: Mapped[list[ContractQualitySpecModel]] = relationship(viewonly=True)
    refining_expenses: Mapped[list[ContractRefiningExpenseModel]] = relationship(viewonly=True)

    def __repr__(self) -> str:
        return f"<ContractModel {self.contract_number} ({self.contract_type}, {self.status})>"


# ---------------------------------------------------------------------------
# Dependent records
# ---------------------------------------------------------------------------


class _ContractChild:
    """Shared constructor for rows built from a term or quota record dict."""

    @classmethod
    def from_record(cls, contract_id: UUID, record: dict[str, Any], created_by_id: UUID):
        return cls(contract_id=contract_id, created_by_id=created_by_id, **record)


class ContractQuotaModel(_ContractChild, TrackedBase):
    __tablename__ = "contract_quotas"

    __table_args__ = (
        Index("idx_contract_quota_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    month: Mapped[date] = mapped_column(nullable=False)
    tmh: Mapped[Decimal] = mapped_column(nullable=False)
    tms: Mapped[Decimal] = mapped_column(nullable=False)
    h2o_percentage: Mapped[Decimal] = mapped_column(nullable=False)


class ContractPayableModel(_ContractChild, TrackedBase):
    __tablename__ = "contract_payables"

    __table_args__ = (
        Index("idx_contract_payable_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    formula_id: Mapped[UUID] = mapped_column(ForeignKey("payable_formulas.id"), nullable=False)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    deduction_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    deduction_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    balance_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    market_index_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("market_indices.id"), nullable=True,
    )
    formula_text: Mapped[str] = mapped_column(String(4000), nullable=False, default="")


class ContractPenaltyModel(_ContractChild, TrackedBase):
    __tablename__ = "contract_penalties"

    __table_args__ = (
        Index("idx_contract_penalty_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    formula_id: Mapped[UUID] = mapped_column(ForeignKey("penalty_formulas.id"), nullable=False)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount_usd: Mapped[Decimal | None] = mapped_column(nullable=True)
    lower_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    lower_limit_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    upper_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    upper_limit_unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    penalty_formula: Mapped[str] = mapped_column(String(4000), nullable=False, default="")


class ContractQualitySpecModel(_ContractChild, TrackedBase):
    __tablename__ = "contract_quality_specs"

    __table_args__ = (
        Index("idx_contract_quality_spec_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    spec_type: Mapped[str] = mapped_column(String(50), nullable=False)
    min_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    formula_text: Mapped[str] = mapped_column(String(4000), nullable=False, default="")


class ContractRefiningExpenseModel(_ContractChild, TrackedBase):
    __tablename__ = "contract_refining_expenses"

    __table_args__ = (
        Index("idx_contract_refining_expense_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(ForeignKey("contracts.id"), nullable=False)
    formula_id: Mapped[UUID] = mapped_column(
        ForeignKey("refining_expense_formulas.id"), nullable=False,
    )
    metal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount_usd: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    formula_text: Mapped[str] = mapped_column(String(4000), nullable=False, default="")
