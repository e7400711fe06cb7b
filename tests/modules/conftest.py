"""
Shared fixtures for module tests.

Provides the reference data a contract draft points at, as a pure
``EconomicTermCatalog`` and as seeded ORM rows, plus ready-made drafts.
All IDs are deterministic so tests can import and use them directly.

DESIGN RULE: Every fixture is opt-in.  No autouse.  Each test explicitly
declares which entities it depends on in its function signature.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from trade_modules.contracts.catalog import (
    Buyer,
    Country,
    EconomicTermCatalog,
    FormulaDefinition,
    Incoterm,
    MarketIndex,
    Product,
    Vendor,
)
from trade_modules.contracts.models import ContractDraft, ContractType
from trade_modules.contracts.orm import (
    BuyerModel,
    ContractTemplateModel,
    ContractTemplatePayableModel,
    ContractTemplatePenaltyModel,
    ContractTemplateQualitySpecModel,
    ContractTemplateRefiningExpenseModel,
    CountryModel,
    IncotermModel,
    MarketIndexModel,
    PayableFormulaModel,
    PenaltyFormulaModel,
    ProductModel,
    RefiningExpenseFormulaModel,
    VendorModel,
)
from trade_modules.contracts.quotas import generate_quotas
from trade_modules.contracts.terms import Payable, Penalty, QualitySpec, RefiningExpense

# ---------------------------------------------------------------------------
# Deterministic reference IDs
# ---------------------------------------------------------------------------

TEST_VENDOR_ID = UUID("00000000-0000-4000-a000-000000000001")
TEST_BUYER_ID = UUID("00000000-0000-4000-a000-000000000002")
TEST_PRODUCT_ID = UUID("00000000-0000-4000-a000-000000000003")
TEST_COUNTRY_PE_ID = UUID("00000000-0000-4000-a000-000000000010")
TEST_COUNTRY_CL_ID = UUID("00000000-0000-4000-a000-000000000011")
TEST_INCOTERM_FOB_ID = UUID("00000000-0000-4000-a000-000000000020")
TEST_INCOTERM_CIF_ID = UUID("00000000-0000-4000-a000-000000000021")
TEST_DEDUCTION_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000030")
TEST_PAYABLE_NA_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000031")
TEST_PENALTY_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000040")
TEST_PENALTY_NA_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000041")
TEST_REFINING_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000050")
TEST_REFINING_NA_FORMULA_ID = UUID("00000000-0000-4000-a000-000000000051")
TEST_MARKET_INDEX_ID = UUID("00000000-0000-4000-a000-000000000060")
TEST_TEMPLATE_ID = UUID("00000000-0000-4000-a000-000000000070")

DEDUCTION_FORMULA_NAME = "Deducción Porcentual"
PENALTY_FORMULA_NAME = "Penalidad Estándar"
REFINING_FORMULA_NAME = "Refinación Plata"
MARKET_INDEX_NAME = "LME Cu"


def build_catalog(**overrides) -> EconomicTermCatalog:
    """The test catalog; keyword arguments replace whole tables."""
    catalog = EconomicTermCatalog(
        vendors=(Vendor(TEST_VENDOR_ID, "Minera Andina SAC", "20100000001"),),
        buyers=(Buyer(TEST_BUYER_ID, "Pacific Metals Trading", "20100000002"),),
        products=(Product(TEST_PRODUCT_ID, "Concentrado de Cobre"),),
        countries=(
            Country(TEST_COUNTRY_CL_ID, "Chile", "CL"),
            Country(TEST_COUNTRY_PE_ID, "Perú", "PE"),
        ),
        incoterms=(
            Incoterm(TEST_INCOTERM_CIF_ID, "CIF", "Cost, Insurance and Freight"),
            Incoterm(TEST_INCOTERM_FOB_ID, "FOB", "Free On Board"),
        ),
        payable_formulas=(
            FormulaDefinition(TEST_DEDUCTION_FORMULA_ID, DEDUCTION_FORMULA_NAME, is_deduction=True),
            FormulaDefinition(TEST_PAYABLE_NA_FORMULA_ID, "No Aplica"),
        ),
        penalty_formulas=(
            FormulaDefinition(TEST_PENALTY_FORMULA_ID, PENALTY_FORMULA_NAME),
            FormulaDefinition(TEST_PENALTY_NA_FORMULA_ID, "No Aplica"),
        ),
        refining_expense_formulas=(
            FormulaDefinition(TEST_REFINING_FORMULA_ID, REFINING_FORMULA_NAME),
            FormulaDefinition(TEST_REFINING_NA_FORMULA_ID, "No Aplica"),
        ),
        market_indices=(MarketIndex(TEST_MARKET_INDEX_ID, MARKET_INDEX_NAME),),
    )
    return replace(catalog, **overrides)


@pytest.fixture
def catalog() -> EconomicTermCatalog:
    return build_catalog()


# ---------------------------------------------------------------------------
# Drafts and terms
# ---------------------------------------------------------------------------


def sample_payable(temp_id: str = "tmp-p1", **changes) -> Payable:
    term = Payable(
        temp_id=temp_id,
        metal="CU",
        formula_id=TEST_DEDUCTION_FORMULA_ID,
        deduction_value=Decimal("1.2"),
        deduction_unit="%",
        balance_percentage=Decimal("90"),
        market_index_id=TEST_MARKET_INDEX_ID,
    )
    return term.with_changes(**changes) if changes else term


def sample_penalty(temp_id: str = "tmp-n1", **changes) -> Penalty:
    term = Penalty(
        temp_id=temp_id,
        metal="AS",
        formula_id=TEST_PENALTY_FORMULA_ID,
        amount_usd=Decimal("2.5"),
        lower_limit=Decimal("0.1"),
        lower_limit_unit="%",
        upper_limit=Decimal("0.2"),
        upper_limit_unit="%",
    )
    return term.with_changes(**changes) if changes else term


def sample_quality_spec(temp_id: str = "tmp-q1", **changes) -> QualitySpec:
    term = QualitySpec(
        temp_id=temp_id,
        metal="CU",
        spec_type="range",
        min_value=Decimal("20"),
        max_value=Decimal("25"),
        unit="%",
    )
    return term.with_changes(**changes) if changes else term


def sample_refining_expense(temp_id: str = "tmp-r1", **changes) -> RefiningExpense:
    term = RefiningExpense(
        temp_id=temp_id,
        metal="AG",
        formula_id=TEST_REFINING_FORMULA_ID,
        amount_usd=Decimal("0.35"),
        unit="/oz",
    )
    return term.with_changes(**changes) if changes else term


@pytest.fixture
def complete_draft() -> ContractDraft:
    """A draft that satisfies both the basic-info and incoterm predicates.

    Delivery Jan-Mar 2024, no economic terms.
    """
    return ContractDraft(
        contract_type=ContractType.PURCHASE,
        vendor_id=TEST_VENDOR_ID,
        buyer_id=TEST_BUYER_ID,
        product_id=TEST_PRODUCT_ID,
        country_id=TEST_COUNTRY_PE_ID,
        start_month=date(2024, 1, 1),
        end_month=date(2024, 3, 1),
        incoterm_id=TEST_INCOTERM_FOB_ID,
        delivery_location="Puerto del Callao",
        quotas=generate_quotas(date(2024, 1, 1), date(2024, 3, 1)),
    )


@pytest.fixture
def draft_with_terms(complete_draft) -> ContractDraft:
    """``complete_draft`` plus one term of each kind."""
    return replace(
        complete_draft,
        payables=(sample_payable(),),
        penalties=(sample_penalty(),),
        quality_specs=(sample_quality_spec(),),
        refining_expenses=(sample_refining_expense(),),
    )


# ---------------------------------------------------------------------------
# Seeded reference rows
# ---------------------------------------------------------------------------


@pytest.fixture
def reference_data(session):
    """Insert the test catalog into the reference tables and commit."""
    session.add_all([
        VendorModel(id=TEST_VENDOR_ID, name="Minera Andina SAC", tax_id="20100000001"),
        BuyerModel(id=TEST_BUYER_ID, name="Pacific Metals Trading", tax_id="20100000002"),
        ProductModel(id=TEST_PRODUCT_ID, name="Concentrado de Cobre"),
        CountryModel(id=TEST_COUNTRY_PE_ID, name="Perú", code="PE"),
        CountryModel(id=TEST_COUNTRY_CL_ID, name="Chile", code="CL"),
        IncotermModel(id=TEST_INCOTERM_FOB_ID, code="FOB", description="Free On Board"),
        IncotermModel(id=TEST_INCOTERM_CIF_ID, code="CIF", description="Cost, Insurance and Freight"),
        PayableFormulaModel(id=TEST_DEDUCTION_FORMULA_ID, name=DEDUCTION_FORMULA_NAME, is_deduction=True),
        PayableFormulaModel(id=TEST_PAYABLE_NA_FORMULA_ID, name="No Aplica"),
        PenaltyFormulaModel(id=TEST_PENALTY_FORMULA_ID, name=PENALTY_FORMULA_NAME),
        PenaltyFormulaModel(id=TEST_PENALTY_NA_FORMULA_ID, name="No Aplica"),
        RefiningExpenseFormulaModel(id=TEST_REFINING_FORMULA_ID, name=REFINING_FORMULA_NAME),
        RefiningExpenseFormulaModel(id=TEST_REFINING_NA_FORMULA_ID, name="No Aplica"),
        MarketIndexModel(id=TEST_MARKET_INDEX_ID, name=MARKET_INDEX_NAME),
    ])
    session.commit()


@pytest.fixture
def contract_template(session, reference_data) -> UUID:
    """A sale template with two payables, one penalty, one quality spec and
    one refining expense.  Returns the template id."""
    template = ContractTemplateModel(
        id=TEST_TEMPLATE_ID,
        name="Venta Cobre CIF",
        contract_type="sale",
        incoterm_code="CIF",
    )
    template.payables = [
        ContractTemplatePayableModel(
            position=0,
            formula_id=TEST_DEDUCTION_FORMULA_ID,
            metal="CU",
            deduction_value=Decimal("1.2"),
            deduction_unit="%",
            balance_percentage=Decimal("90"),
            market_index_id=TEST_MARKET_INDEX_ID,
        ),
        ContractTemplatePayableModel(position=1, formula_id=TEST_PAYABLE_NA_FORMULA_ID),
    ]
    template.penalties = [
        ContractTemplatePenaltyModel(
            position=0,
            formula_id=TEST_PENALTY_FORMULA_ID,
            metal="AS",
            amount_usd=Decimal("2.5"),
            lower_limit=Decimal("0.1"),
            lower_limit_unit="%",
            upper_limit=Decimal("0.2"),
            upper_limit_unit="%",
        ),
    ]
    template.quality_specs = [
        ContractTemplateQualitySpecModel(
            position=0, metal="CU", spec_type="minimum", min_value=Decimal("22"), unit="%",
        ),
    ]
    template.refining_expenses = [
        ContractTemplateRefiningExpenseModel(
            position=0,
            formula_id=TEST_REFINING_FORMULA_ID,
            metal="AG",
            amount_usd=Decimal("0.35"),
            unit="/oz",
        ),
    ]
    session.add(template)
    session.commit()
    return TEST_TEMPLATE_ID
