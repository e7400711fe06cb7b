"""
Catalog Loader - Loads reference data for the contract authoring engine.

The CatalogLoader queries the reference tables to build an
EconomicTermCatalog that is handed to the wizard session, and reads contract
templates a draft can be seeded from.

This keeps database access out of the wizard and the terms engine.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from trade_kernel.exceptions import TemplateNotFoundError
from trade_kernel.logging_config import get_logger
from trade_modules.contracts.catalog import EconomicTermCatalog
from trade_modules.contracts.config import ContractAuthoringConfig
from trade_modules.contracts.models import ContractTemplate, ContractType, TemplateSummary
from trade_modules.contracts.orm import (
    BuyerModel,
    ContractTemplateModel,
    CountryModel,
    IncotermModel,
    MarketIndexModel,
    PayableFormulaModel,
    PenaltyFormulaModel,
    ProductModel,
    RefiningExpenseFormulaModel,
    VendorModel,
)

logger = get_logger("modules.contracts.loader")


class CatalogLoader:
    """
    Loads the economic term catalog and contract templates.

    The reads are independent of each other; the catalog is only built
    once every one of them has returned, so callers never see a partial
    catalog.
    """

    def __init__(self, session: Session, config: ContractAuthoringConfig | None = None):
        """
        Initialize the loader.

        Args:
            session: SQLAlchemy session.
            config: Supplies the "not applicable" formula name.
        """
        self._session = session
        self._config = config or ContractAuthoringConfig.with_defaults()

    def load(self) -> EconomicTermCatalog:
        """
        Load every reference table into a frozen catalog.

        Returns:
            EconomicTermCatalog for one wizard session.
        """
        vendors = self._load_all(VendorModel, VendorModel.name)
        buyers = self._load_all(BuyerModel, BuyerModel.name)
        products = self._load_all(ProductModel, ProductModel.name)
        countries = self._load_all(CountryModel, CountryModel.name)
        incoterms = self._load_all(IncotermModel, IncotermModel.code)
        payable_formulas = self._load_all(PayableFormulaModel, PayableFormulaModel.name)
        penalty_formulas = self._load_all(PenaltyFormulaModel, PenaltyFormulaModel.name)
        refining_formulas = self._load_all(
            RefiningExpenseFormulaModel, RefiningExpenseFormulaModel.name,
        )
        market_indices = self._load_all(MarketIndexModel, MarketIndexModel.name)

        catalog = EconomicTermCatalog(
            vendors=vendors,
            buyers=buyers,
            products=products,
            countries=countries,
            incoterms=incoterms,
            payable_formulas=payable_formulas,
            penalty_formulas=penalty_formulas,
            refining_expense_formulas=refining_formulas,
            market_indices=market_indices,
            not_applicable_name=self._config.not_applicable_formula_name,
        )

        if catalog.deduction_payable_formula() is None:
            # Surfaced as an error only when a payable is added.
            logger.warning("catalog_missing_deduction_formula")

        logger.info(
            "catalog_loaded",
            extra={
                "vendor_count": len(vendors),
                "buyer_count": len(buyers),
                "product_count": len(products),
                "country_count": len(countries),
                "incoterm_count": len(incoterms),
                "payable_formula_count": len(payable_formulas),
                "penalty_formula_count": len(penalty_formulas),
                "refining_formula_count": len(refining_formulas),
                "market_index_count": len(market_indices),
            },
        )
        return catalog

    def list_templates(self, contract_type: ContractType | str | None = None) -> list[TemplateSummary]:
        """Templates ordered by name, optionally only one contract type."""
        stmt = select(ContractTemplateModel).order_by(ContractTemplateModel.name)
        if contract_type is not None:
            stmt = stmt.where(
                ContractTemplateModel.contract_type == ContractType(contract_type).value
            )
        return [row.to_summary() for row in self._session.execute(stmt).scalars()]

    def load_template(self, template_id: UUID) -> ContractTemplate:
        """
        Load a template with all four term collections.

        Raises:
            TemplateNotFoundError: If no template has this id.
        """
        stmt = (
            select(ContractTemplateModel)
            .where(ContractTemplateModel.id == template_id)
            .options(
                selectinload(ContractTemplateModel.payables),
                selectinload(ContractTemplateModel.penalties),
                selectinload(ContractTemplateModel.quality_specs),
                selectinload(ContractTemplateModel.refining_expenses),
            )
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise TemplateNotFoundError(str(template_id))

        template = ContractTemplate(
            id=row.id,
            name=row.name,
            contract_type=ContractType(row.contract_type),
            incoterm_code=row.incoterm_code,
            payables=tuple(p.to_term() for p in row.payables),
            penalties=tuple(p.to_term() for p in row.penalties),
            quality_specs=tuple(q.to_term() for q in row.quality_specs),
            refining_expenses=tuple(r.to_term() for r in row.refining_expenses),
        )
        logger.info(
            "contract_template_loaded",
            extra={
                "template_id": template.id,
                "payable_count": len(template.payables),
                "penalty_count": len(template.penalties),
                "quality_spec_count": len(template.quality_specs),
                "refining_expense_count": len(template.refining_expenses),
            },
        )
        return template

    def _load_all(self, model, order_by) -> tuple:
        rows = self._session.execute(select(model).order_by(order_by)).scalars().all()
        return tuple(row.to_dto() for row in rows)
