"""ORM constraint tests for contract tables.

These exercise the database directly: uniqueness, foreign keys and NOT
NULL columns that the persistence coordinator relies on to fail a step.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from trade_modules.contracts.orm import (
    ContractModel,
    ContractPenaltyModel,
    ContractQuotaModel,
    CountryModel,
)
from tests.modules.conftest import (
    TEST_BUYER_ID,
    TEST_COUNTRY_PE_ID,
    TEST_INCOTERM_FOB_ID,
    TEST_PRODUCT_ID,
    TEST_VENDOR_ID,
)


def _contract(actor_id, number="CTR-1", **overrides) -> ContractModel:
    values = dict(
        contract_number=number,
        contract_type="purchase",
        vendor_id=TEST_VENDOR_ID,
        buyer_id=TEST_BUYER_ID,
        product_id=TEST_PRODUCT_ID,
        country_id=TEST_COUNTRY_PE_ID,
        start_month=date(2024, 1, 1),
        end_month=date(2024, 2, 1),
        incoterm_id=TEST_INCOTERM_FOB_ID,
        delivery_location="Callao",
        created_by_id=actor_id,
    )
    values.update(overrides)
    return ContractModel(**values)


class TestContractTable:

    def test_round_trip(self, session, reference_data, test_actor_id):
        contract = _contract(test_actor_id)
        session.add(contract)
        session.flush()
        session.add(ContractQuotaModel(
            contract_id=contract.id,
            month=date(2024, 1, 1),
            tmh=Decimal("330"),
            tms=Decimal("300"),
            h2o_percentage=Decimal("10"),
            created_by_id=test_actor_id,
        ))
        session.commit()
        session.expire_all()

        loaded = session.get(ContractModel, contract.id)
        assert loaded.status == "draft"
        assert loaded.created_at is not None
        assert loaded.quotas[0].tms == Decimal("300")
        assert "CTR-1" in repr(loaded)

    def test_contract_number_unique(self, session, reference_data, test_actor_id):
        session.add(_contract(test_actor_id))
        session.flush()
        session.add(_contract(test_actor_id))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_unknown_vendor_rejected(self, session, reference_data, test_actor_id):
        session.add(_contract(test_actor_id, vendor_id=uuid4()))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_created_by_required(self, session, reference_data):
        session.add(_contract(None))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()


class TestDependentTables:

    def test_penalty_requires_formula(self, session, reference_data, test_actor_id):
        contract = _contract(test_actor_id)
        session.add(contract)
        session.flush()
        session.add(ContractPenaltyModel(
            contract_id=contract.id, formula_id=None, created_by_id=test_actor_id,
        ))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_quota_requires_existing_contract(self, session, reference_data, test_actor_id):
        session.add(ContractQuotaModel(
            contract_id=uuid4(),
            month=date(2024, 1, 1),
            tmh=Decimal("1"),
            tms=Decimal("1"),
            h2o_percentage=Decimal("0"),
            created_by_id=test_actor_id,
        ))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()


class TestReferenceTables:

    def test_country_code_unique(self, session, reference_data):
        session.add(CountryModel(name="Perú (dup)", code="PE"))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()
