from decimal import Decimal
from typing import Iterable, Optional

import pytest

from commission_engine.models.installment_model import Installment
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.utils.database import init_db, make_engine, make_session_factory


@pytest.fixture
def engine(tmp_path):
    # file-backed so separate sessions really use separate connections
    eng = make_engine(f"sqlite:///{tmp_path / 'commissions.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


def _installment_rows(items: Iterable[dict]) -> list:
    rows = []
    for number, spec in enumerate(items, start=1):
        paid = spec.get("paid_amount")
        rows.append(
            Installment(
                installment_number=spec.get("installment_number", number),
                amount=Decimal(spec["amount"]),
                paid_amount=None if paid is None else Decimal(paid),
                status=spec.get("status", "PENDING"),
                generates_commission=spec.get("generates_commission", True),
            )
        )
    return rows


@pytest.fixture
def plan_factory(session_factory):
    """Insert a committed plan with installments and return its id."""

    def _make(
            total: str = "10000.00",
            expected: str = "800.00",
            materials: str = "0",
            admin: str = "0",
            other: str = "0",
            earned: str = "0",
            status: str = "ACTIVE",
            currency: str = "AUD",
            installments: Optional[Iterable[dict]] = None,
    ) -> int:
        session = session_factory()
        try:
            plan = PaymentPlan(
                currency=currency,
                total_amount=Decimal(total),
                materials_cost=Decimal(materials),
                admin_fees=Decimal(admin),
                other_fees=Decimal(other),
                commission_rate_percent=Decimal("0"),
                gst_inclusive=True,
                expected_commission=Decimal(expected),
                earned_commission=Decimal(earned),
                status=status,
            )
            plan.installments = _installment_rows(installments or [])
            session.add(plan)
            session.commit()
            return plan.plan_id
        finally:
            session.close()

    return _make
