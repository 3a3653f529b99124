"""Tests for plan authoring: expected commission, persisted schedule, overrides."""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from commission_engine.core.exceptions import InvalidScheduleError, PlanNotFoundError
from commission_engine.models.commission_audit_model import CommissionAudit
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.schemas.payment_plan_schema import (
    FeeBreakdown,
    InitialPayment,
    InstallmentDraft,
    PaymentPlanCreate,
    PaymentPlanOut,
)
from commission_engine.services.plan_service import activate_plan, create_plan, preview_schedule


def _payload(**overrides) -> PaymentPlanCreate:
    data = dict(
        total_amount=Decimal("10000"),
        commission_rate_percent=Decimal("15"),
        gst_inclusive=True,
        fees=FeeBreakdown(materials_cost=Decimal("500"), admin_fees=Decimal("200"), other_fees=Decimal("100")),
        installment_count=4,
        cadence="quarterly",
        first_college_due_date=date(2025, 3, 15),
        student_lead_time_days=14,
        created_by="agent-1",
    )
    data.update(overrides)
    return PaymentPlanCreate(**data)


class TestCreatePlan:
    def test_persists_plan_and_schedule(self, db) -> None:
        plan = create_plan(db, _payload())

        assert plan.status == "DRAFT"
        assert plan.expected_commission == Decimal("1380.00")
        assert plan.earned_commission == Decimal("0.00")
        assert len(plan.installments) == 5

        amounts = sum(Decimal(str(i.amount)) for i in plan.installments)
        assert amounts == Decimal("10000.00")
        fee_rows = [i for i in plan.installments if not i.generates_commission]
        assert len(fee_rows) == 1
        assert Decimal(str(fee_rows[0].amount)) == Decimal("800.00")

    def test_gst_exclusive_expected_commission(self, db) -> None:
        plan = create_plan(db, _payload(gst_inclusive=False))
        assert plan.expected_commission == Decimal("1254.55")

    def test_creation_is_audited(self, db) -> None:
        plan = create_plan(db, _payload())
        audit = db.query(CommissionAudit).filter(CommissionAudit.plan_id == plan.plan_id).one()
        assert audit.triggering_event == "PLAN_CREATED"
        assert audit.actor_id == "agent-1"

    def test_paid_initial_payment_earns_immediately(self, db) -> None:
        initial = InitialPayment(amount=Decimal("920"), due_date=date(2025, 2, 1), paid=True)
        plan = create_plan(db, _payload(initial_payment=initial))

        first = plan.installments[0]
        assert first.installment_number == 0
        assert first.status == "PAID"
        assert Decimal(str(first.paid_amount)) == Decimal("920.00")
        # 920 / 9200 of 1380
        assert plan.earned_commission == Decimal("138.00")

    def test_out_schema(self, db) -> None:
        out = PaymentPlanOut.model_validate(create_plan(db, _payload()))
        assert out.total_amount == 10000.0
        assert len(out.installments) == 5


class TestOverrides:
    def test_valid_override_is_saved_verbatim(self, db) -> None:
        overrides = [
            InstallmentDraft(installment_number=1, amount=Decimal("6000"), college_due_date=date(2025, 4, 1)),
            InstallmentDraft(installment_number=2, amount=Decimal("3200"), college_due_date=date(2025, 8, 1)),
            InstallmentDraft(installment_number=3, amount=Decimal("800"), generates_commission=False),
        ]
        plan = create_plan(db, _payload(installment_overrides=overrides))
        assert [Decimal(str(i.amount)) for i in plan.installments] == [
            Decimal("6000.00"), Decimal("3200.00"), Decimal("800.00"),
        ]

    def test_override_must_reconcile(self, db) -> None:
        overrides = [InstallmentDraft(installment_number=1, amount=Decimal("9000"))]
        with pytest.raises(InvalidScheduleError):
            preview_schedule(_payload(installment_overrides=overrides))


class TestValidation:
    def test_fees_must_leave_commissionable_amount(self, db) -> None:
        with pytest.raises(InvalidScheduleError) as exc:
            create_plan(db, _payload(total_amount=Decimal("800")))
        assert exc.value.field == "fees"
        assert db.query(PaymentPlan).count() == 0

    def test_fees_checked_on_overridden_schedule(self) -> None:
        overrides = [InstallmentDraft(installment_number=1, amount=Decimal("800"))]
        with pytest.raises(InvalidScheduleError) as exc:
            preview_schedule(_payload(total_amount=Decimal("800"), installment_overrides=overrides))
        assert exc.value.field == "fees"

    def test_rate_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _payload(commission_rate_percent=Decimal("101"))

    def test_currency_is_normalised(self) -> None:
        assert _payload(currency="usd").currency == "USD"


class TestActivatePlan:
    def test_draft_installments_become_pending(self, db) -> None:
        initial = InitialPayment(amount=Decimal("1000"), due_date=date(2025, 2, 1), paid=True)
        plan = create_plan(db, _payload(initial_payment=initial))

        activated = activate_plan(db, plan.plan_id)

        assert activated.status == "ACTIVE"
        statuses = [i.status for i in activated.installments]
        assert statuses[0] == "PAID"
        assert set(statuses[1:]) == {"PENDING"}

    def test_only_drafts(self, db) -> None:
        plan = create_plan(db, _payload())
        activate_plan(db, plan.plan_id)
        with pytest.raises(InvalidScheduleError):
            activate_plan(db, plan.plan_id)

    def test_unknown_plan(self, db) -> None:
        with pytest.raises(PlanNotFoundError):
            activate_plan(db, 31337)
