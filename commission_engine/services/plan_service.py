import logging
from typing import List

from sqlalchemy.orm import Session

from commission_engine.core.exceptions import InvalidScheduleError, PlanNotFoundError
from commission_engine.models.installment_model import Installment
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.schemas.payment_plan_schema import InstallmentDraft, PaymentPlanCreate
from commission_engine.services.commission_ledger import CommissionLedger
from commission_engine.services.schedule_generator import (
    ScheduleGenerator,
    validate_fees,
    validate_schedule_total,
)
from commission_engine.utils.commission_calculations import (
    calculate_commissionable_value,
    calculate_expected_commission,
)
from commission_engine.utils.money import Money

logger = logging.getLogger(__name__)


def preview_schedule(payload: PaymentPlanCreate) -> List[InstallmentDraft]:
    """Generated (or overridden) schedule for a plan that is not saved yet."""
    cur = payload.currency
    validate_fees(Money.of(payload.total_amount, cur), Money.of(payload.fees.total, cur))

    if payload.installment_overrides:
        validate_schedule_total(payload.installment_overrides, payload.total_amount, payload.currency)
        return list(payload.installment_overrides)

    return ScheduleGenerator(payload.currency).generate(
        total_amount=payload.total_amount,
        installment_count=payload.installment_count,
        cadence=payload.cadence,
        start_date=payload.first_college_due_date,
        lead_time_days=payload.student_lead_time_days,
        fees=payload.fees,
        initial_payment=payload.initial_payment,
    )


def expected_commission_for(payload: PaymentPlanCreate) -> Money:
    cur = payload.currency
    commissionable = calculate_commissionable_value(
        Money.of(payload.total_amount, cur),
        Money.of(payload.fees.materials_cost, cur),
        Money.of(payload.fees.admin_fees, cur),
        Money.of(payload.fees.other_fees, cur),
    )
    return calculate_expected_commission(
        commissionable,
        payload.commission_rate_percent,
        payload.gst_inclusive,
    )


def create_plan(db: Session, payload: PaymentPlanCreate) -> PaymentPlan:
    """
    Persist a DRAFT plan and its schedule in one transaction.

    expected_commission is derived from the rate, the GST flag and the fees.
    A manual schedule override must still reconcile to total_amount.
    """
    drafts = preview_schedule(payload)
    expected = expected_commission_for(payload)

    plan = PaymentPlan(
        reference_no=payload.reference_no,
        currency=payload.currency,
        total_amount=Money.of(payload.total_amount, payload.currency).amount,
        materials_cost=payload.fees.materials_cost,
        admin_fees=payload.fees.admin_fees,
        other_fees=payload.fees.other_fees,
        commission_rate_percent=payload.commission_rate_percent,
        gst_inclusive=payload.gst_inclusive,
        expected_commission=expected.amount,
        earned_commission=Money.zero(payload.currency).amount,
        status="DRAFT",
        created_by=payload.created_by,
    )

    try:
        db.add(plan)
        db.flush()  # gives plan.plan_id

        for d in drafts:
            db.add(
                Installment(
                    plan_id=plan.plan_id,
                    installment_number=d.installment_number,
                    amount=d.amount,
                    paid_amount=d.amount if d.status == "PAID" else None,
                    paid_date=d.student_due_date if d.status == "PAID" else None,
                    status=d.status,
                    generates_commission=d.generates_commission,
                    is_initial_payment=d.is_initial_payment,
                    student_due_date=d.student_due_date,
                    college_due_date=d.college_due_date,
                )
            )

        # an initial payment may already be PAID, so the cache starts from a real computation
        CommissionLedger().recompute_in_session(db, plan.plan_id, "PLAN_CREATED", payload.created_by)

        db.commit()
        db.refresh(plan)

    except Exception:
        db.rollback()
        raise

    logger.info(
        "Created payment plan %s: total %s, expected commission %s, %d installments",
        plan.plan_id, plan.total_amount, plan.expected_commission, len(drafts),
    )
    return plan


def activate_plan(db: Session, plan_id: int) -> PaymentPlan:
    """DRAFT -> ACTIVE; draft installments become PENDING, paid ones are kept."""
    plan = db.query(PaymentPlan).filter(PaymentPlan.plan_id == plan_id).first()
    if not plan:
        raise PlanNotFoundError(plan_id)

    if plan.status != "DRAFT":
        raise InvalidScheduleError(f"Only DRAFT plans can be activated (status: {plan.status})", field="status")

    try:
        for inst in plan.installments:
            if inst.status == "DRAFT":
                inst.status = "PENDING"
        plan.status = "ACTIVE"
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Activated payment plan %s", plan_id)
    return plan
