import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from commission_engine.core.config import OVERPAYMENT_TOLERANCE_PERCENT
from commission_engine.core.exceptions import InstallmentNotFoundError, PaymentValidationError
from commission_engine.models.installment_model import Installment
from commission_engine.models.payment_audit_model import PaymentAudit
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.schemas.payment_plan_schema import InstallmentOut
from commission_engine.schemas.payment_schema import PaymentOutcome, PaymentRecord
from commission_engine.services.commission_ledger import CommissionLedger
from commission_engine.utils.money import Money, to_money

logger = logging.getLogger(__name__)


def max_allowed_payment(amount: Money, tolerance_percent: Decimal = OVERPAYMENT_TOLERANCE_PERCENT) -> Money:
    """amount * (100 + tolerance%) / 100, e.g. 110% of the installment."""
    num, den = (Decimal(100) + Decimal(str(tolerance_percent))).as_integer_ratio()
    return amount.multiply_ratio(num, den * 100)


def _locked_plan(db: Session, plan_id: int) -> PaymentPlan:
    return (
        db.query(PaymentPlan)
        .filter(PaymentPlan.plan_id == plan_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def record_payment(
        db: Session,
        installment_id: int,
        payload: PaymentRecord,
        actor_id: Optional[str] = None,
        ledger: Optional[CommissionLedger] = None,
) -> PaymentOutcome:
    """
    Mark an installment as paid and refresh the plan's earned commission.

    The plan row is locked and every row is re-read before anything is
    decided. The installment update is flushed before the completion check,
    so sibling payments committed meanwhile are seen. The installment update,
    plan status change, payment audit row, cached commission and its audit
    row are committed together. Under-payments are recorded as PAID with the
    smaller paid_amount, so they earn proportional commission.
    """
    ledger = ledger or CommissionLedger()

    plan_id = (
        db.query(Installment.plan_id)
        .filter(Installment.installment_id == installment_id)
        .scalar()
    )
    if plan_id is None:
        raise InstallmentNotFoundError(installment_id)

    try:
        plan = _locked_plan(db, plan_id)
        inst = (
            db.query(Installment)
            .filter(Installment.installment_id == installment_id)
            .populate_existing()
            .one()
        )

        if plan.status == "CANCELLED":
            raise PaymentValidationError("Payment plan is cancelled", field="plan")
        if inst.status == "CANCELLED":
            raise PaymentValidationError("Installment is cancelled", field="installment")

        amount = to_money(inst.amount, plan.currency)
        paid = Money.of(payload.paid_amount, plan.currency)
        limit = max_allowed_payment(amount)
        if paid > limit:
            raise PaymentValidationError(
                f"Payment amount cannot exceed {limit.amount} "
                f"({100 + OVERPAYMENT_TOLERANCE_PERCENT}% of installment amount)",
                field="paid_amount",
            )

        old_status = inst.status
        old_paid = inst.paid_amount
        old_paid_date = inst.paid_date

        inst.paid_amount = paid.amount
        inst.paid_date = payload.paid_date
        inst.status = "PAID"
        inst.payment_notes = payload.notes
        db.flush()

        siblings = (
            db.query(Installment)
            .filter(Installment.plan_id == plan_id)
            .populate_existing()
            .all()
        )
        all_paid = all(s.status == "PAID" for s in siblings if s.status != "CANCELLED")
        if all_paid:
            plan.status = "COMPLETED"
        elif plan.status == "DRAFT":
            plan.status = "ACTIVE"

        result = ledger.recompute_in_session(
            db,
            plan_id,
            triggering_event=f"PAYMENT_RECORDED:installment={installment_id}",
            actor_id=actor_id,
        )

        db.add(
            PaymentAudit(
                installment_id=installment_id,
                plan_id=plan_id,
                installment_number=inst.installment_number,
                old_status=old_status,
                new_status=inst.status,
                old_paid_amount=old_paid,
                new_paid_amount=paid.amount,
                old_paid_date=old_paid_date,
                new_paid_date=payload.paid_date,
                notes=payload.notes,
                plan_completed=all_paid,
                earned_commission=result.earned_commission.amount,
                actor_id=actor_id,
                created_on=datetime.now(),
            )
        )
        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(
        "Recorded payment %s for installment #%s of plan %s (status %s -> PAID, previous paid %s)",
        paid, inst.installment_number, plan_id, old_status, old_paid,
    )

    return PaymentOutcome(
        installment=InstallmentOut.model_validate(inst),
        plan_id=plan_id,
        plan_status=plan.status,
        plan_completed=all_paid,
        commission=result.to_out(),
    )
