"""
Write path for the cached PaymentPlan.earned_commission.

recompute_and_store() runs one transaction that
  1) locks the plan row (SELECT ... FOR UPDATE) and reads its version token,
  2) reads every installment of the plan,
  3) computes the CommissionResult,
  4) writes earned_commission and one CommissionAudit row.

A concurrent writer that got there first makes our UPDATE match no row
(StaleDataError), or the database reports a lock conflict. Either way the
whole unit is rolled back and retried on a fresh snapshot. The cached value
and its audit row are always committed together.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from commission_engine.core.config import LEDGER_MAX_RETRIES
from commission_engine.core.exceptions import LedgerWriteError, PlanNotFoundError
from commission_engine.models.commission_audit_model import CommissionAudit
from commission_engine.models.installment_model import Installment
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.schemas.commission_schema import (
    CommissionResult,
    InstallmentSnapshot,
    PlanSnapshot,
)
from commission_engine.services.commission_calculator import CommissionCalculator
from commission_engine.utils.database import SessionLocal
from commission_engine.utils.money import to_money

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (StaleDataError, OperationalError)


def load_snapshot(
        db: Session,
        plan_id: int,
        for_update: bool = False,
) -> Tuple[PaymentPlan, PlanSnapshot, list]:
    """
    Read the plan and all of its installments as one snapshot.

    Pending in-session changes are flushed first so the snapshot includes
    them, then the rows are re-read from the database.
    """
    db.flush()

    q = db.query(PaymentPlan).filter(PaymentPlan.plan_id == plan_id)
    if for_update:
        q = q.with_for_update()
    plan = q.populate_existing().first()
    if not plan:
        raise PlanNotFoundError(plan_id)

    rows = (
        db.query(Installment)
        .filter(Installment.plan_id == plan_id)
        .order_by(Installment.installment_number.asc())
        .populate_existing()
        .all()
    )

    snapshot = PlanSnapshot.from_model(plan)
    installments = [InstallmentSnapshot.from_model(r, plan.currency) for r in rows]
    return plan, snapshot, installments


class CommissionLedger:

    def __init__(
            self,
            session_factory: Callable[[], Session] = SessionLocal,
            calculator: Optional[CommissionCalculator] = None,
            max_retries: int = LEDGER_MAX_RETRIES,
    ):
        self.session_factory = session_factory
        self.calculator = calculator or CommissionCalculator()
        self.max_retries = max(1, int(max_retries))

    def recompute_and_store(
            self,
            plan_id: int,
            triggering_event: str,
            actor_id: Optional[str] = None,
    ) -> CommissionResult:
        """
        Recompute earned commission for one plan and persist it atomically.

        Retries conflicting writes up to max_retries times, then raises
        LedgerWriteError. PlanNotFoundError and any other error propagate
        immediately after rollback.
        """
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            db = self.session_factory()
            try:
                result = self.recompute_in_session(db, plan_id, triggering_event, actor_id)
                db.commit()
                return result

            except RETRYABLE_ERRORS as e:
                db.rollback()
                last_error = e
                logger.warning(
                    "Commission write conflict on plan %s (attempt %d/%d): %s",
                    plan_id, attempt, self.max_retries, e.__class__.__name__,
                )

            except Exception:
                db.rollback()
                raise

            finally:
                db.close()

        logger.error(
            "Giving up storing earned commission for plan %s after %d attempts",
            plan_id, self.max_retries,
        )
        raise LedgerWriteError(plan_id, self.max_retries) from last_error

    def recompute_in_session(
            self,
            db: Session,
            plan_id: int,
            triggering_event: str,
            actor_id: Optional[str] = None,
    ) -> CommissionResult:
        """
        Same unit of work inside a transaction owned by the caller.

        Nothing is committed here; the final flush surfaces a lost version
        race as StaleDataError so the caller can roll back as a whole.
        """
        plan, snapshot, installments = load_snapshot(db, plan_id, for_update=True)

        result = self.calculator.compute(snapshot, installments)

        old_value = to_money(plan.earned_commission, plan.currency)
        new_value = result.earned_commission

        plan.earned_commission = new_value.amount
        # always touch the row so the version check runs even when the value is unchanged
        plan.updated_on = datetime.now()

        db.add(
            CommissionAudit(
                plan_id=plan.plan_id,
                old_value=old_value.amount,
                new_value=new_value.amount,
                triggering_event=triggering_event,
                actor_id=actor_id,
                created_on=datetime.now(),
            )
        )
        db.flush()

        logger.info(
            "Plan %s earned commission %s -> %s (%s, actor=%s)",
            plan_id, old_value, new_value, triggering_event, actor_id,
        )
        return result
