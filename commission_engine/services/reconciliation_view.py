import logging
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from commission_engine.core.config import RECONCILIATION_TOLERANCE
from commission_engine.core.exceptions import PlanNotFoundError
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.schemas.commission_schema import CommissionResult, Discrepancy
from commission_engine.services.commission_calculator import CommissionCalculator
from commission_engine.services.commission_ledger import load_snapshot
from commission_engine.utils.database import SessionLocal
from commission_engine.utils.money import Money, to_money

logger = logging.getLogger(__name__)


class ReconciliationView:
    """
    Read-only recomputation of earned commission, used to audit the cache.

    live() never looks at PaymentPlan.earned_commission; find_discrepancies()
    compares that cached field against live() and reports the differences.
    Nothing here takes a lock or writes, so it can run alongside payments.
    """

    def __init__(
            self,
            session_factory: Callable[[], Session] = SessionLocal,
            calculator: Optional[CommissionCalculator] = None,
    ):
        self.session_factory = session_factory
        self.calculator = calculator or CommissionCalculator()

    def live(self, plan_id: int) -> CommissionResult:
        db = self.session_factory()
        try:
            return self._live(db, plan_id)
        finally:
            db.rollback()
            db.close()

    def find_discrepancies(
            self,
            plan_ids: Optional[Iterable[int]] = None,
            tolerance=None,
    ) -> List[Discrepancy]:
        """
        Plans whose cached earned_commission differs from the live value by
        more than tolerance (default RECONCILIATION_TOLERANCE). plan_ids=None
        checks every plan. Unknown ids are skipped.
        """
        tolerance = RECONCILIATION_TOLERANCE if tolerance is None else tolerance

        db = self.session_factory()
        try:
            if plan_ids is None:
                plan_ids = [
                    pid for (pid,) in
                    db.query(PaymentPlan.plan_id).order_by(PaymentPlan.plan_id.asc()).all()
                ]

            found = []
            for plan_id in plan_ids:
                try:
                    live = self._live(db, plan_id)
                except PlanNotFoundError:
                    logger.warning("Reconciliation skipped unknown plan %s", plan_id)
                    continue

                cached = self._cached(db, plan_id, live.earned_commission.currency)
                delta = cached - live.earned_commission
                if abs(delta) > Money.of(tolerance, cached.currency):
                    logger.warning(
                        "Commission drift on plan %s: cached %s, live %s (delta %s)",
                        plan_id, cached, live.earned_commission, delta,
                    )
                    found.append(
                        Discrepancy(
                            plan_id=plan_id,
                            cached=cached,
                            live=live.earned_commission,
                            delta=delta,
                        )
                    )

            logger.info("Reconciliation found %d discrepancies", len(found))
            return found
        finally:
            db.rollback()
            db.close()

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------
    def _live(self, db: Session, plan_id: int) -> CommissionResult:
        _, snapshot, installments = load_snapshot(db, plan_id)
        return self.calculator.compute(snapshot, installments)

    @staticmethod
    def _cached(db: Session, plan_id: int, currency: str) -> Money:
        value = (
            db.query(PaymentPlan.earned_commission)
            .filter(PaymentPlan.plan_id == plan_id)
            .scalar()
        )
        return to_money(value, currency)
