"""
Installment schedule generation.

Splits a plan's commissionable amount into N installments so that the
installment amounts always reconcile to the plan total to the cent:
installments 1..N-1 get the floored share and installment N absorbs the
remainder. Non-commissionable fees become one trailing installment that
does not generate commission.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from commission_engine.core.config import DEFAULT_CURRENCY
from commission_engine.core.exceptions import InvalidScheduleError
from commission_engine.schemas.payment_plan_schema import (
    FeeBreakdown,
    InitialPayment,
    InstallmentDraft,
)
from commission_engine.utils.money import Money

logger = logging.getLogger(__name__)

CADENCE_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
}
CUSTOM_CADENCE = "custom"


def college_due_dates(start_date: date, count: int, cadence: str) -> List[Optional[date]]:
    """
    start_date, start_date + 1 step, ... (count dates).

    Month steps are taken from start_date each time, so Jan 31 monthly gives
    Feb 28/29, Mar 31, Apr 30 rather than drifting to the 28th.
    """
    if cadence == CUSTOM_CADENCE:
        return [None] * count
    months = CADENCE_MONTHS[cadence]
    return [start_date + relativedelta(months=i * months) for i in range(count)]


def student_due_date(college_due: Optional[date], lead_time_days: int) -> Optional[date]:
    if college_due is None:
        return None
    return college_due - timedelta(days=lead_time_days)


def validate_fees(total: Money, fees_total: Money) -> None:
    if fees_total >= total:
        raise InvalidScheduleError(
            f"Fees ({fees_total}) leave no commissionable amount out of {total}",
            field="fees",
        )


def validate_schedule_total(
        installments: Iterable[InstallmentDraft],
        total_amount,
        currency: str = DEFAULT_CURRENCY,
) -> Money:
    """
    Re-check the reconciliation invariant on a hand-edited schedule.

    Cancelled rows are ignored. One minor unit of slack is allowed. Returns
    the schedule sum, raises InvalidScheduleError otherwise.
    """
    total = Money.of(total_amount, currency)
    scheduled = Money.total(
        (Money.of(i.amount, currency) for i in installments if i.status != "CANCELLED"),
        currency,
    )
    if abs(scheduled - total) > total.smallest_unit:
        raise InvalidScheduleError(
            f"Installment amounts must sum to total amount ({scheduled} != {total})",
            field="installments",
        )
    return scheduled


class ScheduleGenerator:

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency.upper()

    def generate(
            self,
            total_amount,
            installment_count: int,
            cadence: str,
            start_date: Optional[date],
            lead_time_days: int = 0,
            fees: Optional[FeeBreakdown] = None,
            initial_payment: Optional[InitialPayment] = None,
    ) -> List[InstallmentDraft]:
        """
        Build the draft schedule for a plan.

        Args:
            total_amount: plan total including fees (Decimal / str / Money)
            installment_count: number of regular installments, >= 1
            cadence: "monthly", "quarterly" or "custom" (no dates generated)
            start_date: first college due date
            lead_time_days: student pays this many days before the college
            fees: non-commissionable fees, billed as one trailing installment
            initial_payment: optional deposit, installment number 0

        Raises:
            InvalidScheduleError: on any invalid parameter; nothing is returned.
        """
        total = Money.of(total_amount, self.currency)
        fees_total = self._fees_total(fees)

        self._validate(total, fees_total, installment_count, cadence, start_date, lead_time_days)

        commissionable = total - fees_total
        drafts: List[InstallmentDraft] = []

        if initial_payment is not None:
            initial = Money.of(initial_payment.amount, self.currency)
            if initial >= commissionable:
                raise InvalidScheduleError(
                    "Initial payment must be less than the commissionable amount",
                    field="initial_payment",
                )
            commissionable = commissionable - initial
            drafts.append(
                InstallmentDraft(
                    installment_number=0,
                    amount=initial.amount,
                    currency=self.currency,
                    student_due_date=initial_payment.due_date,
                    college_due_date=initial_payment.due_date,
                    generates_commission=True,
                    is_initial_payment=True,
                    status="PAID" if initial_payment.paid else "DRAFT",
                )
            )

        base = commissionable.split_floor(installment_count)
        last = commissionable - base.times(installment_count - 1)

        college_dates = college_due_dates(start_date, installment_count, cadence)

        for number, college_due in enumerate(college_dates, start=1):
            amount = last if number == installment_count else base
            drafts.append(
                InstallmentDraft(
                    installment_number=number,
                    amount=amount.amount,
                    currency=self.currency,
                    student_due_date=student_due_date(college_due, lead_time_days),
                    college_due_date=college_due,
                    generates_commission=True,
                )
            )

        if fees_total.is_positive():
            first_college_due = college_dates[0]
            drafts.append(
                InstallmentDraft(
                    installment_number=installment_count + 1,
                    amount=fees_total.amount,
                    currency=self.currency,
                    student_due_date=student_due_date(first_college_due, lead_time_days),
                    college_due_date=first_college_due,
                    generates_commission=False,
                )
            )

        # reconciliation holds by construction; fail loudly if that ever changes
        scheduled = Money.total((d.money for d in drafts), self.currency)
        if scheduled != total:
            raise AssertionError(f"schedule sum {scheduled} != total {total}")

        logger.debug(
            "Generated %d installments (%s cadence) for total %s, base %s, last %s, fees %s",
            len(drafts), cadence, total, base, last, fees_total,
        )
        return drafts

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------
    def _fees_total(self, fees: Optional[FeeBreakdown]) -> Money:
        if fees is None:
            return Money.zero(self.currency)
        return Money.of(fees.total, self.currency)

    def _validate(
            self,
            total: Money,
            fees_total: Money,
            installment_count: int,
            cadence: str,
            start_date: Optional[date],
            lead_time_days: int,
    ) -> None:
        if not total.is_positive():
            raise InvalidScheduleError("Total amount must be > 0", field="total_amount")

        if installment_count is None or int(installment_count) < 1:
            raise InvalidScheduleError("Must have at least 1 installment", field="installment_count")

        validate_fees(total, fees_total)

        if cadence not in CADENCE_MONTHS and cadence != CUSTOM_CADENCE:
            raise InvalidScheduleError(
                "Cadence must be 'monthly', 'quarterly', or 'custom'", field="cadence"
            )

        if cadence != CUSTOM_CADENCE and start_date is None:
            raise InvalidScheduleError("A start date is required", field="start_date")

        if lead_time_days is None or lead_time_days < 0:
            raise InvalidScheduleError("Lead time days must be non-negative", field="lead_time_days")
