from decimal import Decimal
from typing import Iterable, Sequence

from commission_engine.schemas.commission_schema import (
    CommissionResult,
    InstallmentSnapshot,
    PlanSnapshot,
)
from commission_engine.utils.commission_calculations import calculate_commissionable_value
from commission_engine.utils.money import Money

# only these rows ever count toward total_paid
COMMISSIONABLE_PAID_STATUS = "PAID"


def commissionable_paid_total(installments: Iterable[InstallmentSnapshot], currency: str) -> Money:
    """SUM(paid_amount) over PAID installments that generate commission."""
    total = Money.zero(currency)
    for inst in installments:
        if inst.status != COMMISSIONABLE_PAID_STATUS or not inst.generates_commission:
            continue
        if inst.paid_amount is None:
            continue
        total = total + inst.paid_amount
    return total


class CommissionCalculator:
    """
    Earned commission from payments actually received.

      commissionable = total - (materials + admin + other)
      total_paid     = SUM(paid_amount) over PAID, commission-generating rows
      earned         = expected * total_paid / commissionable, clamped to [0, expected]
      percentage     = earned / expected * 100

    Pure: no I/O, deterministic, safe to call repeatedly on the same snapshot.
    """

    def compute(
            self,
            plan: PlanSnapshot,
            installments: Sequence[InstallmentSnapshot],
    ) -> CommissionResult:
        zero = Money.zero(plan.currency)

        commissionable = calculate_commissionable_value(
            plan.total_amount,
            plan.materials_cost,
            plan.admin_fees,
            plan.other_fees,
        )

        # nothing commissionable: defined zero result, never a division by zero
        if not commissionable.is_positive():
            return CommissionResult(
                earned_commission=zero,
                total_paid=zero,
                commissionable_amount=zero,
                commission_percentage=Decimal("0.00"),
            )

        total_paid = commissionable_paid_total(installments, plan.currency)

        expected = max(plan.expected_commission, zero)
        earned = expected.multiply_ratio(total_paid.minor_units, commissionable.minor_units)
        # overpayment must never earn more than was expected
        earned = earned.clamp(zero, expected)

        return CommissionResult(
            earned_commission=earned,
            total_paid=total_paid,
            commissionable_amount=commissionable,
            commission_percentage=earned.percentage_of(expected),
        )
