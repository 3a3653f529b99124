from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from commission_engine.utils.money import Money, to_money


# -------------------------------------------------
# Snapshots: what the calculator sees
# -------------------------------------------------
@dataclass(frozen=True)
class PlanSnapshot:
    """Commission inputs of a plan. Deliberately carries no earned_commission."""

    plan_id: Optional[int]
    currency: str
    total_amount: Money
    expected_commission: Money
    materials_cost: Money
    admin_fees: Money
    other_fees: Money
    status: str = "ACTIVE"

    @property
    def fees_total(self) -> Money:
        return self.materials_cost + self.admin_fees + self.other_fees

    @classmethod
    def from_model(cls, plan) -> "PlanSnapshot":
        cur = plan.currency
        return cls(
            plan_id=plan.plan_id,
            currency=cur,
            total_amount=to_money(plan.total_amount, cur),
            expected_commission=to_money(plan.expected_commission, cur),
            materials_cost=to_money(plan.materials_cost, cur),
            admin_fees=to_money(plan.admin_fees, cur),
            other_fees=to_money(plan.other_fees, cur),
            status=plan.status,
        )


@dataclass(frozen=True)
class InstallmentSnapshot:
    installment_number: int
    amount: Money
    status: str
    generates_commission: bool = True
    paid_amount: Optional[Money] = None
    installment_id: Optional[int] = None

    @classmethod
    def from_model(cls, inst, currency: str) -> "InstallmentSnapshot":
        return cls(
            installment_id=inst.installment_id,
            installment_number=inst.installment_number,
            amount=to_money(inst.amount, currency),
            paid_amount=None if inst.paid_amount is None else to_money(inst.paid_amount, currency),
            status=inst.status,
            generates_commission=bool(inst.generates_commission),
        )


# -------------------------------------------------
# Results
# -------------------------------------------------
@dataclass(frozen=True)
class CommissionResult:
    earned_commission: Money
    total_paid: Money
    commissionable_amount: Money
    commission_percentage: Decimal

    def to_out(self) -> "CommissionResultOut":
        return CommissionResultOut(
            currency=self.earned_commission.currency,
            earned_commission=float(self.earned_commission.amount),
            total_paid=float(self.total_paid.amount),
            commissionable_amount=float(self.commissionable_amount.amount),
            commission_percentage=float(self.commission_percentage),
        )


@dataclass(frozen=True)
class Discrepancy:
    plan_id: int
    cached: Money
    live: Money
    delta: Money

    def to_out(self) -> "DiscrepancyOut":
        return DiscrepancyOut(
            plan_id=self.plan_id,
            currency=self.cached.currency,
            cached=float(self.cached.amount),
            live=float(self.live.amount),
            delta=float(self.delta.amount),
        )


class CommissionResultOut(BaseModel):
    currency: str
    earned_commission: float
    total_paid: float
    commissionable_amount: float
    commission_percentage: float


class DiscrepancyOut(BaseModel):
    plan_id: int
    currency: str
    cached: float
    live: float
    delta: float
