from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from commission_engine.schemas.commission_schema import CommissionResultOut
from commission_engine.schemas.payment_plan_schema import InstallmentOut


class PaymentRecord(BaseModel):
    paid_amount: Decimal = Field(gt=0, decimal_places=2)
    paid_date: date
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("notes", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("paid_date")
    def not_in_future(cls, v: date):
        if v > date.today():
            raise ValueError("Payment date cannot be in the future")
        return v


class PaymentOutcome(BaseModel):
    installment: InstallmentOut
    plan_id: int
    plan_status: str
    plan_completed: bool
    commission: CommissionResultOut
