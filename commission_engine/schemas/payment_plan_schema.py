from datetime import date
from decimal import Decimal
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from commission_engine.core.config import DEFAULT_CURRENCY
from commission_engine.utils.money import Money

Cadence = Literal["monthly", "quarterly", "custom"]


class FeeBreakdown(BaseModel):
    materials_cost: Decimal = Field(default=Decimal("0"), ge=0)
    admin_fees: Decimal = Field(default=Decimal("0"), ge=0)
    other_fees: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def total(self) -> Decimal:
        return self.materials_cost + self.admin_fees + self.other_fees


class InitialPayment(BaseModel):
    amount: Decimal = Field(gt=0)
    due_date: date
    paid: bool = False


class InstallmentDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    installment_number: int = Field(ge=0)
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    # None for custom cadence; the caller supplies the dates
    student_due_date: Optional[date] = None
    college_due_date: Optional[date] = None

    generates_commission: bool = True
    is_initial_payment: bool = False
    status: Literal["DRAFT", "PENDING", "PAID", "OVERDUE", "CANCELLED"] = "DRAFT"

    @property
    def money(self) -> Money:
        return Money.of(self.amount, self.currency)


class PaymentPlanCreate(BaseModel):
    reference_no: Optional[str] = None
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=3)

    total_amount: Decimal = Field(gt=0)
    commission_rate_percent: Decimal = Field(ge=0, le=100)
    gst_inclusive: bool = True
    fees: FeeBreakdown = Field(default_factory=FeeBreakdown)

    installment_count: int = Field(ge=1)
    cadence: Cadence = "monthly"
    first_college_due_date: date
    student_lead_time_days: int = Field(default=0, ge=0)

    initial_payment: Optional[InitialPayment] = None

    # manual edits made in the authoring wizard, re-validated before saving
    installment_overrides: Optional[List[InstallmentDraft]] = None

    created_by: Optional[str] = None

    @field_validator("currency", mode="before")
    def upper_currency(cls, v):
        return str(v).strip().upper() if v else DEFAULT_CURRENCY

    @field_validator("reference_no", "created_by", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class InstallmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    installment_id: int
    plan_id: int
    installment_number: int

    amount: float
    paid_amount: Optional[float] = None

    status: str
    generates_commission: bool
    is_initial_payment: bool

    student_due_date: Optional[date] = None
    college_due_date: Optional[date] = None
    paid_date: Optional[date] = None
    payment_notes: Optional[str] = None


class PaymentPlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan_id: int
    reference_no: Optional[str] = None
    currency: str

    total_amount: float
    materials_cost: float
    admin_fees: float
    other_fees: float

    commission_rate_percent: float
    gst_inclusive: bool
    expected_commission: float
    earned_commission: float

    status: str
    installments: List[InstallmentOut] = []
