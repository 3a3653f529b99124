# commission_engine/models/payment_plan_model.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from commission_engine.core.config import DEFAULT_CURRENCY
from commission_engine.utils.database import Base


class PaymentPlan(Base):
    __tablename__ = "payment_plans"

    __table_args__ = (
        Index("ix_payment_plans_status", "status"),
        CheckConstraint("total_amount > 0", name="chk_total_amount_positive"),
        CheckConstraint("earned_commission >= 0", name="chk_earned_commission_non_negative"),
        CheckConstraint(
            "materials_cost >= 0 AND admin_fees >= 0 AND other_fees >= 0",
            name="chk_fees_non_negative",
        ),
    )

    plan_id = Column(Integer, primary_key=True, index=True)
    reference_no = Column(String(50), unique=True, nullable=True)

    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)

    total_amount = Column(Numeric(12, 2), nullable=False)

    # non-commissionable fees
    materials_cost = Column(Numeric(12, 2), nullable=False, default=0)
    admin_fees = Column(Numeric(12, 2), nullable=False, default=0)
    other_fees = Column(Numeric(12, 2), nullable=False, default=0)

    # inputs of expected_commission, snapshotted at authoring time
    commission_rate_percent = Column(Numeric(5, 2), nullable=False, default=0)
    gst_inclusive = Column(Boolean, nullable=False, default=True)

    expected_commission = Column(Numeric(12, 2), nullable=False, default=0)

    # cached value; written only by CommissionLedger
    earned_commission = Column(Numeric(12, 2), nullable=False, default=0)

    # DRAFT / ACTIVE / COMPLETED / CANCELLED
    status = Column(String(20), nullable=False, default="DRAFT")

    # optimistic concurrency token, bumped on every UPDATE of this row
    version = Column(Integer, nullable=False, default=1)

    created_by = Column(String(64), nullable=True)
    created_on = Column(DateTime, server_default=func.now(), nullable=True)
    updated_on = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)

    installments = relationship(
        "Installment",
        back_populates="plan",
        order_by="Installment.installment_number",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": version}
