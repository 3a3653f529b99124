from sqlalchemy import (
    Column, Integer, String, Date, Numeric, Boolean, Text, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from commission_engine.utils.database import Base


class Installment(Base):
    __tablename__ = "installments"
    __table_args__ = (
        UniqueConstraint("plan_id", "installment_number", name="uq_plan_installment_number"),
        Index("ix_installments_plan_status", "plan_id", "status"),
    )

    installment_id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(
        Integer,
        ForeignKey("payment_plans.plan_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # 0 is the optional initial payment, regular installments are 1..N
    installment_number = Column(Integer, nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=True)

    # DRAFT / PENDING / PAID / OVERDUE / CANCELLED
    status = Column(String(20), nullable=False, default="DRAFT")

    # false for fee-bundling installments
    generates_commission = Column(Boolean, nullable=False, default=True)
    is_initial_payment = Column(Boolean, nullable=False, default=False)

    student_due_date = Column(Date, nullable=True, index=True)
    college_due_date = Column(Date, nullable=True)

    paid_date = Column(Date, nullable=True)
    payment_notes = Column(Text, nullable=True)

    plan = relationship("PaymentPlan", back_populates="installments")
