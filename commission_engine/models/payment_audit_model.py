from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Boolean, ForeignKey
)
from sqlalchemy.sql import func

from commission_engine.utils.database import Base


class PaymentAudit(Base):
    __tablename__ = "payment_audit_log"

    audit_id = Column(Integer, primary_key=True, index=True)
    installment_id = Column(Integer, ForeignKey("installments.installment_id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("payment_plans.plan_id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)

    old_status = Column(String(20), nullable=False)
    new_status = Column(String(20), nullable=False)
    old_paid_amount = Column(Numeric(12, 2), nullable=True)
    new_paid_amount = Column(Numeric(12, 2), nullable=False)
    old_paid_date = Column(Date, nullable=True)
    new_paid_date = Column(Date, nullable=False)

    notes = Column(String(500), nullable=True)
    plan_completed = Column(Boolean, nullable=False, default=False)
    earned_commission = Column(Numeric(12, 2), nullable=False)

    actor_id = Column(String(64), nullable=True)
    created_on = Column(DateTime, server_default=func.now(), nullable=False)
