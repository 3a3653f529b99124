from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, ForeignKey
)
from sqlalchemy.sql import func

from commission_engine.utils.database import Base


class CommissionAudit(Base):
    __tablename__ = "commission_audit_log"

    audit_id = Column(Integer, primary_key=True, index=True)
    plan_id = Column(Integer, ForeignKey("payment_plans.plan_id"), nullable=False, index=True)

    old_value = Column(Numeric(12, 2), nullable=False)
    new_value = Column(Numeric(12, 2), nullable=False)

    # e.g. PAYMENT_RECORDED:installment=42 / MANUAL_RECALC
    triggering_event = Column(String(100), nullable=False)
    actor_id = Column(String(64), nullable=True)

    created_on = Column(DateTime, server_default=func.now(), nullable=False)
