# Automatically load all models so metadata knows them
from commission_engine.models.payment_plan_model import PaymentPlan
from commission_engine.models.installment_model import Installment
from commission_engine.models.commission_audit_model import CommissionAudit
from commission_engine.models.payment_audit_model import PaymentAudit
