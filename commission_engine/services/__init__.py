from commission_engine.services.commission_calculator import CommissionCalculator
from commission_engine.services.commission_ledger import CommissionLedger
from commission_engine.services.reconciliation_view import ReconciliationView
from commission_engine.services.schedule_generator import ScheduleGenerator, validate_schedule_total
