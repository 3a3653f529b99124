from commission_engine.core.exceptions import (
    CommissionEngineError,
    CurrencyMismatchError,
    InstallmentNotFoundError,
    InvalidScheduleError,
    LedgerWriteError,
    PaymentValidationError,
    PlanNotFoundError,
)
from commission_engine.schemas.commission_schema import (
    CommissionResult,
    Discrepancy,
    InstallmentSnapshot,
    PlanSnapshot,
)
from commission_engine.services import (
    CommissionCalculator,
    CommissionLedger,
    ReconciliationView,
    ScheduleGenerator,
    validate_schedule_total,
)
from commission_engine.core.logging_config import configure_logging
from commission_engine.utils.money import Money

__version__ = "1.0.0"
