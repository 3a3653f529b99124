from typing import Optional


class CommissionEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidScheduleError(CommissionEngineError, ValueError):
    """Bad schedule generation parameters. Nothing is returned or persisted."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CurrencyMismatchError(CommissionEngineError, ValueError):
    pass


class PlanNotFoundError(CommissionEngineError, LookupError):
    def __init__(self, plan_id: int):
        super().__init__(f"Payment plan not found: {plan_id}")
        self.plan_id = plan_id


class InstallmentNotFoundError(CommissionEngineError, LookupError):
    def __init__(self, installment_id: int):
        super().__init__(f"Installment not found: {installment_id}")
        self.installment_id = installment_id


class PaymentValidationError(CommissionEngineError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class LedgerWriteError(CommissionEngineError):
    """The recompute-and-store unit could not be committed after retrying."""

    def __init__(self, plan_id: int, attempts: int):
        super().__init__(
            f"Could not store earned commission for plan {plan_id} after {attempts} attempt(s)"
        )
        self.plan_id = plan_id
        self.attempts = attempts
