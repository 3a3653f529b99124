from decimal import Decimal, ROUND_HALF_UP
from functools import total_ordering
from typing import Iterable, Optional

from commission_engine.core.config import DEFAULT_CURRENCY
from commission_engine.core.exceptions import CurrencyMismatchError

# minor-unit exponent per ISO 4217 code; anything not listed uses 2
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "ISK", "UGX"}


def minor_digits(currency: str) -> int:
    return 0 if currency.upper() in ZERO_DECIMAL_CURRENCIES else 2


def money(x, currency: str = DEFAULT_CURRENCY) -> Decimal:
    """Always return a Decimal at the currency's precision with HALF_UP rounding."""
    if x is None:
        x = 0
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    quant = Decimal(1).scaleb(-minor_digits(currency))
    return x.quantize(quant, rounding=ROUND_HALF_UP)


def _div_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero."""
    if denominator == 0:
        raise ZeroDivisionError("ratio denominator must not be zero")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator

    q, r = divmod(abs(numerator), denominator)
    if 2 * r >= denominator:
        q += 1
    return q if numerator >= 0 else -q


@total_ordering
class Money:
    """
    Fixed-point amount stored as an integer count of minor units (cents).

    All engine arithmetic goes through this type so no binary float ever
    touches a monetary value. Division is only available as
    ``multiply_ratio`` (half-up) or ``split_floor`` (floor).
    """

    __slots__ = ("minor_units", "currency")

    def __init__(self, minor_units: int, currency: str = DEFAULT_CURRENCY):
        if not isinstance(minor_units, int) or isinstance(minor_units, bool):
            raise TypeError("minor_units must be an int")
        object.__setattr__(self, "minor_units", minor_units)
        object.__setattr__(self, "currency", currency.upper())

    def __setattr__(self, key, value):
        raise AttributeError("Money is immutable")

    # -------------------------------------------------
    # Construction
    # -------------------------------------------------
    @classmethod
    def of(cls, amount, currency: str = DEFAULT_CURRENCY) -> "Money":
        """Build from Decimal / str / int / float, rounding HALF_UP to the minor unit."""
        if isinstance(amount, Money):
            amount._check(Money.zero(currency))
            return amount
        value = money(amount, currency)
        return cls(int(value.scaleb(minor_digits(currency))), currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    @classmethod
    def total(cls, items: Iterable["Money"], currency: str = DEFAULT_CURRENCY) -> "Money":
        result = cls.zero(currency)
        for item in items:
            result = result + item
        return result

    # -------------------------------------------------
    # Views
    # -------------------------------------------------
    @property
    def amount(self) -> Decimal:
        digits = minor_digits(self.currency)
        return Decimal(self.minor_units).scaleb(-digits).quantize(Decimal(1).scaleb(-digits))

    @property
    def smallest_unit(self) -> "Money":
        return Money(1, self.currency)

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    # -------------------------------------------------
    # Arithmetic
    # -------------------------------------------------
    def _check(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"cannot combine {self.currency} with {other.currency}"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.minor_units - other.minor_units, self.currency)

    def __neg__(self) -> "Money":
        return Money(-self.minor_units, self.currency)

    def __abs__(self) -> "Money":
        return Money(abs(self.minor_units), self.currency)

    def times(self, n: int) -> "Money":
        return Money(self.minor_units * int(n), self.currency)

    def multiply_ratio(self, numerator: int, denominator: int) -> "Money":
        """self * numerator / denominator, rounded half-up to the minor unit."""
        return Money(_div_half_up(self.minor_units * numerator, denominator), self.currency)

    def split_floor(self, parts: int) -> "Money":
        """Per-part share rounded down to the minor unit."""
        if parts < 1:
            raise ValueError("parts must be >= 1")
        return Money(self.minor_units // parts, self.currency)

    def clamp(self, lower: "Money", upper: "Money") -> "Money":
        self._check(lower)
        self._check(upper)
        return max(lower, min(self, upper))

    def percentage_of(self, whole: "Money") -> Decimal:
        """(self / whole) * 100 to two decimal places; 0 when whole is zero."""
        self._check(whole)
        if whole.minor_units == 0:
            return Decimal("0.00")
        ratio = Decimal(self.minor_units * 100) / Decimal(whole.minor_units)
        return ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    # -------------------------------------------------
    # Comparison
    # -------------------------------------------------
    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.currency == other.currency and self.minor_units == other.minor_units

    def __lt__(self, other: "Money") -> bool:
        self._check(other)
        return self.minor_units < other.minor_units

    def __hash__(self) -> int:
        return hash((self.minor_units, self.currency))

    def __repr__(self) -> str:
        return f"Money('{self.amount}', '{self.currency}')"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


def to_money(value: Optional[object], currency: str = DEFAULT_CURRENCY) -> Money:
    """NULL-safe conversion of a Numeric column value."""
    return Money.of(value if value is not None else 0, currency)
