from decimal import Decimal

from commission_engine.core.config import GST_RATE
from commission_engine.utils.money import Money


def calculate_commissionable_value(
        total_amount: Money,
        materials_cost: Money,
        admin_fees: Money,
        other_fees: Money,
) -> Money:
    """
    COMMISSIONABLE VALUE:
      commissionable = total - (materials + admin + other)

    Never negative. Example:
      total=10000, materials=500, admin=200, other=100 => 9200.00
    """
    fees = materials_cost + admin_fees + other_fees
    return max(total_amount - fees, Money.zero(total_amount.currency))


def calculate_expected_commission(
        commissionable_value: Money,
        commission_rate_percent,
        gst_inclusive: bool = True,
        gst_rate: Decimal = GST_RATE,
) -> Money:
    """
    EXPECTED COMMISSION:
      base = commissionable                 (GST inclusive)
      base = commissionable / (1 + gst)     (GST exclusive)
      expected = base * rate% / 100

    Examples:
      9200 @ 15%, inclusive => 1380.00
      9200 @ 15%, exclusive => 1254.55
    """
    currency = commissionable_value.currency
    if commission_rate_percent is None:
        return Money.zero(currency)

    rate = Decimal(str(commission_rate_percent))
    if rate <= 0 or commissionable_value.minor_units <= 0:
        return Money.zero(currency)

    # rate as an exact fraction so the only rounding step is the final one
    num, den = rate.as_integer_ratio()
    den *= 100

    if not gst_inclusive:
        g_num, g_den = (Decimal(1) + Decimal(str(gst_rate))).as_integer_ratio()
        num *= g_den
        den *= g_num

    return commissionable_value.multiply_ratio(num, den)
