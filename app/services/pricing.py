"""Commitment-length pricing for subscription packages.

Longer commitments are discounted: 3 months at 10% off, 6 months at 20% off.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

DURATIONS = (1, 3, 6)

DISCOUNTS: Dict[int, Decimal] = {
    1: Decimal("1"),
    3: Decimal("0.9"),
    6: Decimal("0.8"),
}


def _check_duration(months: int) -> None:
    if months not in DISCOUNTS:
        raise ValueError(f"Unsupported duration: {months} months")


def calculate_total(price_monthly, months: int) -> int:
    """Total charged for ``months`` at the discounted rate, rounded to whole units."""
    _check_duration(months)
    total = Decimal(str(price_monthly)) * months * DISCOUNTS[months]
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_savings(price_monthly, months: int) -> int:
    full_price = Decimal(str(price_monthly)) * months
    return int(full_price.quantize(Decimal("1"), rounding=ROUND_HALF_UP)) - calculate_total(price_monthly, months)


def calculate_monthly_equivalent(price_monthly, months: int) -> int:
    total = Decimal(calculate_total(price_monthly, months)) / months
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_id_for_duration(package, months: int) -> Optional[str]:
    _check_duration(months)
    return getattr(package, f"price_{months}m")


def duration_from_price_id(package, price_id: str) -> Optional[int]:
    """Commitment length whose price identifier matches, or None."""
    for months in DURATIONS:
        if price_id and price_id_for_duration(package, months) == price_id:
            return months
    return None


def price_table(package) -> list:
    """Per-duration totals as shown in the pricing modal."""
    rows = []
    for months in DURATIONS:
        rows.append({
            "months": months,
            "price_id": price_id_for_duration(package, months),
            "total": calculate_total(package.price_monthly, months),
            "savings": calculate_savings(package.price_monthly, months),
            "monthly_equivalent": calculate_monthly_equivalent(package.price_monthly, months),
        })
    return rows
