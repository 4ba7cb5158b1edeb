"""
Rental pricing.

Catalog prices are weekly rates, so a line costs ``rate * days / 7``.
Stored totals keep full float precision; rounding only happens in
``format_currency``.
"""
import math
from typing import Iterable, Optional, Tuple

from bookhaven.config import settings
from bookhaven.exceptions import InvalidPricingInput

DAYS_PER_WEEK = 7

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "CA$",
}


def line_total(weekly_rate: float, rental_days: int) -> float:
    if not isinstance(weekly_rate, (int, float)) or not math.isfinite(weekly_rate):
        raise InvalidPricingInput(f"Weekly rate must be a finite number, got {weekly_rate!r}")
    if weekly_rate < 0:
        raise InvalidPricingInput(f"Weekly rate cannot be negative, got {weekly_rate!r}")
    if isinstance(rental_days, bool) or not isinstance(rental_days, int) or rental_days <= 0:
        raise InvalidPricingInput(f"Rental days must be a positive integer, got {rental_days!r}")

    return weekly_rate * rental_days / DAYS_PER_WEEK


def cart_total(lines: Iterable[Tuple[float, int]]) -> float:
    """Sum of line totals over ``(weekly_rate, rental_days)`` pairs."""
    return sum((line_total(rate, days) for rate, days in lines), 0)


def convert_for_display(amount: float, rate: Optional[float] = None) -> float:
    rate = settings.display_rate if rate is None else rate
    return amount * rate


def _group_thousands(digits: str) -> str:
    return f"{int(digits):,}"


def _group_indian(digits: str) -> str:
    # 12,34,56,789: last three digits, then groups of two
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount: float, currency_code: Optional[str] = None) -> str:
    currency_code = (currency_code or settings.currency).upper()
    if not math.isfinite(amount):
        raise InvalidPricingInput(f"Cannot format non-finite amount {amount!r}")

    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code + " ")
    sign = "-" if amount < 0 else ""
    whole, fraction = f"{abs(amount):.2f}".split(".")

    if currency_code == "INR":
        grouped = _group_indian(whole)
    else:
        grouped = _group_thousands(whole)

    if sign and grouped == "0" and fraction == "00":
        sign = ""
    return f"{sign}{symbol}{grouped}.{fraction}"
