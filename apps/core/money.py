"""
Money helpers. Every monetary value in the system is a ``Decimal``.

Floats are only ever accepted at the edge and are converted through ``str()``
so the binary representation never leaks into stored amounts.
"""

from collections import namedtuple
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import InvalidInput

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

Currency = namedtuple("Currency", ["code", "symbol", "label"])

CURRENCIES = [
    Currency("INR", "₹", "Indian Rupee"),
    Currency("USD", "$", "US Dollar"),
    Currency("GBP", "£", "British Pound"),
    Currency("EUR", "€", "Euro"),
    Currency("AUD", "A$", "Australian Dollar"),
    Currency("CAD", "C$", "Canadian Dollar"),
    Currency("SGD", "S$", "Singapore Dollar"),
    Currency("AED", "د.إ", "UAE Dirham"),
]

CURRENCY_CHOICES = [(c.code, c.label) for c in CURRENCIES]

_BY_CODE = {c.code: c for c in CURRENCIES}


def get_currency(code):
    """Look up a currency by ISO code, falling back to the first (INR)."""
    return _BY_CODE.get((code or "").upper(), CURRENCIES[0])


def to_decimal(value, field=None):
    """Parse ``value`` into a Decimal. Blank values become ``None``."""
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidInput(_bad_number(field), errors=_field_errors(field))
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInput(_bad_number(field), errors=_field_errors(field))
    if not result.is_finite():
        raise InvalidInput(_bad_number(field), errors=_field_errors(field))
    return result


def quantize_money(value):
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values):
    """Sum amounts, treating ``None`` as zero."""
    total = ZERO
    for value in values:
        if value is not None:
            total += value
    return quantize_money(total)


def format_money(amount, currency="INR"):
    """Format with the currency symbol, keeping the sign of credits: -₹40.00"""
    symbol = get_currency(currency).symbol
    amount = quantize_money(amount if amount is not None else ZERO)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def _bad_number(field):
    if field:
        return f"{field}: enter a valid number."
    return "Enter a valid number."


def _field_errors(field):
    return {field: ["Enter a valid number."]} if field else {}
