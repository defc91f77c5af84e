"""
Decimal helpers for payroll arithmetic.

Intermediate values (daily rate, hourly rate, per-component amounts) are kept
at full precision; only values that get stored are quantized.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Optional

from hr_payroll.core.exceptions import InvalidInputError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal = ZERO, field: Optional[str] = None) -> Decimal:
    """Convert to Decimal. None becomes `default`; anything non-numeric raises InvalidInputError."""
    if value is None:
        return default
    if isinstance(value, bool):
        amount = None
    elif isinstance(value, Decimal):
        amount = value
    else:
        try:
            # str() first so floats keep their printed value rather than binary expansion
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            amount = None
    if amount is None or not amount.is_finite():
        label = f"'{field}'" if field else "Amount"
        raise InvalidInputError(
            f"{label} must be a number",
            error_code="INVALID_AMOUNT",
            details={"field": field, "value": str(value)}
        )
    return amount


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_hours(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Any]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)
