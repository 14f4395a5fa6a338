"""
Money helpers.

All ledger arithmetic is done on ``Decimal`` quantized to two places with
half-up rounding. Stored amounts are ``Numeric(10, 2)``, so nothing above
``MAX_AMOUNT`` can be persisted.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("99999999.99")


def to_money(value: Any) -> Decimal:
    """Coerce ``value`` to a cent-quantized Decimal; ``None`` becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
        if amount.is_finite():
            return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Invalid monetary amount: {value!r}") from e
    raise ValueError(f"Invalid monetary amount: {value!r}")


def money_sum(values: Iterable[Any]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return total
