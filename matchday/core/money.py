"""Money helpers. All ledger arithmetic is done on ``Decimal``."""
from decimal import Decimal, InvalidOperation
from typing import Any

from bson.decimal128 import Decimal128

from matchday.core.errors import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Coerce a value into a two-decimal ``Decimal``.

    Accepts Decimal, Decimal128, int and str. Floats are rejected: they are
    already inexact by the time they get here.
    Raises InvalidAmount for non-finite values or sub-cent precision.
    """
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmount(f"Unsupported amount type: {type(value).__name__}")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not a valid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"Not a finite amount: {value!r}")

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmount(f"Amount out of range: {value!r}")
    if quantized != amount:
        raise InvalidAmount(f"Amount has more than two decimals: {value!r}")
    return quantized


def to_positive_money(value: Any) -> Decimal:
    amount = to_money(value)
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive, got {amount}")
    return amount


def to_bson(amount: Decimal) -> Decimal128:
    return Decimal128(amount)
