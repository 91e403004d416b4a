"""Fixed-point money helpers. Amounts are Decimals with two places."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Coerce ints, strings and Decimals to a 2dp Decimal (half-up).

    Floats are converted through ``str`` so ``0.1`` stays ``0.10``.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
