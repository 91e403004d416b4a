"""Courier delivery fee policy."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from shared.money import CENT, to_money


@dataclass(frozen=True)
class CourierFeePolicy:
    """fee = base + rate × order total, rounded half-up to cents, capped."""

    base: Decimal = Decimal("5.00")
    rate: Decimal = Decimal("0.15")
    cap: Decimal = Decimal("20.00")

    def fee_for(self, order_total) -> Decimal:
        variable = (to_money(order_total) * self.rate).quantize(CENT, rounding=ROUND_HALF_UP)
        return min(to_money(self.base) + variable, to_money(self.cap))
