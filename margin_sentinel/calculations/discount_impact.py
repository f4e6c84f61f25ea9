"""Cost-basis loss caused by discounts."""

from __future__ import annotations

from dataclasses import dataclass

from .utils import safe_divide


@dataclass
class DiscountImpactResult:
    discount_loss_cost: float

    def to_dict(self) -> dict:
        return {"discount_loss_cost": self.discount_loss_cost}


def calculate_discount_impact(
    core_sales: float,
    markup_rate: float,
    discount_rate: float,
) -> DiscountImpactResult:
    """Selling price lost to discounts, converted to cost.

    loss = (1 - markup) * core sales * discount rate / (1 - discount rate)

    A non-positive divisor is replaced by 1.
    """
    divisor = 1 - discount_rate
    loss = (1 - markup_rate) * core_sales * safe_divide(
        discount_rate, divisor if divisor > 0 else 1, 0
    )
    return DiscountImpactResult(discount_loss_cost=loss)
