"""
Category-based session pricing

A session is billed at the category's base price for anything up to the base
duration. Time beyond that is billed in whole overtime increments, rounded up,
so one extra minute costs a full increment.
"""

import math
from dataclasses import asdict, dataclass
from typing import Protocol


class PricingRule(Protocol):
    base_session_price: float
    base_session_duration: float
    overtime_rate: float
    overtime_increment: int


class PricingProvider(Protocol):
    def get_category_pricing(self, category: str) -> PricingRule: ...


@dataclass(frozen=True)
class PricingResult:
    base_price: float
    overtime_price: float
    total_price: float
    base_duration: float
    overtime_hours: float

    def as_dict(self) -> dict:
        return asdict(self)


def price_for(rule: PricingRule, duration_hours: float) -> PricingResult:
    """Price a duration against one category's pricing rule"""
    base_duration = rule.base_session_duration
    base_price = rule.base_session_price

    if duration_hours <= base_duration:
        return PricingResult(
            base_price=base_price,
            overtime_price=0,
            total_price=base_price,
            base_duration=base_duration,
            overtime_hours=0,
        )

    overtime_hours = round(duration_hours - base_duration, 4)
    # Rounded to drop float noise before ceil (0.7h must be 42min, not 42.000000001)
    overtime_minutes = round(overtime_hours * 60, 6)
    overtime_blocks = math.ceil(overtime_minutes / rule.overtime_increment)
    overtime_price = overtime_blocks * rule.overtime_rate

    return PricingResult(
        base_price=base_price,
        overtime_price=overtime_price,
        total_price=base_price + overtime_price,
        base_duration=base_duration,
        overtime_hours=overtime_hours,
    )


class PricingCalculator:
    """Prices sessions using whatever pricing provider it is given"""

    def __init__(self, provider: PricingProvider):
        self.provider = provider

    def calculate_session_price(self, category: str, duration_hours: float) -> PricingResult:
        rule = self.provider.get_category_pricing(category)
        return price_for(rule, duration_hours)
