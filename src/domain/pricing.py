"""
Journey Pricing Engine  (Strategy Pattern)
==========================================

Formula
-------
  subtotal       = mode-specific base charge (see strategies below)
  after_surge    = round(subtotal x surge_multiplier)
  corporate      = round(after_surge x corporate_percent / 100)
  return_disc    = round(after_surge x return_discount_percent / 100)
  total          = max(0, after_surge - corporate - return_disc)

* **Variable**: base_fare + round(miles x per_mile) + round(wait_min x per_minute)
* **Hourly**:   hours x per_hour
* **Fixed / Zone**: the administrator-set route price

Both discounts are taken from the post-surge amount independently; they
never compound.  Every amount is integer pence.

Complexity: O(1) per price calculation (plus O(R) surge evaluation).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .entities import ModeSelection, PriceBreakdown, RateCard, SurgeResult, SurgeRule
from .enums import PricingMode
from .money import apply_rate, percentage_of
from .surge import MAX_SURGE_MULTIPLIER, MIN_SURGE_MULTIPLIER, evaluate


@dataclass(frozen=True)
class BaseCharge:
    base_fare: int = 0
    distance_charge: int = 0
    wait_time_charge: int = 0
    hourly_charge: int = 0
    route_price: int = 0

    @property
    def subtotal(self) -> int:
        return (
            self.base_fare
            + self.distance_charge
            + self.wait_time_charge
            + self.hourly_charge
            + self.route_price
        )


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    mode: PricingMode

    @abstractmethod
    def calculate(self, rate_card: RateCard) -> BaseCharge: ...


class VariablePricing(PricingStrategy):
    mode = PricingMode.VARIABLE

    def __init__(self, distance_miles: float, wait_minutes: int = 0):
        self.distance_miles = distance_miles
        self.wait_minutes = wait_minutes

    def calculate(self, rate_card: RateCard) -> BaseCharge:
        return BaseCharge(
            base_fare=rate_card.base_fare,
            distance_charge=apply_rate(self.distance_miles, rate_card.per_mile),
            wait_time_charge=apply_rate(self.wait_minutes, rate_card.per_minute),
        )


class HourlyPricing(PricingStrategy):
    mode = PricingMode.HOURLY

    def __init__(self, duration_hours: int):
        self.duration_hours = duration_hours

    def calculate(self, rate_card: RateCard) -> BaseCharge:
        return BaseCharge(hourly_charge=self.duration_hours * rate_card.per_hour)


class RoutePricing(PricingStrategy):
    """Fixed-route and zone prices are already fully determined."""

    def __init__(self, mode: PricingMode, price: int):
        self.mode = mode
        self.price = price

    def calculate(self, rate_card: RateCard) -> BaseCharge:
        return BaseCharge(route_price=self.price)


def strategy_for(selection: ModeSelection) -> PricingStrategy:
    if selection.mode in (PricingMode.FIXED, PricingMode.ZONE):
        if selection.route_price is None:
            raise ValueError(f"{selection.mode.value} selection carries no route price")
        return RoutePricing(selection.mode, selection.route_price)
    if selection.mode == PricingMode.HOURLY:
        if selection.duration_hours is None:
            raise ValueError("hourly selection carries no duration")
        return HourlyPricing(selection.duration_hours)
    if selection.distance_miles is None:
        raise ValueError("variable selection carries no distance")
    return VariablePricing(selection.distance_miles, selection.total_wait_minutes)


# ── Charge composer ───────────────────────────────────────────────────


def effective_surge(
    selection: ModeSelection, surge: SurgeResult, surge_applies_to_route_prices: bool = True
) -> SurgeResult:
    """The surge the composer actually charges; route prices may be exempt."""
    is_route_price = selection.mode in (PricingMode.FIXED, PricingMode.ZONE)
    if is_route_price and not surge_applies_to_route_prices:
        return SurgeResult()
    return surge


def compose(
    selection: ModeSelection,
    rate_card: RateCard,
    surge: SurgeResult,
    corporate_discount_percent: Optional[int] = None,
    is_return_journey: bool = False,
    *,
    currency: str = "GBP",
    surge_applies_to_route_prices: bool = True,
) -> PriceBreakdown:
    charge = strategy_for(selection).calculate(rate_card)
    surge = effective_surge(selection, surge, surge_applies_to_route_prices)

    multiplier = min(MAX_SURGE_MULTIPLIER, max(MIN_SURGE_MULTIPLIER, surge.multiplier))
    after_surge = apply_rate(charge.subtotal, multiplier)

    corporate = 0
    if corporate_discount_percent:
        corporate = percentage_of(after_surge, corporate_discount_percent)

    return_discount = 0
    if is_return_journey and rate_card.return_discount_percent > 0:
        return_discount = percentage_of(after_surge, rate_card.return_discount_percent)

    return PriceBreakdown(
        mode=selection.mode,
        base_fare=charge.base_fare,
        distance_charge=charge.distance_charge,
        wait_time_charge=charge.wait_time_charge,
        hourly_charge=charge.hourly_charge,
        subtotal=charge.subtotal,
        surge_multiplier=multiplier,
        surge_was_capped=surge.was_capped,
        applied_surge_rule_ids=surge.applied_rule_ids,
        subtotal_before_discount=after_surge,
        corporate_discount_amount=corporate,
        return_discount_amount=return_discount,
        total=max(0, after_surge - corporate - return_discount),
        currency=currency,
    )


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the quote service and the admin price checker."""

    def __init__(self, currency: str = "GBP", surge_applies_to_route_prices: bool = True):
        self.currency = currency
        self.surge_applies_to_route_prices = surge_applies_to_route_prices

    @staticmethod
    def compute_surge(rules: Iterable[SurgeRule], instant: datetime) -> SurgeResult:
        return evaluate(rules, instant)

    def calculate_price(
        self,
        selection: ModeSelection,
        rate_card: RateCard,
        rules: Iterable[SurgeRule],
        pickup_instant: datetime,
        corporate_discount_percent: Optional[int] = None,
        is_return_journey: bool = False,
    ) -> tuple[PriceBreakdown, SurgeResult]:
        """Price one selection; the returned surge is the one actually charged."""
        surge = effective_surge(
            selection,
            self.compute_surge(rules, pickup_instant),
            self.surge_applies_to_route_prices,
        )
        breakdown = compose(
            selection,
            rate_card,
            surge,
            corporate_discount_percent,
            is_return_journey,
            currency=self.currency,
            surge_applies_to_route_prices=self.surge_applies_to_route_prices,
        )
        return breakdown, surge
