"""
Domain entities for journey pricing.

Reference data (rate cards, surge rules, routes, zones, corporate
accounts) is immutable per request, so every entity is a frozen
dataclass.  Surge rules are a tagged union: one dataclass per rule type,
each carrying only the fields its predicate needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Union

from .enums import AccountStatus, JourneyType, PricingMode, SurgeRuleType, Weekday
from .money import format_minor_units


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    address: str
    place_id: Optional[str] = None
    postcode: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def identity(self) -> str:
        """Place id when known, otherwise the normalised address."""
        if self.place_id:
            return self.place_id
        return " ".join(self.address.lower().split())

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(frozen=True)
class Waypoint:
    location: Location
    wait_minutes: int = 0


@dataclass(frozen=True)
class RouteMetrics:
    miles: float
    minutes: int


# ── Reference data ────────────────────────────────────────────────────


@dataclass(frozen=True)
class RateCard:
    vehicle_class: str
    base_fare: int
    per_mile: int
    per_minute: int
    per_hour: int
    return_discount_percent: int = 0
    capacity: int = 4
    name: str = ""
    description: str = ""
    features: tuple[str, ...] = ()
    image_url: str = ""


@dataclass(frozen=True, kw_only=True)
class SurgeRuleBase:
    id: str
    name: str
    multiplier: float
    active: bool = True
    description: str = ""


@dataclass(frozen=True, kw_only=True)
class SpecificDatesRule(SurgeRuleBase):
    dates: frozenset[date]

    rule_type = SurgeRuleType.SPECIFIC_DATES


@dataclass(frozen=True, kw_only=True)
class DateRangeRule(SurgeRuleBase):
    start_date: date
    end_date: date

    rule_type = SurgeRuleType.DATE_RANGE


@dataclass(frozen=True, kw_only=True)
class DayOfWeekRule(SurgeRuleBase):
    days: frozenset[Weekday]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    rule_type = SurgeRuleType.DAY_OF_WEEK


@dataclass(frozen=True, kw_only=True)
class TimeOfDayRule(SurgeRuleBase):
    start_time: time
    end_time: time
    days: frozenset[Weekday] = frozenset()

    rule_type = SurgeRuleType.TIME_OF_DAY


SurgeRule = Union[SpecificDatesRule, DateRangeRule, DayOfWeekRule, TimeOfDayRule]


@dataclass(frozen=True)
class FixedRoute:
    origin_place_id: str
    destination_place_id: str
    vehicle_class: str
    price: int
    distance_miles: float
    duration_minutes: int
    active: bool = True
    name: str = ""


@dataclass(frozen=True)
class ZonePrice:
    outbound: int
    return_: int


@dataclass(frozen=True)
class ZoneRoute:
    zone_id: str
    destination_place_id: str
    prices: Mapping[str, ZonePrice]
    active: bool = True
    name: str = ""

    def price_for(self, vehicle_class: str, is_return_journey: bool) -> Optional[int]:
        price = self.prices.get(vehicle_class)
        if price is None:
            return None
        return price.return_ if is_return_journey else price.outbound


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    outward_codes: frozenset[str] = frozenset()
    active: bool = True


@dataclass(frozen=True)
class CorporateAccount:
    id: str
    name: str
    status: AccountStatus
    discount_percent: int = 0


# ── Quote request / result ────────────────────────────────────────────


@dataclass(frozen=True)
class QuoteRequest:
    pickup: Location
    pickup_instant: datetime
    vehicle_class: str
    passengers: int = 1
    dropoff: Optional[Location] = None
    waypoints: tuple[Waypoint, ...] = ()
    journey_type: JourneyType = JourneyType.ONE_WAY
    duration_hours: Optional[int] = None
    is_return_journey: bool = False
    corporate_account_id: Optional[str] = None

    @property
    def is_hourly(self) -> bool:
        return self.journey_type == JourneyType.BY_THE_HOUR

    @property
    def total_wait_minutes(self) -> int:
        return sum(wp.wait_minutes for wp in self.waypoints)


@dataclass(frozen=True)
class SurgeResult:
    multiplier: float = 1.0
    applied_rule_ids: tuple[str, ...] = ()
    was_capped: bool = False

    @property
    def is_peak(self) -> bool:
        return self.multiplier > 1.0


@dataclass(frozen=True)
class ModeSelection:
    """What the mode selector decided, plus the data the composer needs."""

    mode: PricingMode
    route_price: Optional[int] = None
    distance_miles: Optional[float] = None
    duration_minutes: Optional[int] = None
    total_wait_minutes: int = 0
    duration_hours: Optional[int] = None
    route_name: Optional[str] = None


@dataclass(frozen=True)
class PriceBreakdown:
    mode: PricingMode
    base_fare: int
    distance_charge: int
    wait_time_charge: int
    hourly_charge: int
    subtotal: int
    surge_multiplier: float
    surge_was_capped: bool
    applied_surge_rule_ids: tuple[str, ...]
    subtotal_before_discount: int
    corporate_discount_amount: int
    return_discount_amount: int
    total: int
    currency: str = "GBP"

    @property
    def display_total(self) -> str:
        return format_minor_units(self.total, self.currency)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "base_fare": self.base_fare,
            "distance_charge": self.distance_charge,
            "wait_time_charge": self.wait_time_charge,
            "hourly_charge": self.hourly_charge,
            "subtotal": self.subtotal,
            "surge_multiplier": self.surge_multiplier,
            "surge_was_capped": self.surge_was_capped,
            "applied_surge_rule_ids": list(self.applied_surge_rule_ids),
            "subtotal_before_discount": self.subtotal_before_discount,
            "corporate_discount_amount": self.corporate_discount_amount,
            "return_discount_amount": self.return_discount_amount,
            "total": self.total,
            "currency": self.currency,
            "display_total": self.display_total,
        }


@dataclass(frozen=True)
class Quote:
    vehicle_class: str
    breakdown: PriceBreakdown
    selection: ModeSelection
    rate_card: RateCard
    surge: SurgeResult = field(default_factory=SurgeResult)
