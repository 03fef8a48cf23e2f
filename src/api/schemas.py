"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.domain.entities import Location, Quote, QuoteRequest, Waypoint
from src.domain.enums import JourneyType, VehicleClass, Weekday


# ── Quote requests ────────────────────────────────────────────────────


class LocationIn(BaseModel):
    address: str = Field(..., min_length=1, max_length=500)
    place_id: Optional[str] = Field(None, max_length=255)
    postcode: Optional[str] = Field(None, max_length=10)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)

    def to_domain(self) -> Location:
        return Location(
            address=self.address,
            place_id=self.place_id,
            postcode=self.postcode,
            lat=self.lat,
            lng=self.lng,
        )


class WaypointIn(LocationIn):
    wait_minutes: int = Field(0, ge=0, le=480)


class ExtrasIn(BaseModel):
    baby_seats: int = Field(0, ge=0, le=4)
    child_seats: int = Field(0, ge=0, le=4)


class QuoteCreateRequest(BaseModel):
    pickup: LocationIn
    dropoff: Optional[LocationIn] = None
    waypoints: list[WaypointIn] = Field(default_factory=list, max_length=5)
    pickup_time: datetime
    passengers: int = Field(1, ge=1, le=8)
    luggage: int = Field(0, ge=0, le=20)
    vehicle_class: str = Field(VehicleClass.STANDARD.value, min_length=1, max_length=32)
    journey_type: JourneyType = JourneyType.ONE_WAY
    duration_hours: Optional[int] = Field(None, ge=2, le=12)
    is_return_journey: bool = False
    corporate_account_id: Optional[str] = Field(None, max_length=36)
    extras: ExtrasIn = Field(default_factory=ExtrasIn)

    @model_validator(mode="after")
    def _check_journey(self) -> "QuoteCreateRequest":
        if self.journey_type == JourneyType.BY_THE_HOUR:
            if self.duration_hours is None:
                raise ValueError("duration_hours is required for by-the-hour bookings")
        else:
            if self.dropoff is None:
                raise ValueError("dropoff is required for one-way journeys")
            if self.pickup.to_domain().identity == self.dropoff.to_domain().identity:
                raise ValueError("pickup and dropoff must be different locations")
        if self.extras.baby_seats + self.extras.child_seats > self.passengers:
            raise ValueError("baby and child seats cannot exceed the number of passengers")
        return self

    def to_domain(self, vehicle_class: Optional[str] = None) -> QuoteRequest:
        return QuoteRequest(
            pickup=self.pickup.to_domain(),
            dropoff=self.dropoff.to_domain() if self.dropoff else None,
            waypoints=tuple(
                Waypoint(location=wp.to_domain(), wait_minutes=wp.wait_minutes)
                for wp in self.waypoints
            ),
            pickup_instant=self.pickup_time,
            vehicle_class=vehicle_class or self.vehicle_class,
            passengers=self.passengers,
            journey_type=self.journey_type,
            duration_hours=self.duration_hours,
            is_return_journey=self.is_return_journey,
            corporate_account_id=self.corporate_account_id,
        )


# ── Quote responses ───────────────────────────────────────────────────


class PriceBreakdownResponse(BaseModel):
    mode: str
    base_fare: int
    distance_charge: int
    wait_time_charge: int
    hourly_charge: int
    subtotal: int
    surge_multiplier: float
    surge_was_capped: bool
    applied_surge_rule_ids: list[str]
    subtotal_before_discount: int
    corporate_discount_amount: int
    return_discount_amount: int
    total: int
    currency: str
    display_total: str


class JourneyResponse(BaseModel):
    distance_miles: Optional[float] = None
    duration_minutes: Optional[int] = None
    total_wait_minutes: int = 0
    duration_hours: Optional[int] = None
    route_name: Optional[str] = None


class VehicleResponse(BaseModel):
    vehicle_class: str
    name: str
    description: str
    capacity: int
    features: list[str]
    image_url: str


class QuoteResponse(BaseModel):
    quote_id: str
    vehicle: VehicleResponse
    pricing: PriceBreakdownResponse
    journey: JourneyResponse
    pickup_time: datetime
    passengers: int
    luggage: int
    extras: ExtrasIn
    is_return_journey: bool
    is_peak: bool
    created_at: datetime
    expires_at: datetime

    @classmethod
    def from_quote(
        cls, quote: Quote, *, request: QuoteCreateRequest, quote_id: str,
        created_at: datetime, expires_at: datetime,
    ) -> "QuoteResponse":
        card = quote.rate_card
        selection = quote.selection
        return cls(
            quote_id=quote_id,
            vehicle=VehicleResponse(
                vehicle_class=card.vehicle_class,
                name=card.name,
                description=card.description,
                capacity=card.capacity,
                features=list(card.features),
                image_url=card.image_url,
            ),
            pricing=PriceBreakdownResponse(**quote.breakdown.to_dict()),
            journey=JourneyResponse(
                distance_miles=selection.distance_miles,
                duration_minutes=selection.duration_minutes,
                total_wait_minutes=selection.total_wait_minutes,
                duration_hours=selection.duration_hours,
                route_name=selection.route_name,
            ),
            pickup_time=request.pickup_time,
            passengers=request.passengers,
            luggage=request.luggage,
            extras=request.extras,
            is_return_journey=request.is_return_journey,
            is_peak=quote.surge.is_peak,
            created_at=created_at,
            expires_at=expires_at,
        )


class QuoteComparisonResponse(BaseModel):
    quotes: list[QuoteResponse]


# ── Admin: surge rules ────────────────────────────────────────────────
# Only types are checked here; range and ordering invariants are enforced
# when the rule is decoded so templates and API input share one check.


class _SurgeRuleIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    multiplier: float
    is_active: bool = True
    description: str = Field("", max_length=1000)

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SpecificDatesRuleIn(_SurgeRuleIn):
    rule_type: Literal["specific_dates"]
    dates: list[date]


class DateRangeRuleIn(_SurgeRuleIn):
    rule_type: Literal["date_range"]
    start_date: date
    end_date: date


class DayOfWeekRuleIn(_SurgeRuleIn):
    rule_type: Literal["day_of_week"]
    days_of_week: list[Weekday]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class TimeOfDayRuleIn(_SurgeRuleIn):
    rule_type: Literal["time_of_day"]
    start_time: time
    end_time: time
    days_of_week: list[Weekday] = Field(default_factory=list)


SurgeRuleCreateRequest = Annotated[
    Union[SpecificDatesRuleIn, DateRangeRuleIn, DayOfWeekRuleIn, TimeOfDayRuleIn],
    Field(discriminator="rule_type"),
]


class SurgeRuleUpdateRequest(BaseModel):
    """Partial update; fields left out keep their stored values."""

    name: Optional[str] = Field(None, min_length=1, max_length=120)
    rule_type: Optional[Literal["specific_dates", "date_range", "day_of_week", "time_of_day"]] = None
    multiplier: Optional[float] = None
    is_active: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=1000)
    dates: Optional[list[date]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[list[Weekday]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class ApplyTemplateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    multiplier: Optional[float] = None
    is_active: bool = True


class _SurgeRuleFields(BaseModel):
    name: str
    rule_type: str
    multiplier: float
    description: str = ""
    dates: Optional[list[str]] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    days_of_week: Optional[list[str]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class SurgeRuleResponse(_SurgeRuleFields):
    id: str
    is_active: bool


class SurgeTemplateResponse(_SurgeRuleFields):
    key: str


class SurgeCheckResponse(BaseModel):
    at: datetime
    multiplier: float
    was_capped: bool
    is_peak: bool
    applied_rules: list[SurgeRuleResponse]


# ── Admin: rate cards ─────────────────────────────────────────────────


class RateCardRequest(BaseModel):
    base_fare: int
    per_mile: int
    per_minute: int
    per_hour: int
    return_discount_percent: int = 0
    capacity: int = 4
    name: str = Field("", max_length=120)
    description: str = Field("", max_length=1000)
    features: list[str] = Field(default_factory=list)
    image_url: str = Field("", max_length=512)


class RateCardResponse(RateCardRequest):
    vehicle_class: str


# ── Admin: fixed routes and zones ─────────────────────────────────────


class FixedRouteRequest(BaseModel):
    origin_place_id: str = Field(..., min_length=1, max_length=255)
    destination_place_id: str = Field(..., min_length=1, max_length=255)
    vehicle_class: str = Field(..., min_length=1, max_length=32)
    price: int
    distance_miles: float = 0.0
    duration_minutes: int = 0
    name: str = Field("", max_length=200)
    is_active: bool = True


class FixedRouteResponse(FixedRouteRequest):
    pass


class ZoneRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    outward_codes: list[str] = Field(default_factory=list)
    is_active: bool = True


class ZoneResponse(ZoneRequest):
    id: str


class ZoneRouteRequest(BaseModel):
    zone_id: str = Field(..., min_length=1, max_length=36)
    destination_place_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field("", max_length=200)
    # {"standard": {"outbound": 4500, "return": 4200}, ...}
    prices: dict[str, Any]
    is_active: bool = True


class ZoneRouteResponse(ZoneRouteRequest):
    pass


# ── Misc ──────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str = "ok"
    cache_backend: str = "memory"
    distance_oracle: str = "straight_line"


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Any = None


class ErrorResponse(BaseModel):
    error: ErrorBody
