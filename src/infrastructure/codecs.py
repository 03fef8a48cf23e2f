"""
Plain-dict codecs and entry checks for reference data.

Rate cards and surge rules travel as JSON through the Redis cache, the
admin API templates and the ORM rows, so they share one flat dict shape.
Decoding is also the point where stored surge rules and zone price
matrices are checked; data that violates its invariants raises
``ConfigurationInvariantViolation``.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Mapping, Optional

from src.domain.entities import (
    DateRangeRule,
    DayOfWeekRule,
    FixedRoute,
    RateCard,
    SpecificDatesRule,
    SurgeRule,
    TimeOfDayRule,
    Zone,
    ZonePrice,
)
from src.domain.enums import SurgeRuleType, Weekday
from src.domain.errors import ConfigurationInvariantViolation
from src.domain.postcodes import is_outward_code
from src.domain.surge import MAX_SURGE_MULTIPLIER, MIN_SURGE_MULTIPLIER


# ── Rate cards ────────────────────────────────────────────────────────


def rate_card_to_dict(card: RateCard) -> dict[str, Any]:
    return {
        "vehicle_class": card.vehicle_class,
        "base_fare": card.base_fare,
        "per_mile": card.per_mile,
        "per_minute": card.per_minute,
        "per_hour": card.per_hour,
        "return_discount_percent": card.return_discount_percent,
        "capacity": card.capacity,
        "name": card.name,
        "description": card.description,
        "features": list(card.features),
        "image_url": card.image_url,
    }


def rate_card_from_dict(data: dict[str, Any]) -> RateCard:
    return RateCard(
        vehicle_class=data["vehicle_class"],
        base_fare=int(data["base_fare"]),
        per_mile=int(data["per_mile"]),
        per_minute=int(data["per_minute"]),
        per_hour=int(data["per_hour"]),
        return_discount_percent=int(data.get("return_discount_percent") or 0),
        capacity=int(data.get("capacity") or 4),
        name=data.get("name") or "",
        description=data.get("description") or "",
        features=tuple(data.get("features") or ()),
        image_url=data.get("image_url") or "",
    )


def check_rate_card(card: RateCard) -> RateCard:
    if min(card.base_fare, card.per_mile, card.per_minute, card.per_hour) < 0:
        raise ConfigurationInvariantViolation(
            "Rates must be non-negative", {"vehicle_class": card.vehicle_class}
        )
    if not 0 <= card.return_discount_percent <= 100:
        raise ConfigurationInvariantViolation(
            "Return discount must be between 0 and 100",
            {"return_discount_percent": card.return_discount_percent},
        )
    if card.capacity < 1:
        raise ConfigurationInvariantViolation(
            "Capacity must be at least 1", {"capacity": card.capacity}
        )
    return card


# ── Route overrides ───────────────────────────────────────────────────


def check_fixed_route(route: FixedRoute) -> FixedRoute:
    if route.origin_place_id == route.destination_place_id:
        raise ConfigurationInvariantViolation(
            "Fixed route origin and destination must differ",
            {"place_id": route.origin_place_id},
        )
    if route.price < 0:
        raise ConfigurationInvariantViolation(
            "Route price must be non-negative", {"price": route.price}
        )
    if route.distance_miles < 0 or route.duration_minutes < 0:
        raise ConfigurationInvariantViolation("Route distance and duration must be non-negative")
    return route


def check_zone(zone: Zone) -> Zone:
    bad = sorted(c for c in zone.outward_codes if not is_outward_code(c))
    if bad:
        raise ConfigurationInvariantViolation(
            "Invalid postcode outward codes", {"outward_codes": bad}
        )
    return zone


def zone_price_from_dict(vehicle_class: str, data: Any) -> ZonePrice:
    """Decode one ``{"outbound": ..., "return": ...}`` entry of a zone price matrix."""
    try:
        outbound = int(data["outbound"])
        return_ = int(data["return"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationInvariantViolation(
            f"Zone price for {vehicle_class} needs integer outbound and return prices",
            {"vehicle_class": vehicle_class},
        ) from exc
    if outbound < 0 or return_ < 0:
        raise ConfigurationInvariantViolation(
            f"Zone prices for {vehicle_class} must be non-negative",
            {"vehicle_class": vehicle_class},
        )
    return ZonePrice(outbound=outbound, return_=return_)


def zone_prices_from_dict(data: Any) -> dict[str, ZonePrice]:
    if not isinstance(data, dict) or not data:
        raise ConfigurationInvariantViolation("Zone route needs a price for at least one class")
    return {vc: zone_price_from_dict(vc, entry) for vc, entry in data.items()}


def zone_prices_to_dict(prices: Mapping[str, ZonePrice]) -> dict[str, dict[str, int]]:
    return {vc: {"outbound": p.outbound, "return": p.return_} for vc, p in prices.items()}


# ── Surge rules ───────────────────────────────────────────────────────


def _fmt_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


def parse_date(value: Any, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigurationInvariantViolation(
            f"Invalid date for {field}: {value!r}", {"field": field}
        ) from exc


def parse_time(value: Any, field: str) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    text = str(value)
    try:
        parsed = time.fromisoformat(text)
    except ValueError as exc:
        raise ConfigurationInvariantViolation(
            f"Invalid time for {field}: {value!r} (expected HH:MM)", {"field": field}
        ) from exc
    return parsed.replace(second=0, microsecond=0)


def _parse_days(values: Any) -> frozenset[Weekday]:
    try:
        return frozenset(Weekday(str(v).lower()) for v in values or ())
    except ValueError as exc:
        raise ConfigurationInvariantViolation(
            f"Invalid day of week in {values!r}", {"field": "days_of_week"}
        ) from exc


def _check_order(start, end, label: str) -> None:
    if start is not None and end is not None and start > end:
        raise ConfigurationInvariantViolation(
            f"{label} start must not be after its end",
            {"start": str(start), "end": str(end)},
        )


def _check_pair(start, end, label: str) -> None:
    if (start is None) != (end is None):
        raise ConfigurationInvariantViolation(
            f"{label} window needs both a start and an end"
        )


def surge_rule_from_dict(data: dict[str, Any]) -> SurgeRule:
    """Decode and validate one surge rule."""
    try:
        rule_type = SurgeRuleType(data["rule_type"])
    except (KeyError, ValueError) as exc:
        raise ConfigurationInvariantViolation(
            f"Unknown surge rule type: {data.get('rule_type')!r}"
        ) from exc

    multiplier = float(data["multiplier"])
    if not MIN_SURGE_MULTIPLIER <= multiplier <= MAX_SURGE_MULTIPLIER:
        raise ConfigurationInvariantViolation(
            f"Multiplier must be between {MIN_SURGE_MULTIPLIER} and {MAX_SURGE_MULTIPLIER}",
            {"multiplier": multiplier},
        )

    common = {
        "id": str(data["id"]),
        "name": data.get("name") or "",
        "multiplier": multiplier,
        "active": bool(data.get("is_active", True)),
        "description": data.get("description") or "",
    }
    start_date = parse_date(data.get("start_date"), "start_date")
    end_date = parse_date(data.get("end_date"), "end_date")
    start_time = parse_time(data.get("start_time"), "start_time")
    end_time = parse_time(data.get("end_time"), "end_time")
    _check_order(start_date, end_date, "Date range")
    _check_order(start_time, end_time, "Time window")

    if rule_type == SurgeRuleType.SPECIFIC_DATES:
        dates = frozenset(parse_date(d, "dates") for d in data.get("dates") or ())
        if not dates:
            raise ConfigurationInvariantViolation("specific_dates rule needs at least one date")
        return SpecificDatesRule(dates=dates, **common)

    if rule_type == SurgeRuleType.DATE_RANGE:
        if start_date is None or end_date is None:
            raise ConfigurationInvariantViolation("date_range rule needs start_date and end_date")
        return DateRangeRule(start_date=start_date, end_date=end_date, **common)

    days = _parse_days(data.get("days_of_week"))

    if rule_type == SurgeRuleType.DAY_OF_WEEK:
        if not days:
            raise ConfigurationInvariantViolation("day_of_week rule needs at least one day")
        _check_pair(start_date, end_date, "Date range")
        _check_pair(start_time, end_time, "Time")
        return DayOfWeekRule(
            days=days,
            start_date=start_date,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
            **common,
        )

    if start_time is None or end_time is None:
        raise ConfigurationInvariantViolation("time_of_day rule needs start_time and end_time")
    return TimeOfDayRule(start_time=start_time, end_time=end_time, days=days, **common)


def surge_rule_to_dict(rule: SurgeRule) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": rule.id,
        "name": rule.name,
        "rule_type": rule.rule_type.value,
        "multiplier": rule.multiplier,
        "is_active": rule.active,
        "description": rule.description,
        "dates": None,
        "start_date": None,
        "end_date": None,
        "days_of_week": None,
        "start_time": None,
        "end_time": None,
    }
    match rule:
        case SpecificDatesRule():
            data["dates"] = sorted(d.isoformat() for d in rule.dates)
        case DateRangeRule():
            data["start_date"] = _fmt_date(rule.start_date)
            data["end_date"] = _fmt_date(rule.end_date)
        case DayOfWeekRule():
            data["days_of_week"] = _ordered_days(rule.days)
            data["start_date"] = _fmt_date(rule.start_date)
            data["end_date"] = _fmt_date(rule.end_date)
            data["start_time"] = _fmt_time(rule.start_time)
            data["end_time"] = _fmt_time(rule.end_time)
        case TimeOfDayRule():
            data["days_of_week"] = _ordered_days(rule.days) or None
            data["start_time"] = _fmt_time(rule.start_time)
            data["end_time"] = _fmt_time(rule.end_time)
    return data


def _ordered_days(days: frozenset[Weekday]) -> list[str]:
    return [d.value for d in Weekday if d in days]
