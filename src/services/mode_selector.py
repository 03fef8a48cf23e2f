"""
Pricing Mode Selection
======================

Precedence (first match wins):

1. **Hourly**   -- journey_type is by-the-hour; no lookups, no oracle call.
2. **Fixed**    -- active fixed route for (pickup, dropoff, vehicle class).
3. **Zone**     -- pickup's outward code maps to an active zone, and an
                   active zone route to the dropoff prices this class.
4. **Variable** -- distance oracle across pickup -> waypoints -> dropoff.

Route and zone lookups are best-effort: a lookup that raises
``LookupFailure`` is logged and treated as "not found", so the request
falls through to the next mode.  Distance oracle errors propagate.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from src.domain.entities import FixedRoute, Location, ModeSelection, QuoteRequest, Zone, ZoneRoute
from src.domain.enums import PricingMode
from src.domain.errors import InvalidQuoteRequest, LookupFailure
from src.infrastructure.distance_oracle import DistanceOracle

logger = logging.getLogger(__name__)

FixedRouteLookup = Callable[[str, str, str], Awaitable[Optional[FixedRoute]]]
ZoneLookup = Callable[[Location], Awaitable[Optional[Zone]]]
ZoneRouteLookup = Callable[[str, str], Awaitable[Optional[ZoneRoute]]]


async def _best_effort(label: str, lookup, *args):
    try:
        return await lookup(*args)
    except LookupFailure as exc:
        logger.warning("%s lookup failed, treating as not found: %s", label, exc)
        return None


async def select_mode(
    request: QuoteRequest,
    fixed_route_lookup: FixedRouteLookup,
    zone_lookup: ZoneLookup,
    zone_route_lookup: ZoneRouteLookup,
    distance_oracle: DistanceOracle,
) -> ModeSelection:
    if request.is_hourly:
        if request.duration_hours is None:
            raise InvalidQuoteRequest("Hourly bookings require duration_hours")
        return ModeSelection(
            mode=PricingMode.HOURLY,
            duration_hours=request.duration_hours,
            duration_minutes=request.duration_hours * 60,
        )

    if request.dropoff is None:
        raise InvalidQuoteRequest("A dropoff location is required for one-way journeys")

    origin = request.pickup.identity
    destination = request.dropoff.identity

    route = await _best_effort(
        "Fixed route", fixed_route_lookup, origin, destination, request.vehicle_class
    )
    if route is not None and route.active:
        logger.debug("Fixed route %s matched for %s", route.name, request.vehicle_class)
        return ModeSelection(
            mode=PricingMode.FIXED,
            route_price=route.price,
            distance_miles=route.distance_miles,
            duration_minutes=route.duration_minutes,
            route_name=route.name or None,
        )

    zone = await _best_effort("Zone", zone_lookup, request.pickup)
    if zone is not None and zone.active:
        zone_route = await _best_effort("Zone route", zone_route_lookup, zone.id, destination)
        if zone_route is not None and zone_route.active:
            price = zone_route.price_for(request.vehicle_class, request.is_return_journey)
            if price is not None:
                return ModeSelection(
                    mode=PricingMode.ZONE,
                    route_price=price,
                    route_name=zone_route.name or zone.name,
                )

    metrics = await distance_oracle.route_metrics(
        request.pickup,
        request.dropoff,
        [wp.location for wp in request.waypoints],
    )
    return ModeSelection(
        mode=PricingMode.VARIABLE,
        distance_miles=metrics.miles,
        duration_minutes=metrics.minutes,
        total_wait_minutes=request.total_wait_minutes,
    )
