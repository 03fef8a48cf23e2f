"""
Distance oracles: road distance and duration for a journey.

``GoogleDistanceOracle``
    Google Directions API over ``httpx``.  Legs are summed, then
    ``miles = metres / 1609.34`` (2 dp) and ``minutes = ceil(seconds / 60)``.

``StraightLineDistanceOracle``
    Offline estimate for development and tests: great-circle (Haversine)
    distance multiplied by a road factor, duration from an average speed.
    Needs coordinates on every stop.

Failure semantics
-----------------
* Provider says the route does not exist (``ZERO_RESULTS`` / ``NOT_FOUND``)
  or the journey exceeds ``max_journey_miles``  -> ``PriceUnavailable``
* Timeout, transport error, bad status, unreadable body -> ``DistanceOracleFailure``
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, Sequence

import httpx

from src.domain.entities import Location, RouteMetrics
from src.domain.errors import DistanceOracleFailure, PriceUnavailable

logger = logging.getLogger(__name__)

METRES_PER_MILE = Decimal("1609.34")
EARTH_RADIUS_MILES = 3_958.8
DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

_NOT_SERVICEABLE = {"ZERO_RESULTS", "NOT_FOUND"}


class DistanceOracle(Protocol):
    async def route_metrics(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
    ) -> RouteMetrics: ...


def metres_to_miles(metres: int | float) -> float:
    miles = Decimal(str(metres)) / METRES_PER_MILE
    return float(miles.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def seconds_to_minutes(seconds: int | float) -> int:
    return math.ceil(seconds / 60)


def check_serviceable(metrics: RouteMetrics, max_journey_miles: float) -> RouteMetrics:
    if metrics.miles > max_journey_miles:
        raise PriceUnavailable(
            f"Journey of {metrics.miles} miles exceeds the {max_journey_miles:g} mile limit",
            {"miles": metrics.miles, "max_miles": max_journey_miles},
        )
    return metrics


# ── Google Directions ─────────────────────────────────────────────────


def _directions_param(location: Location) -> str:
    if location.place_id:
        return f"place_id:{location.place_id}"
    if location.has_coordinates:
        return f"{location.lat},{location.lng}"
    return location.address


class GoogleDistanceOracle:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        timeout_seconds: float = 10.0,
        max_journey_miles: float = 500.0,
    ):
        self.client = client
        self.api_key = api_key
        self.timeout = timeout_seconds
        self.max_journey_miles = max_journey_miles

    async def route_metrics(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
    ) -> RouteMetrics:
        params = {
            "origin": _directions_param(origin),
            "destination": _directions_param(destination),
            "region": "uk",
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(_directions_param(wp) for wp in waypoints)

        try:
            response = await self.client.get(DIRECTIONS_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("Directions request timed out after %ss", self.timeout)
            raise DistanceOracleFailure("Distance service timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("Directions request failed: %s", exc)
            raise DistanceOracleFailure("Distance service unavailable") from exc
        except ValueError as exc:
            raise DistanceOracleFailure("Distance service returned an unreadable response") from exc

        status = data.get("status")
        if status in _NOT_SERVICEABLE:
            raise PriceUnavailable("No route found between these locations", {"status": status})
        if status != "OK" or not data.get("routes"):
            logger.warning("Directions returned status %s: %s", status, data.get("error_message"))
            raise DistanceOracleFailure("Distance service error", {"status": status})

        legs = data["routes"][0].get("legs") or []
        try:
            metres = sum(leg["distance"]["value"] for leg in legs)
            seconds = sum(leg["duration"]["value"] for leg in legs)
        except (KeyError, TypeError) as exc:
            raise DistanceOracleFailure("Distance service returned malformed legs") from exc

        metrics = RouteMetrics(miles=metres_to_miles(metres), minutes=seconds_to_minutes(seconds))
        return check_serviceable(metrics, self.max_journey_miles)


# ── Straight-line estimate ────────────────────────────────────────────


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return the great-circle distance in **miles** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


class StraightLineDistanceOracle:
    def __init__(
        self,
        road_factor: float = 1.3,
        average_speed_mph: float = 30.0,
        max_journey_miles: float = 500.0,
    ):
        self.road_factor = road_factor
        self.average_speed_mph = average_speed_mph
        self.max_journey_miles = max_journey_miles

    async def route_metrics(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
    ) -> RouteMetrics:
        stops = [origin, *waypoints, destination]
        missing = [stop.address for stop in stops if not stop.has_coordinates]
        if missing:
            raise DistanceOracleFailure(
                "Coordinates are required for every stop", {"addresses": missing}
            )

        crow_miles = sum(
            haversine_miles(a.lat, a.lng, b.lat, b.lng) for a, b in zip(stops, stops[1:])
        )
        road_miles = crow_miles * self.road_factor
        metrics = RouteMetrics(
            miles=float(Decimal(str(road_miles)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
            minutes=math.ceil(road_miles / self.average_speed_mph * 60),
        )
        return check_serviceable(metrics, self.max_journey_miles)
