"""Unit tests for pricing mode selection (fixed > zone > variable, hourly bypass)."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from src.domain.entities import (
    FixedRoute,
    Location,
    QuoteRequest,
    Waypoint,
    Zone,
    ZonePrice,
    ZoneRoute,
)
from src.domain.enums import JourneyType, PricingMode
from src.domain.errors import DistanceOracleFailure, InvalidQuoteRequest, LookupFailure
from src.services.mode_selector import select_mode
from tests.conftest import FakeDistanceOracle

STATION = Location(address="Bournemouth Station, BH8 8HX", place_id="station")
HEATHROW = Location(address="Heathrow Airport, TW6 1QG", place_id="heathrow")

FIXED = FixedRoute(
    origin_place_id="station", destination_place_id="heathrow", vehicle_class="standard",
    price=15000, distance_miles=95.2, duration_minutes=110, name="Station to Heathrow",
)
ZONE = Zone(id="z1", name="Town centre", outward_codes=frozenset({"BH8"}))
ZONE_ROUTE = ZoneRoute(
    zone_id="z1", destination_place_id="heathrow",
    prices={"standard": ZonePrice(outbound=16000, return_=15000)},
    name="Town centre to Heathrow",
)


def _request(**overrides) -> QuoteRequest:
    fields = dict(
        pickup=STATION,
        dropoff=HEATHROW,
        pickup_instant=datetime(2025, 6, 4, 10, 0),
        vehicle_class="standard",
    )
    fields.update(overrides)
    return QuoteRequest(**fields)


def _lookups(fixed=None, zone=None, zone_route=None):
    return (
        AsyncMock(return_value=fixed),
        AsyncMock(return_value=zone),
        AsyncMock(return_value=zone_route),
    )


class TestModeSelection:
    @pytest.mark.asyncio
    async def test_fixed_route_wins_over_zone(self):
        oracle = FakeDistanceOracle()
        fixed, zone, zone_route = _lookups(FIXED, ZONE, ZONE_ROUTE)

        selection = await select_mode(_request(), fixed, zone, zone_route, oracle)

        assert selection.mode == PricingMode.FIXED
        assert selection.route_price == 15000
        assert selection.distance_miles == 95.2
        assert selection.route_name == "Station to Heathrow"
        fixed.assert_awaited_once_with("station", "heathrow", "standard")
        zone.assert_not_awaited()
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_inactive_fixed_route_falls_through_to_zone(self):
        inactive = replace(FIXED, active=False)
        selection = await select_mode(
            _request(), *_lookups(inactive, ZONE, ZONE_ROUTE), FakeDistanceOracle()
        )
        assert selection.mode == PricingMode.ZONE
        assert selection.route_price == 16000

    @pytest.mark.asyncio
    async def test_zone_return_price(self):
        oracle = FakeDistanceOracle()
        selection = await select_mode(
            _request(is_return_journey=True), *_lookups(None, ZONE, ZONE_ROUTE), oracle
        )
        assert selection.mode == PricingMode.ZONE
        assert selection.route_price == 15000
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_zone_without_price_for_class_is_variable(self):
        oracle = FakeDistanceOracle(miles=12.5, minutes=25)
        selection = await select_mode(
            _request(vehicle_class="minibus"), *_lookups(None, ZONE, ZONE_ROUTE), oracle
        )
        assert selection.mode == PricingMode.VARIABLE
        assert selection.distance_miles == 12.5

    @pytest.mark.asyncio
    async def test_variable_sums_waypoint_waits(self):
        stop = Location(address="Poole Quay, BH15 1HJ", place_id="quay")
        oracle = FakeDistanceOracle(miles=30.0, minutes=45)
        request = _request(
            waypoints=(Waypoint(stop, wait_minutes=15), Waypoint(stop, wait_minutes=10))
        )

        selection = await select_mode(request, *_lookups(), oracle)

        assert selection.mode == PricingMode.VARIABLE
        assert selection.total_wait_minutes == 25
        assert selection.duration_minutes == 45
        assert oracle.calls == [(STATION, HEATHROW, (stop, stop))]

    @pytest.mark.asyncio
    async def test_hourly_bypasses_everything(self):
        oracle = FakeDistanceOracle()
        fixed, zone, zone_route = _lookups(FIXED, ZONE, ZONE_ROUTE)
        request = _request(journey_type=JourneyType.BY_THE_HOUR, duration_hours=4, dropoff=None)

        selection = await select_mode(request, fixed, zone, zone_route, oracle)

        assert selection.mode == PricingMode.HOURLY
        assert selection.duration_hours == 4
        fixed.assert_not_awaited()
        assert oracle.calls == []

    @pytest.mark.asyncio
    async def test_lookup_failure_treated_as_not_found(self):
        fixed = AsyncMock(side_effect=LookupFailure("db down"))
        zone = AsyncMock(side_effect=LookupFailure("db down"))
        oracle = FakeDistanceOracle()

        selection = await select_mode(_request(), fixed, zone, AsyncMock(), oracle)

        assert selection.mode == PricingMode.VARIABLE
        assert len(oracle.calls) == 1

    @pytest.mark.asyncio
    async def test_oracle_failure_propagates(self):
        oracle = FakeDistanceOracle(error=DistanceOracleFailure("timeout"))
        with pytest.raises(DistanceOracleFailure):
            await select_mode(_request(), *_lookups(), oracle)

    @pytest.mark.asyncio
    async def test_one_way_without_dropoff_rejected(self):
        with pytest.raises(InvalidQuoteRequest):
            await select_mode(_request(dropoff=None), *_lookups(), FakeDistanceOracle())
