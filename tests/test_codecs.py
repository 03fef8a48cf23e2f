"""Surge rule / rate card decoding and request schema validation."""

from datetime import date, time

import pytest
from pydantic import ValidationError

from src.api.schemas import QuoteCreateRequest
from src.domain.entities import (
    DayOfWeekRule,
    FixedRoute,
    RateCard,
    SpecificDatesRule,
    TimeOfDayRule,
    Zone,
    ZonePrice,
)
from src.domain.enums import Weekday
from src.domain.errors import ConfigurationInvariantViolation
from src.infrastructure.codecs import (
    check_fixed_route,
    check_rate_card,
    check_zone,
    rate_card_from_dict,
    rate_card_to_dict,
    surge_rule_from_dict,
    surge_rule_to_dict,
    zone_prices_from_dict,
    zone_prices_to_dict,
)


def _rule(**fields) -> dict:
    data = {"id": "r1", "name": "Rule", "multiplier": 1.5, "is_active": True}
    data.update(fields)
    return data


class TestSurgeRuleDecoding:
    def test_specific_dates(self):
        rule = surge_rule_from_dict(
            _rule(rule_type="specific_dates", dates=["2025-12-25", "2025-12-26"])
        )
        assert isinstance(rule, SpecificDatesRule)
        assert rule.dates == frozenset({date(2025, 12, 25), date(2025, 12, 26)})

    def test_day_of_week_with_windows(self):
        rule = surge_rule_from_dict(_rule(
            rule_type="day_of_week", days_of_week=["Friday", "saturday"],
            start_time="18:00", end_time="23:59",
        ))
        assert isinstance(rule, DayOfWeekRule)
        assert rule.days == frozenset({Weekday.FRIDAY, Weekday.SATURDAY})
        assert rule.start_time == time(18, 0)

    def test_time_of_day_days_optional(self):
        rule = surge_rule_from_dict(
            _rule(rule_type="time_of_day", start_time="07:00", end_time="09:30")
        )
        assert isinstance(rule, TimeOfDayRule)
        assert rule.days == frozenset()

    def test_encoding_orders_days_and_formats_times(self):
        rule = surge_rule_from_dict(_rule(
            rule_type="day_of_week", days_of_week=["sunday", "monday"],
            start_time="06:00:00", end_time="10:00",
        ))
        data = surge_rule_to_dict(rule)
        assert data["days_of_week"] == ["monday", "sunday"]
        assert data["start_time"] == "06:00"
        assert data["dates"] is None

    @pytest.mark.parametrize("multiplier", [0.5, 0.99, 3.01, 5.0])
    def test_multiplier_out_of_range(self, multiplier):
        with pytest.raises(ConfigurationInvariantViolation):
            surge_rule_from_dict(
                _rule(rule_type="specific_dates", dates=["2025-12-25"], multiplier=multiplier)
            )

    @pytest.mark.parametrize(
        "fields",
        [
            {"rule_type": "lunar_phase"},
            {"rule_type": "specific_dates", "dates": []},
            {"rule_type": "date_range", "start_date": "2025-12-20"},
            {"rule_type": "date_range", "start_date": "2026-01-03", "end_date": "2025-12-20"},
            {"rule_type": "day_of_week", "days_of_week": []},
            {"rule_type": "day_of_week", "days_of_week": ["funday"]},
            {"rule_type": "day_of_week", "days_of_week": ["monday"], "start_time": "07:00"},
            {"rule_type": "time_of_day", "start_time": "22:00", "end_time": "02:00"},
            {"rule_type": "time_of_day", "start_time": "7am", "end_time": "09:00"},
        ],
        ids=[
            "unknown-type", "no-dates", "open-range", "reversed-range", "no-days",
            "bad-day", "half-window", "overnight-window", "bad-time",
        ],
    )
    def test_invalid_rules_rejected(self, fields):
        with pytest.raises(ConfigurationInvariantViolation):
            surge_rule_from_dict(_rule(**fields))


class TestRateCardCodec:
    def test_round_trip_keeps_features(self):
        card = RateCard(
            vehicle_class="executive", base_fare=800, per_mile=150, per_minute=15,
            per_hour=5000, capacity=3, features=("Wi-Fi", "Water"),
        )
        assert rate_card_from_dict(rate_card_to_dict(card)) == card

    @pytest.mark.parametrize(
        "overrides",
        [{"per_mile": -1}, {"return_discount_percent": 101}, {"capacity": 0}],
    )
    def test_invalid_cards_rejected(self, overrides):
        fields = dict(vehicle_class="standard", base_fare=500, per_mile=100, per_minute=10, per_hour=3500)
        fields.update(overrides)
        with pytest.raises(ConfigurationInvariantViolation):
            check_rate_card(RateCard(**fields))


class TestRouteChecks:
    @pytest.mark.parametrize(
        "overrides",
        [{"price": -1}, {"distance_miles": -0.5}, {"destination_place_id": "station"}],
    )
    def test_invalid_fixed_routes_rejected(self, overrides):
        fields = dict(
            origin_place_id="station", destination_place_id="heathrow", vehicle_class="standard",
            price=15000, distance_miles=95.2, duration_minutes=110,
        )
        fields.update(overrides)
        with pytest.raises(ConfigurationInvariantViolation):
            check_fixed_route(FixedRoute(**fields))

    def test_zone_outward_codes_checked(self):
        assert check_zone(Zone(id="z1", name="Town", outward_codes=frozenset({"BH1", "DT11"})))
        with pytest.raises(ConfigurationInvariantViolation):
            check_zone(Zone(id="z1", name="Town", outward_codes=frozenset({"BH1 1LG"})))

    def test_zone_prices_decoded(self):
        prices = zone_prices_from_dict({"standard": {"outbound": 4500, "return": 4200}})
        assert prices == {"standard": ZonePrice(outbound=4500, return_=4200)}
        assert zone_prices_to_dict(prices) == {"standard": {"outbound": 4500, "return": 4200}}

    @pytest.mark.parametrize(
        "prices",
        [
            {},
            {"standard": {"outbound": 4500}},
            {"standard": {"outbound": -1, "return": 4200}},
            {"standard": {"outbound": "cheap", "return": 4200}},
            {"standard": None},
            ["standard"],
        ],
    )
    def test_invalid_zone_prices_rejected(self, prices):
        with pytest.raises(ConfigurationInvariantViolation):
            zone_prices_from_dict(prices)


class TestQuoteCreateRequest:
    BASE = {
        "pickup": {"address": "Bournemouth Station", "place_id": "station"},
        "dropoff": {"address": "Heathrow Airport", "place_id": "heathrow"},
        "pickup_time": "2025-06-04T10:00:00",
    }

    def _payload(self, **overrides) -> dict:
        payload = dict(self.BASE)
        payload.update(overrides)
        return payload

    def test_defaults(self):
        req = QuoteCreateRequest(**self._payload())
        domain = req.to_domain()
        assert domain.vehicle_class == "standard"
        assert domain.passengers == 1
        assert domain.waypoints == ()

    def test_same_pickup_and_dropoff_rejected(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(
                dropoff={"address": "Elsewhere", "place_id": "station"}
            ))

    def test_same_address_ignores_case_and_spacing(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(
                pickup={"address": "1 High  Street"},
                dropoff={"address": "1 high street"},
            ))

    def test_one_way_needs_dropoff(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(dropoff=None))

    def test_hourly_needs_duration(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(journey_type="by-the-hour", dropoff=None))

    def test_hourly_without_dropoff_ok(self):
        req = QuoteCreateRequest(
            **self._payload(journey_type="by-the-hour", duration_hours=4, dropoff=None)
        )
        assert req.to_domain().duration_hours == 4

    def test_hourly_duration_bounds(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(journey_type="by-the-hour", duration_hours=1))

    def test_seats_cannot_exceed_passengers(self):
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(passengers=2, extras={"baby_seats": 2, "child_seats": 1}))

    def test_too_many_waypoints(self):
        stop = {"address": "Ringwood"}
        with pytest.raises(ValidationError):
            QuoteCreateRequest(**self._payload(waypoints=[stop] * 6))

    def test_waypoint_waits_carried(self):
        req = QuoteCreateRequest(**self._payload(
            waypoints=[{"address": "Ringwood", "wait_minutes": 20}]
        ))
        assert req.to_domain().waypoints[0].wait_minutes == 20
