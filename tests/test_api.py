"""
Integration tests for the REST API endpoints.

Runs the real app against SQLite, an in-memory cache and the fake
distance oracle from ``conftest``.  Reference data is seeded through the
same session factory the app's requests use.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from src.domain.errors import DistanceOracleFailure
from src.infrastructure.models import CorporateAccountModel, FixedRouteModel

QUOTE = {
    "pickup": {"address": "12 Old Christchurch Rd, Bournemouth BH1 1LG", "place_id": "pickup"},
    "dropoff": {"address": "Southampton Airport, SO18 2NL", "place_id": "sou"},
    "pickup_time": "2025-06-04T10:00:00",
}


def _quote(**overrides) -> dict:
    body = dict(QUOTE)
    body.update(overrides)
    return body


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["distance_oracle"] == "FakeDistanceOracle"


# ── Quotes ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_variable_quote_with_fallback_rates(client: AsyncClient):
    resp = await client.post("/api/v1/quotes", json=_quote())
    assert resp.status_code == 200
    data = resp.json()
    assert data["pricing"]["mode"] == "variable"
    assert data["pricing"]["total"] == 1500
    assert data["pricing"]["display_total"] == "£15.00"
    assert data["journey"]["distance_miles"] == 10.0
    assert data["vehicle"]["vehicle_class"] == "standard"
    assert data["is_peak"] is False
    assert data["quote_id"]


@pytest.mark.asyncio
async def test_fixed_route_quote(client: AsyncClient, session_factory):
    async with session_factory() as session:
        session.add(FixedRouteModel(
            origin_place_id="pickup", destination_place_id="sou", vehicle_class="standard",
            name="Town to Southampton Airport", price=4500, distance_miles=32.0, duration_minutes=45,
        ))
        await session.commit()

    resp = await client.post("/api/v1/quotes", json=_quote())
    assert resp.status_code == 200
    data = resp.json()
    assert data["pricing"]["mode"] == "fixed"
    assert data["pricing"]["total"] == 4500
    assert data["journey"]["route_name"] == "Town to Southampton Airport"


@pytest.mark.asyncio
async def test_corporate_discount_applied(client: AsyncClient, session_factory):
    async with session_factory() as session:
        session.add(CorporateAccountModel(
            id="acme", company_name="Acme Ltd", status="active", discount_percent=10,
        ))
        await session.commit()

    resp = await client.post("/api/v1/quotes", json=_quote(corporate_account_id="acme"))
    assert resp.status_code == 200
    pricing = resp.json()["pricing"]
    assert pricing["corporate_discount_amount"] == 150
    assert pricing["total"] == 1350


@pytest.mark.asyncio
async def test_hourly_quote(client: AsyncClient, oracle):
    body = _quote(journey_type="by-the-hour", duration_hours=3, dropoff=None)
    resp = await client.post("/api/v1/quotes", json=body)
    assert resp.status_code == 200
    pricing = resp.json()["pricing"]
    assert pricing["mode"] == "hourly"
    assert pricing["total"] == 10500
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_same_pickup_and_dropoff_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/v1/quotes",
        json=_quote(dropoff={"address": "Same place", "place_id": "pickup"}),
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_field_errors_listed(client: AsyncClient):
    resp = await client.post("/api/v1/quotes", json=_quote(passengers=0))
    assert resp.status_code == 400
    details = resp.json()["error"]["details"]
    assert any(d["field"] == "passengers" for d in details)


@pytest.mark.asyncio
async def test_too_many_passengers_for_class(client: AsyncClient):
    resp = await client.post("/api/v1/quotes", json=_quote(passengers=6))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_vehicle_class(client: AsyncClient):
    resp = await client.post("/api/v1/quotes", json=_quote(vehicle_class="limousine"))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "PRICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_oracle_failure_is_503(client: AsyncClient, oracle):
    oracle.error = DistanceOracleFailure("Distance service timed out")
    resp = await client.post("/api/v1/quotes", json=_quote())
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "ROUTE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_compare_quotes_every_class(client: AsyncClient, oracle):
    resp = await client.post("/api/v1/quotes/compare", json=_quote())
    assert resp.status_code == 200
    quotes = resp.json()["quotes"]
    assert [q["vehicle"]["vehicle_class"] for q in quotes] == ["standard", "executive", "minibus"]
    assert [q["pricing"]["total"] for q in quotes] == [1500, 2300, 2200]
    assert len(oracle.calls) == 1


@pytest.mark.asyncio
async def test_compare_filters_by_capacity(client: AsyncClient):
    resp = await client.post("/api/v1/quotes/compare", json=_quote(passengers=6))
    assert resp.status_code == 200
    assert [q["vehicle"]["vehicle_class"] for q in resp.json()["quotes"]] == ["minibus"]


@pytest.mark.asyncio
async def test_compare_survives_oracle_failure_with_fixed_route(
    client: AsyncClient, oracle, session_factory
):
    async with session_factory() as session:
        session.add(FixedRouteModel(
            origin_place_id="pickup", destination_place_id="sou", vehicle_class="executive",
            name="Town to Southampton Airport", price=6000, distance_miles=32.0, duration_minutes=45,
        ))
        await session.commit()
    oracle.error = DistanceOracleFailure("Distance service timed out")

    resp = await client.post("/api/v1/quotes/compare", json=_quote())
    assert resp.status_code == 200
    quotes = resp.json()["quotes"]
    assert [(q["vehicle"]["vehicle_class"], q["pricing"]["total"]) for q in quotes] == [
        ("executive", 6000)
    ]


@pytest.mark.asyncio
async def test_party_details_echoed(client: AsyncClient):
    resp = await client.post("/api/v1/quotes", json=_quote(
        passengers=3, luggage=4, extras={"baby_seats": 1, "child_seats": 0},
        is_return_journey=True,
    ))
    assert resp.status_code == 200
    data = resp.json()
    assert data["passengers"] == 3
    assert data["luggage"] == 4
    assert data["extras"] == {"baby_seats": 1, "child_seats": 0}
    assert data["is_return_journey"] is True


# ── Admin: surge rules ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_surge_rule_lifecycle(client: AsyncClient):
    resp = await client.post("/api/v1/admin/surge-rules", json={
        "name": "Summer Saturdays", "rule_type": "day_of_week", "multiplier": 1.2,
        "days_of_week": ["saturday"],
    })
    assert resp.status_code == 201
    rule = resp.json()
    assert rule["days_of_week"] == ["saturday"]
    assert rule["is_active"] is True

    listed = await client.get("/api/v1/admin/surge-rules")
    assert [r["id"] for r in listed.json()] == [rule["id"]]

    toggled = await client.patch(
        f"/api/v1/admin/surge-rules/{rule['id']}", json={"is_active": False}
    )
    assert toggled.status_code == 200
    assert toggled.json()["is_active"] is False

    deleted = await client.delete(f"/api/v1/admin/surge-rules/{rule['id']}")
    assert deleted.status_code == 204
    missing = await client.delete(f"/api/v1/admin/surge-rules/{rule['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_new_surge_rule_reaches_quotes(client: AsyncClient):
    before = await client.post("/api/v1/quotes", json=_quote())
    assert before.json()["pricing"]["total"] == 1500

    await client.post("/api/v1/admin/surge-rules", json={
        "name": "Test day", "rule_type": "specific_dates", "multiplier": 2.0,
        "dates": ["2025-06-04"],
    })

    after = await client.post("/api/v1/quotes", json=_quote())
    data = after.json()
    assert data["is_peak"] is True
    assert data["pricing"]["total"] == 3000


@pytest.mark.asyncio
async def test_surge_multiplier_out_of_range(client: AsyncClient):
    resp = await client.post("/api/v1/admin/surge-rules", json={
        "name": "Too much", "rule_type": "specific_dates", "multiplier": 5.0,
        "dates": ["2025-12-25"],
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"


@pytest.mark.asyncio
async def test_surge_rule_unknown_type(client: AsyncClient):
    resp = await client.post("/api/v1/admin/surge-rules", json={
        "name": "Moon", "rule_type": "lunar_phase", "multiplier": 1.5,
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_toggle_missing_rule(client: AsyncClient):
    resp = await client.patch("/api/v1/admin/surge-rules/nope", json={"is_active": True})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_templates_apply_and_check(client: AsyncClient):
    templates = await client.get("/api/v1/admin/surge-rules/templates")
    assert templates.status_code == 200
    assert "christmas-period" in {t["key"] for t in templates.json()}

    applied = await client.post(
        "/api/v1/admin/surge-rules/templates/christmas-period/apply",
        json={"multiplier": 1.75},
    )
    assert applied.status_code == 201
    assert applied.json()["multiplier"] == 1.75
    assert applied.json()["start_date"] == "2025-12-20"

    check = await client.get(
        "/api/v1/admin/surge-rules/check", params={"at": "2025-12-25T10:00:00"}
    )
    assert check.status_code == 200
    data = check.json()
    assert data["multiplier"] == 1.75
    assert data["is_peak"] is True
    assert [r["id"] for r in data["applied_rules"]] == [applied.json()["id"]]

    quiet = await client.get(
        "/api/v1/admin/surge-rules/check", params={"at": "2025-06-04T10:00:00"}
    )
    assert quiet.json()["multiplier"] == 1.0
    assert quiet.json()["applied_rules"] == []


@pytest.mark.asyncio
async def test_unknown_template(client: AsyncClient):
    resp = await client.post("/api/v1/admin/surge-rules/templates/nope/apply")
    assert resp.status_code == 404


# ── Admin: rate cards ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_rate_cards_fall_back_when_store_empty(client: AsyncClient):
    resp = await client.get("/api/v1/admin/rate-cards")
    assert resp.status_code == 200
    assert [c["vehicle_class"] for c in resp.json()] == ["standard", "executive", "minibus"]


@pytest.mark.asyncio
async def test_rate_card_update_reaches_quotes(client: AsyncClient):
    await client.post("/api/v1/quotes", json=_quote())  # warms the cache

    resp = await client.put("/api/v1/admin/rate-cards/standard", json={
        "base_fare": 700, "per_mile": 110, "per_minute": 12, "per_hour": 4000,
        "name": "Standard Saloon",
    })
    assert resp.status_code == 200
    assert resp.json()["vehicle_class"] == "standard"

    quote = await client.post("/api/v1/quotes", json=_quote())
    assert quote.json()["pricing"]["total"] == 1800


@pytest.mark.asyncio
async def test_invalid_rate_card_rejected(client: AsyncClient):
    resp = await client.put("/api/v1/admin/rate-cards/standard", json={
        "base_fare": 500, "per_mile": 100, "per_minute": 10, "per_hour": 3500,
        "return_discount_percent": 120,
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"


@pytest.mark.asyncio
async def test_get_and_update_surge_rule(client: AsyncClient):
    created = await client.post("/api/v1/admin/surge-rules", json={
        "name": "Test day", "rule_type": "specific_dates", "multiplier": 2.0,
        "dates": ["2025-06-04"],
    })
    rule_id = created.json()["id"]
    assert (await client.post("/api/v1/quotes", json=_quote())).json()["pricing"]["total"] == 3000

    patched = await client.patch(
        f"/api/v1/admin/surge-rules/{rule_id}", json={"multiplier": 1.5, "name": "Show day"}
    )
    assert patched.status_code == 200
    assert patched.json()["dates"] == ["2025-06-04"]

    fetched = await client.get(f"/api/v1/admin/surge-rules/{rule_id}")
    assert fetched.status_code == 200
    assert fetched.json()["multiplier"] == 1.5
    assert fetched.json()["name"] == "Show day"

    quote = await client.post("/api/v1/quotes", json=_quote())
    assert quote.json()["pricing"]["total"] == 2250


@pytest.mark.asyncio
async def test_invalid_surge_rule_update_rejected(client: AsyncClient):
    created = await client.post("/api/v1/admin/surge-rules", json={
        "name": "Christmas", "rule_type": "date_range", "multiplier": 1.5,
        "start_date": "2025-12-20", "end_date": "2026-01-03",
    })
    rule_id = created.json()["id"]

    resp = await client.patch(
        f"/api/v1/admin/surge-rules/{rule_id}", json={"end_date": "2025-12-01"}
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"

    unchanged = await client.get(f"/api/v1/admin/surge-rules/{rule_id}")
    assert unchanged.json()["end_date"] == "2026-01-03"


@pytest.mark.asyncio
async def test_get_missing_surge_rule(client: AsyncClient):
    resp = await client.get("/api/v1/admin/surge-rules/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


# ── Admin: fixed routes and zones ─────────────────────────────────────


@pytest.mark.asyncio
async def test_fixed_route_upsert_reaches_quotes(client: AsyncClient):
    resp = await client.put("/api/v1/admin/fixed-routes", json={
        "origin_place_id": "pickup", "destination_place_id": "sou", "vehicle_class": "standard",
        "price": 4200, "distance_miles": 32.0, "duration_minutes": 45,
        "name": "Town to Southampton Airport",
    })
    assert resp.status_code == 200

    listed = await client.get("/api/v1/admin/fixed-routes")
    assert [r["price"] for r in listed.json()] == [4200]

    quote = await client.post("/api/v1/quotes", json=_quote())
    assert quote.json()["pricing"]["mode"] == "fixed"
    assert quote.json()["pricing"]["total"] == 4200


@pytest.mark.asyncio
async def test_negative_fixed_route_price_rejected(client: AsyncClient):
    resp = await client.put("/api/v1/admin/fixed-routes", json={
        "origin_place_id": "pickup", "destination_place_id": "sou", "vehicle_class": "standard",
        "price": -100,
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"


@pytest.mark.asyncio
async def test_zone_pricing_reaches_quotes(client: AsyncClient, oracle):
    zone = await client.put(
        "/api/v1/admin/zones/town", json={"name": "Town Centre", "outward_codes": ["bh1", "BH2"]}
    )
    assert zone.status_code == 200
    assert zone.json()["outward_codes"] == ["BH1", "BH2"]

    route = await client.put("/api/v1/admin/zone-routes", json={
        "zone_id": "town", "destination_place_id": "sou", "name": "Town to Southampton",
        "prices": {"standard": {"outbound": 5000, "return": 4600}},
    })
    assert route.status_code == 200

    quote = await client.post("/api/v1/quotes", json=_quote())
    assert quote.json()["pricing"]["mode"] == "zone"
    assert quote.json()["pricing"]["total"] == 5000
    assert oracle.calls == []

    listed = await client.get("/api/v1/admin/zone-routes")
    assert listed.json()[0]["prices"] == {"standard": {"outbound": 5000, "return": 4600}}


@pytest.mark.asyncio
async def test_zone_route_without_return_price_rejected(client: AsyncClient):
    await client.put("/api/v1/admin/zones/town", json={"name": "Town Centre", "outward_codes": ["BH1"]})
    resp = await client.put("/api/v1/admin/zone-routes", json={
        "zone_id": "town", "destination_place_id": "sou",
        "prices": {"standard": {"outbound": 5000}},
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"


@pytest.mark.asyncio
async def test_zone_with_bad_outward_code_rejected(client: AsyncClient):
    resp = await client.put(
        "/api/v1/admin/zones/town", json={"name": "Town Centre", "outward_codes": ["not a code"]}
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "CONFIGURATION_INVALID"
