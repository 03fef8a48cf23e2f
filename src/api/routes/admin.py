"""
Admin endpoints
===============

GET    /api/v1/admin/health                                  -- health check
GET    /api/v1/admin/surge-rules                             -- list all rules
POST   /api/v1/admin/surge-rules                             -- create a rule
GET    /api/v1/admin/surge-rules/{rule_id}                   -- one rule
PATCH  /api/v1/admin/surge-rules/{rule_id}                   -- partial update
DELETE /api/v1/admin/surge-rules/{rule_id}                   -- delete a rule
GET    /api/v1/admin/surge-rules/templates                   -- built-in templates
POST   /api/v1/admin/surge-rules/templates/{key}/apply       -- create from template
GET    /api/v1/admin/surge-rules/check?at=...                -- which rules apply
GET    /api/v1/admin/rate-cards                              -- list rate cards
PUT    /api/v1/admin/rate-cards/{vehicle_class}              -- create / replace
GET    /api/v1/admin/fixed-routes                            -- list fixed routes
PUT    /api/v1/admin/fixed-routes                            -- create / replace
GET    /api/v1/admin/zones                                   -- list zones
PUT    /api/v1/admin/zones/{zone_id}                         -- create / replace
GET    /api/v1/admin/zone-routes                             -- list zone routes
PUT    /api/v1/admin/zone-routes                             -- create / replace

Every mutation invalidates the cached copy so quotes see it immediately
in this process (other processes pick it up on the next warmer cycle).
Fixed routes and zones are read straight from the store on each quote.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_rate_catalog, get_surge_source
from src.api.middleware import limiter
from src.api.schemas import (
    ApplyTemplateRequest,
    FixedRouteRequest,
    FixedRouteResponse,
    HealthResponse,
    RateCardRequest,
    RateCardResponse,
    SurgeCheckResponse,
    SurgeRuleCreateRequest,
    SurgeRuleResponse,
    SurgeRuleUpdateRequest,
    SurgeTemplateResponse,
    ZoneRequest,
    ZoneResponse,
    ZoneRouteRequest,
    ZoneRouteResponse,
)
from src.config import settings
from src.domain.entities import FixedRoute, RateCard, SurgeRule, Zone, ZoneRoute
from src.domain.surge import evaluate
from src.domain.surge_templates import SURGE_TEMPLATES
from src.infrastructure.codecs import (
    check_fixed_route,
    check_rate_card,
    check_zone,
    rate_card_to_dict,
    surge_rule_to_dict,
    zone_prices_from_dict,
    zone_prices_to_dict,
)
from src.infrastructure.repositories import (
    FixedRouteRepository,
    RateCardRepository,
    SurgeRuleRepository,
    ZoneRepository,
    ZoneRouteRepository,
)
from src.services.catalog import RateCatalog, SurgeRuleSource
from src.services.quoting import to_civil

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _rule_response(rule: SurgeRule) -> SurgeRuleResponse:
    return SurgeRuleResponse(**surge_rule_to_dict(rule))


def _card_response(card: RateCard) -> RateCardResponse:
    return RateCardResponse(**rate_card_to_dict(card))


def _fixed_route_response(route: FixedRoute) -> FixedRouteResponse:
    return FixedRouteResponse(
        origin_place_id=route.origin_place_id,
        destination_place_id=route.destination_place_id,
        vehicle_class=route.vehicle_class,
        price=route.price,
        distance_miles=route.distance_miles,
        duration_minutes=route.duration_minutes,
        name=route.name,
        is_active=route.active,
    )


def _zone_response(zone: Zone) -> ZoneResponse:
    return ZoneResponse(
        id=zone.id, name=zone.name, outward_codes=sorted(zone.outward_codes), is_active=zone.active
    )


def _zone_route_response(route: ZoneRoute) -> ZoneRouteResponse:
    return ZoneRouteResponse(
        zone_id=route.zone_id,
        destination_place_id=route.destination_place_id,
        name=route.name,
        prices=zone_prices_to_dict(route.prices),
        is_active=route.active,
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request):
    return HealthResponse(
        cache_backend=settings.cache_backend,
        distance_oracle=getattr(request.app.state, "distance_oracle_name", "unknown"),
    )


# ── Surge rules ───────────────────────────────────────────────────────


@router.get(
    "/surge-rules",
    response_model=list[SurgeRuleResponse],
    summary="List all surge rules",
)
@limiter.limit(settings.rate_limit)
async def list_surge_rules(request: Request, db: AsyncSession = Depends(get_db)):
    rules = await SurgeRuleRepository(db).list_all()
    return [_rule_response(r) for r in rules]


@router.post(
    "/surge-rules",
    status_code=201,
    response_model=SurgeRuleResponse,
    summary="Create a surge rule",
)
@limiter.limit(settings.rate_limit)
async def create_surge_rule(
    request: Request,
    body: SurgeRuleCreateRequest,
    db: AsyncSession = Depends(get_db),
    surge_source: SurgeRuleSource = Depends(get_surge_source),
):
    rule = await SurgeRuleRepository(db).create(body.to_data())
    await surge_source.invalidate()
    logger.info("Surge rule %s (%s, %.2fx) created", rule.id, rule.name, rule.multiplier)
    return _rule_response(rule)


@router.get(
    "/surge-rules/templates",
    response_model=list[SurgeTemplateResponse],
    summary="List built-in surge rule templates",
)
async def list_surge_templates():
    return [SurgeTemplateResponse(key=key, **tpl) for key, tpl in SURGE_TEMPLATES.items()]


@router.post(
    "/surge-rules/templates/{key}/apply",
    status_code=201,
    response_model=SurgeRuleResponse,
    summary="Create a surge rule from a template",
)
@limiter.limit(settings.rate_limit)
async def apply_surge_template(
    request: Request,
    key: str,
    body: Optional[ApplyTemplateRequest] = None,
    db: AsyncSession = Depends(get_db),
    surge_source: SurgeRuleSource = Depends(get_surge_source),
):
    template = SURGE_TEMPLATES.get(key)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Unknown surge template: {key}")

    overrides = body or ApplyTemplateRequest()
    data = {**template, "is_active": overrides.is_active}
    if overrides.name:
        data["name"] = overrides.name
    if overrides.multiplier is not None:
        data["multiplier"] = overrides.multiplier

    rule = await SurgeRuleRepository(db).create(data)
    await surge_source.invalidate()
    logger.info("Surge template %s applied as rule %s", key, rule.id)
    return _rule_response(rule)


@router.get(
    "/surge-rules/check",
    response_model=SurgeCheckResponse,
    summary="Show which surge rules apply at an instant",
)
async def check_surge(
    at: Optional[datetime] = Query(None, description="ISO-8601 instant; defaults to now"),
    db: AsyncSession = Depends(get_db),
):
    zone = ZoneInfo(settings.civil_timezone)
    instant = at or datetime.now(zone)
    rules = await SurgeRuleRepository(db).list_active()
    result = evaluate(rules, to_civil(instant, zone))
    applied = set(result.applied_rule_ids)
    return SurgeCheckResponse(
        at=instant,
        multiplier=result.multiplier,
        was_capped=result.was_capped,
        is_peak=result.is_peak,
        applied_rules=[_rule_response(r) for r in rules if r.id in applied],
    )


@router.get(
    "/surge-rules/{rule_id}",
    response_model=SurgeRuleResponse,
    summary="Get one surge rule",
)
async def get_surge_rule(rule_id: str, db: AsyncSession = Depends(get_db)):
    rule = await SurgeRuleRepository(db).get(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Surge rule not found")
    return _rule_response(rule)


@router.patch(
    "/surge-rules/{rule_id}",
    response_model=SurgeRuleResponse,
    summary="Update some fields of a surge rule",
)
@limiter.limit(settings.rate_limit)
async def update_surge_rule(
    request: Request,
    rule_id: str,
    body: SurgeRuleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    surge_source: SurgeRuleSource = Depends(get_surge_source),
):
    rule = await SurgeRuleRepository(db).update(rule_id, body.to_changes())
    if rule is None:
        raise HTTPException(status_code=404, detail="Surge rule not found")
    await surge_source.invalidate()
    logger.info("Surge rule %s updated", rule_id)
    return _rule_response(rule)


@router.delete("/surge-rules/{rule_id}", status_code=204, summary="Delete a surge rule")
@limiter.limit(settings.rate_limit)
async def delete_surge_rule(
    request: Request,
    rule_id: str,
    db: AsyncSession = Depends(get_db),
    surge_source: SurgeRuleSource = Depends(get_surge_source),
):
    if not await SurgeRuleRepository(db).delete(rule_id):
        raise HTTPException(status_code=404, detail="Surge rule not found")
    await surge_source.invalidate()
    logger.info("Surge rule %s deleted", rule_id)
    return Response(status_code=204)


# ── Rate cards ────────────────────────────────────────────────────────


@router.get(
    "/rate-cards",
    response_model=list[RateCardResponse],
    summary="List rate cards (fallback cards when none are stored)",
)
async def list_rate_cards(catalog: RateCatalog = Depends(get_rate_catalog)):
    return [_card_response(c) for c in await catalog.list_rate_cards()]


@router.put(
    "/rate-cards/{vehicle_class}",
    response_model=RateCardResponse,
    summary="Create or replace the rate card for a vehicle class",
)
@limiter.limit(settings.rate_limit)
async def upsert_rate_card(
    request: Request,
    vehicle_class: str,
    body: RateCardRequest,
    db: AsyncSession = Depends(get_db),
    catalog: RateCatalog = Depends(get_rate_catalog),
):
    card = check_rate_card(
        RateCard(
            vehicle_class=vehicle_class,
            base_fare=body.base_fare,
            per_mile=body.per_mile,
            per_minute=body.per_minute,
            per_hour=body.per_hour,
            return_discount_percent=body.return_discount_percent,
            capacity=body.capacity,
            name=body.name,
            description=body.description,
            features=tuple(body.features),
            image_url=body.image_url,
        )
    )
    stored = await RateCardRepository(db).upsert(card)
    await catalog.invalidate(vehicle_class)
    logger.info("Rate card for %s updated", vehicle_class)
    return _card_response(stored)


# ── Fixed routes and zones ────────────────────────────────────────────


@router.get(
    "/fixed-routes",
    response_model=list[FixedRouteResponse],
    summary="List fixed routes",
)
async def list_fixed_routes(db: AsyncSession = Depends(get_db)):
    return [_fixed_route_response(r) for r in await FixedRouteRepository(db).list_all()]


@router.put(
    "/fixed-routes",
    response_model=FixedRouteResponse,
    summary="Create or replace the fixed route for an origin, destination and class",
)
@limiter.limit(settings.rate_limit)
async def upsert_fixed_route(
    request: Request,
    body: FixedRouteRequest,
    db: AsyncSession = Depends(get_db),
):
    route = check_fixed_route(
        FixedRoute(
            origin_place_id=body.origin_place_id,
            destination_place_id=body.destination_place_id,
            vehicle_class=body.vehicle_class,
            price=body.price,
            distance_miles=body.distance_miles,
            duration_minutes=body.duration_minutes,
            active=body.is_active,
            name=body.name,
        )
    )
    stored = await FixedRouteRepository(db).upsert(route)
    logger.info(
        "Fixed route %s -> %s (%s) set to %d",
        route.origin_place_id, route.destination_place_id, route.vehicle_class, route.price,
    )
    return _fixed_route_response(stored)


@router.get("/zones", response_model=list[ZoneResponse], summary="List zones")
async def list_zones(db: AsyncSession = Depends(get_db)):
    return [_zone_response(z) for z in await ZoneRepository(db).list_all()]


@router.put(
    "/zones/{zone_id}",
    response_model=ZoneResponse,
    summary="Create or replace a zone and its postcode outward codes",
)
@limiter.limit(settings.rate_limit)
async def upsert_zone(
    request: Request,
    zone_id: str,
    body: ZoneRequest,
    db: AsyncSession = Depends(get_db),
):
    zone = check_zone(
        Zone(
            id=zone_id,
            name=body.name,
            outward_codes=frozenset(c.strip().upper() for c in body.outward_codes),
            active=body.is_active,
        )
    )
    stored = await ZoneRepository(db).upsert(zone)
    logger.info("Zone %s (%s) covers %d outward codes", zone_id, zone.name, len(zone.outward_codes))
    return _zone_response(stored)


@router.get("/zone-routes", response_model=list[ZoneRouteResponse], summary="List zone routes")
async def list_zone_routes(db: AsyncSession = Depends(get_db)):
    return [_zone_route_response(r) for r in await ZoneRouteRepository(db).list_all()]


@router.put(
    "/zone-routes",
    response_model=ZoneRouteResponse,
    summary="Create or replace the price matrix from a zone to a destination",
)
@limiter.limit(settings.rate_limit)
async def upsert_zone_route(
    request: Request,
    body: ZoneRouteRequest,
    db: AsyncSession = Depends(get_db),
):
    route = ZoneRoute(
        zone_id=body.zone_id,
        destination_place_id=body.destination_place_id,
        prices=zone_prices_from_dict(body.prices),
        active=body.is_active,
        name=body.name,
    )
    stored = await ZoneRouteRepository(db).upsert(route)
    logger.info("Zone route %s -> %s updated", route.zone_id, route.destination_place_id)
    return _zone_route_response(stored)
