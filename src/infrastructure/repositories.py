"""
Repository Pattern -- abstracts DB access so pricing logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and returns
domain entities, never ORM rows.  Read paths used while quoting convert
driver errors into ``LookupFailure`` so callers can recover locally.
"""

from __future__ import annotations

import functools
import logging
import uuid
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .codecs import (
    parse_date,
    rate_card_to_dict,
    surge_rule_from_dict,
    surge_rule_to_dict,
    zone_price_from_dict,
    zone_prices_to_dict,
)
from .models import (
    CorporateAccountModel,
    FixedRouteModel,
    SurgeRuleModel,
    VehicleRateModel,
    ZoneModel,
    ZonePostcodeModel,
    ZoneRouteModel,
)
from src.domain.entities import (
    CorporateAccount,
    FixedRoute,
    Location,
    RateCard,
    SurgeRule,
    Zone,
    ZonePrice,
    ZoneRoute,
)
from src.domain.enums import AccountStatus
from src.domain.errors import ConfigurationInvariantViolation, LookupFailure
from src.domain.postcodes import location_outward_code

logger = logging.getLogger(__name__)


def _store_read(method):
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            raise LookupFailure(
                f"{type(self).__name__}.{method.__name__} failed",
                {"error": str(exc)},
            ) from exc

    return wrapper


# ── Rate cards ────────────────────────────────────────────────────────


def _rate_card(row: VehicleRateModel) -> RateCard:
    return RateCard(
        vehicle_class=row.vehicle_class,
        base_fare=row.base_fare,
        per_mile=row.per_mile,
        per_minute=row.per_minute,
        per_hour=row.per_hour,
        return_discount_percent=row.return_discount_percent or 0,
        capacity=row.capacity,
        name=row.name or "",
        description=row.description or "",
        features=tuple(row.features or ()),
        image_url=row.image_url or "",
    )


class RateCardRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_read
    async def get(self, vehicle_class: str) -> Optional[RateCard]:
        row = await self.session.get(VehicleRateModel, vehicle_class)
        return _rate_card(row) if row is not None else None

    @_store_read
    async def list_all(self) -> list[RateCard]:
        result = await self.session.execute(
            select(VehicleRateModel).order_by(VehicleRateModel.base_fare)
        )
        return [_rate_card(row) for row in result.scalars().all()]

    async def upsert(self, card: RateCard) -> RateCard:
        values = rate_card_to_dict(card)
        row = await self.session.get(VehicleRateModel, card.vehicle_class)
        if row is None:
            row = VehicleRateModel(**values)
            self.session.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await self.session.flush()
        return _rate_card(row)


# ── Surge rules ───────────────────────────────────────────────────────


def _surge_row_dict(row: SurgeRuleModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "rule_type": row.rule_type,
        "multiplier": row.multiplier,
        "is_active": row.is_active,
        "description": row.description,
        "dates": row.dates,
        "start_date": row.start_date,
        "end_date": row.end_date,
        "days_of_week": row.days_of_week,
        "start_time": row.start_time,
        "end_time": row.end_time,
    }


def _surge_columns(rule: SurgeRule) -> dict[str, Any]:
    stored = surge_rule_to_dict(rule)
    stored["start_date"] = parse_date(stored["start_date"], "start_date")
    stored["end_date"] = parse_date(stored["end_date"], "end_date")
    return stored


class SurgeRuleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _decode(self, rows) -> list[SurgeRule]:
        rules: list[SurgeRule] = []
        for row in rows:
            try:
                rules.append(surge_rule_from_dict(_surge_row_dict(row)))
            except ConfigurationInvariantViolation as exc:
                logger.warning("Skipping invalid surge rule %s: %s", row.id, exc.message)
        return rules

    @_store_read
    async def list_active(self) -> list[SurgeRule]:
        result = await self.session.execute(
            select(SurgeRuleModel)
            .where(SurgeRuleModel.is_active.is_(True))
            .order_by(SurgeRuleModel.created_at)
        )
        return self._decode(result.scalars().all())

    @_store_read
    async def list_all(self) -> list[SurgeRule]:
        result = await self.session.execute(
            select(SurgeRuleModel).order_by(SurgeRuleModel.created_at)
        )
        return self._decode(result.scalars().all())

    async def get(self, rule_id: str) -> Optional[SurgeRule]:
        row = await self.session.get(SurgeRuleModel, rule_id)
        return surge_rule_from_dict(_surge_row_dict(row)) if row is not None else None

    async def create(self, data: dict[str, Any]) -> SurgeRule:
        """Validate ``data`` and persist it as a new rule."""
        rule = surge_rule_from_dict({**data, "id": data.get("id") or str(uuid.uuid4())})
        self.session.add(SurgeRuleModel(**_surge_columns(rule)))
        await self.session.flush()
        return rule

    async def update(self, rule_id: str, changes: dict[str, Any]) -> Optional[SurgeRule]:
        """Merge ``changes`` into the stored rule; the merged rule is validated as a whole."""
        row = await self.session.get(SurgeRuleModel, rule_id)
        if row is None:
            return None
        rule = surge_rule_from_dict({**_surge_row_dict(row), **changes, "id": row.id})
        columns = _surge_columns(rule)
        del columns["id"]
        for key, value in columns.items():
            setattr(row, key, value)
        await self.session.flush()
        return rule

    async def delete(self, rule_id: str) -> bool:
        result = await self.session.execute(
            delete(SurgeRuleModel).where(SurgeRuleModel.id == rule_id)
        )
        return result.rowcount > 0


# ── Route overrides ───────────────────────────────────────────────────


def _fixed_route(row: FixedRouteModel) -> FixedRoute:
    return FixedRoute(
        origin_place_id=row.origin_place_id,
        destination_place_id=row.destination_place_id,
        vehicle_class=row.vehicle_class,
        price=row.price,
        distance_miles=row.distance_miles,
        duration_minutes=row.duration_minutes,
        active=row.is_active,
        name=row.name or "",
    )


class FixedRouteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _row(
        self, origin_place_id: str, destination_place_id: str, vehicle_class: str
    ) -> Optional[FixedRouteModel]:
        result = await self.session.execute(
            select(FixedRouteModel).where(
                FixedRouteModel.origin_place_id == origin_place_id,
                FixedRouteModel.destination_place_id == destination_place_id,
                FixedRouteModel.vehicle_class == vehicle_class,
            )
        )
        return result.scalar_one_or_none()

    @_store_read
    async def find(
        self, origin_place_id: str, destination_place_id: str, vehicle_class: str
    ) -> Optional[FixedRoute]:
        row = await self._row(origin_place_id, destination_place_id, vehicle_class)
        return _fixed_route(row) if row is not None else None

    @_store_read
    async def list_all(self) -> list[FixedRoute]:
        result = await self.session.execute(
            select(FixedRouteModel).order_by(
                FixedRouteModel.origin_place_id,
                FixedRouteModel.destination_place_id,
                FixedRouteModel.vehicle_class,
            )
        )
        return [_fixed_route(row) for row in result.scalars().all()]

    async def upsert(self, route: FixedRoute) -> FixedRoute:
        row = await self._row(
            route.origin_place_id, route.destination_place_id, route.vehicle_class
        )
        if row is None:
            row = FixedRouteModel(
                origin_place_id=route.origin_place_id,
                destination_place_id=route.destination_place_id,
                vehicle_class=route.vehicle_class,
            )
            self.session.add(row)
        row.name = route.name
        row.price = route.price
        row.distance_miles = route.distance_miles
        row.duration_minutes = route.duration_minutes
        row.is_active = route.active
        await self.session.flush()
        return route


class ZoneRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _codes(self, zone_id: str) -> frozenset[str]:
        codes = await self.session.execute(
            select(ZonePostcodeModel.outward_code).where(ZonePostcodeModel.zone_id == zone_id)
        )
        return frozenset(codes.scalars().all())

    @_store_read
    async def zone_for_outward_code(self, code: str) -> Optional[Zone]:
        result = await self.session.execute(
            select(ZoneModel)
            .join(ZonePostcodeModel, ZonePostcodeModel.zone_id == ZoneModel.id)
            .where(ZonePostcodeModel.outward_code == code.upper())
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return Zone(
            id=row.id,
            name=row.name,
            outward_codes=await self._codes(row.id),
            active=row.is_active,
        )

    async def zone_for_location(self, location: Location) -> Optional[Zone]:
        code = location_outward_code(location)
        if code is None:
            return None
        return await self.zone_for_outward_code(code)

    @_store_read
    async def list_all(self) -> list[Zone]:
        result = await self.session.execute(select(ZoneModel).order_by(ZoneModel.name))
        return [
            Zone(id=row.id, name=row.name, outward_codes=await self._codes(row.id), active=row.is_active)
            for row in result.scalars().all()
        ]

    async def upsert(self, zone: Zone) -> Zone:
        """Create or replace a zone; its outward codes replace the stored set."""
        if zone.outward_codes:
            taken = await self.session.execute(
                select(ZonePostcodeModel).where(
                    ZonePostcodeModel.outward_code.in_(sorted(zone.outward_codes)),
                    ZonePostcodeModel.zone_id != zone.id,
                )
            )
            clashes = sorted(row.outward_code for row in taken.scalars().all())
            if clashes:
                raise ConfigurationInvariantViolation(
                    "Outward codes already belong to another zone", {"outward_codes": clashes}
                )

        row = await self.session.get(ZoneModel, zone.id)
        if row is None:
            row = ZoneModel(id=zone.id)
            self.session.add(row)
        row.name = zone.name
        row.is_active = zone.active
        await self.session.flush()

        await self.session.execute(
            delete(ZonePostcodeModel).where(ZonePostcodeModel.zone_id == zone.id)
        )
        self.session.add_all(
            ZonePostcodeModel(outward_code=code, zone_id=zone.id)
            for code in sorted(zone.outward_codes)
        )
        await self.session.flush()
        return zone


def _zone_prices(row: ZoneRouteModel) -> dict[str, ZonePrice]:
    raw = row.prices if isinstance(row.prices, dict) else {}
    prices: dict[str, ZonePrice] = {}
    for vehicle_class, entry in raw.items():
        try:
            prices[vehicle_class] = zone_price_from_dict(vehicle_class, entry)
        except ConfigurationInvariantViolation as exc:
            logger.warning("Skipping zone route %s price: %s", row.id, exc.message)
    return prices


def _zone_route(row: ZoneRouteModel) -> ZoneRoute:
    return ZoneRoute(
        zone_id=row.zone_id,
        destination_place_id=row.destination_place_id,
        prices=_zone_prices(row),
        active=row.is_active,
        name=row.name or "",
    )


class ZoneRouteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _row(self, zone_id: str, destination_place_id: str) -> Optional[ZoneRouteModel]:
        result = await self.session.execute(
            select(ZoneRouteModel).where(
                ZoneRouteModel.zone_id == zone_id,
                ZoneRouteModel.destination_place_id == destination_place_id,
            )
        )
        return result.scalar_one_or_none()

    @_store_read
    async def find(self, zone_id: str, destination_place_id: str) -> Optional[ZoneRoute]:
        row = await self._row(zone_id, destination_place_id)
        return _zone_route(row) if row is not None else None

    @_store_read
    async def list_all(self) -> list[ZoneRoute]:
        result = await self.session.execute(
            select(ZoneRouteModel).order_by(
                ZoneRouteModel.zone_id, ZoneRouteModel.destination_place_id
            )
        )
        return [_zone_route(row) for row in result.scalars().all()]

    async def upsert(self, route: ZoneRoute) -> ZoneRoute:
        if await self.session.get(ZoneModel, route.zone_id) is None:
            raise ConfigurationInvariantViolation(
                f"Unknown zone: {route.zone_id}", {"zone_id": route.zone_id}
            )
        row = await self._row(route.zone_id, route.destination_place_id)
        if row is None:
            row = ZoneRouteModel(
                zone_id=route.zone_id, destination_place_id=route.destination_place_id
            )
            self.session.add(row)
        row.name = route.name
        row.prices = zone_prices_to_dict(route.prices)
        row.is_active = route.active
        await self.session.flush()
        return route


class CorporateAccountRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @_store_read
    async def get(self, account_id: str) -> Optional[CorporateAccount]:
        row = await self.session.get(CorporateAccountModel, account_id)
        if row is None:
            return None
        try:
            status = AccountStatus(row.status)
        except ValueError:
            logger.warning("Corporate account %s has unknown status %r", row.id, row.status)
            status = AccountStatus.SUSPENDED
        return CorporateAccount(
            id=row.id,
            name=row.company_name,
            status=status,
            discount_percent=row.discount_percent,
        )
