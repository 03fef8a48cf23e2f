"""FastAPI dependency injection helpers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.pricing import PricingEngine
from src.infrastructure.cache import Cache
from src.infrastructure.database import async_session_factory
from src.infrastructure.distance_oracle import DistanceOracle
from src.infrastructure.repositories import (
    CorporateAccountRepository,
    FixedRouteRepository,
    RateCardRepository,
    SurgeRuleRepository,
    ZoneRepository,
    ZoneRouteRepository,
)
from src.services.catalog import RateCatalog, SurgeRuleSource
from src.services.discounts import CorporateDiscountResolver
from src.services.quoting import QuoteService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_distance_oracle(request: Request) -> DistanceOracle:
    return request.app.state.distance_oracle


def get_rate_catalog(
    db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)
) -> RateCatalog:
    return RateCatalog(RateCardRepository(db), cache, settings.rate_cache_ttl_seconds)


def get_surge_source(
    db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)
) -> SurgeRuleSource:
    return SurgeRuleSource(SurgeRuleRepository(db), cache, settings.surge_cache_ttl_seconds)


def get_pricing_engine() -> PricingEngine:
    return PricingEngine(
        currency=settings.currency,
        surge_applies_to_route_prices=settings.surge_applies_to_route_prices,
    )


def get_quote_service(
    db: AsyncSession = Depends(get_db),
    rate_catalog: RateCatalog = Depends(get_rate_catalog),
    surge_source: SurgeRuleSource = Depends(get_surge_source),
    oracle: DistanceOracle = Depends(get_distance_oracle),
    engine: PricingEngine = Depends(get_pricing_engine),
) -> QuoteService:
    return QuoteService(
        rate_catalog=rate_catalog,
        surge_source=surge_source,
        discount_resolver=CorporateDiscountResolver(CorporateAccountRepository(db)),
        fixed_routes=FixedRouteRepository(db),
        zones=ZoneRepository(db),
        zone_routes=ZoneRouteRepository(db),
        distance_oracle=oracle,
        engine=engine,
        civil_timezone=settings.civil_timezone,
    )
