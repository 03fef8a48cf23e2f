"""
Quote Service
=============

Orchestrates one quote:

  rate card -> capacity check -> mode selection -> surge rules ->
  corporate discount -> civil pickup instant -> charge composition

``quote_all_classes`` prices every catalog class that seats the party
("compare mode").  Surge rules, the corporate discount and the oracle
result are fetched once and shared across classes; fixed routes are
still looked up per class because their key includes the class.  A
class that cannot be priced is left out; the comparison only fails when
no class is left, with the oracle failure if one occurred.

Surge rules are authored in local civil time, so aware pickup instants
are converted to ``civil_timezone`` before evaluation.  Naive instants
are taken as already civil.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from src.domain.entities import Location, Quote, QuoteRequest, RateCard, RouteMetrics
from src.domain.errors import DistanceOracleFailure, InvalidQuoteRequest, PriceUnavailable
from src.domain.pricing import PricingEngine
from src.infrastructure.distance_oracle import DistanceOracle
from src.services.catalog import RateCatalog, SurgeRuleSource
from src.services.discounts import CorporateDiscountResolver
from src.services.mode_selector import select_mode

logger = logging.getLogger(__name__)


def to_civil(instant: datetime, civil_timezone: ZoneInfo) -> datetime:
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(civil_timezone)


class _MemoisedOracle:
    """Measures the route at most once per compare-mode request."""

    def __init__(self, oracle: DistanceOracle):
        self.oracle = oracle
        self._metrics: Optional[RouteMetrics] = None
        self._failure: Optional[DistanceOracleFailure] = None

    async def route_metrics(
        self, origin: Location, destination: Location, waypoints: Sequence[Location] = ()
    ) -> RouteMetrics:
        if self._failure is not None:
            raise self._failure
        if self._metrics is None:
            try:
                self._metrics = await self.oracle.route_metrics(origin, destination, waypoints)
            except DistanceOracleFailure as exc:
                self._failure = exc
                raise
        return self._metrics


class QuoteService:
    def __init__(
        self,
        *,
        rate_catalog: RateCatalog,
        surge_source: SurgeRuleSource,
        discount_resolver: CorporateDiscountResolver,
        fixed_routes,
        zones,
        zone_routes,
        distance_oracle: DistanceOracle,
        engine: Optional[PricingEngine] = None,
        civil_timezone: str = "Europe/London",
    ):
        self.rate_catalog = rate_catalog
        self.surge_source = surge_source
        self.discount_resolver = discount_resolver
        self.fixed_routes = fixed_routes
        self.zones = zones
        self.zone_routes = zone_routes
        self.distance_oracle = distance_oracle
        self.engine = engine or PricingEngine()
        self.civil_timezone = ZoneInfo(civil_timezone)

    async def quote(self, request: QuoteRequest) -> Quote:
        rate_card = await self.rate_catalog.get_rate_card(request.vehicle_class)
        if request.passengers > rate_card.capacity:
            raise InvalidQuoteRequest(
                f"{rate_card.name or rate_card.vehicle_class} seats at most "
                f"{rate_card.capacity} passengers",
                {"vehicle_class": rate_card.vehicle_class, "capacity": rate_card.capacity},
            )

        rules = await self.surge_source.active_rules()
        discount = await self.discount_resolver.resolve(request.corporate_account_id)
        return await self._price(request, rate_card, rules, discount, self.distance_oracle)

    async def quote_all_classes(self, request: QuoteRequest) -> list[Quote]:
        cards = [
            c for c in await self.rate_catalog.list_rate_cards()
            if c.capacity >= request.passengers
        ]
        if not cards:
            raise InvalidQuoteRequest(
                f"No vehicle class seats {request.passengers} passengers",
                {"passengers": request.passengers},
            )

        rules = await self.surge_source.active_rules()
        discount = await self.discount_resolver.resolve(request.corporate_account_id)
        oracle = _MemoisedOracle(self.distance_oracle)

        quotes = []
        oracle_failure: Optional[DistanceOracleFailure] = None
        for card in cards:
            try:
                priced = replace(request, vehicle_class=card.vehicle_class)
                quotes.append(await self._price(priced, card, rules, discount, oracle))
            except PriceUnavailable as exc:
                logger.info("Skipping %s in comparison: %s", card.vehicle_class, exc.message)
            except DistanceOracleFailure as exc:
                # Fixed and zone prices for other classes need no route measurement
                logger.warning("Skipping %s in comparison: %s", card.vehicle_class, exc.message)
                oracle_failure = exc
        if not quotes:
            if oracle_failure is not None:
                raise oracle_failure
            raise PriceUnavailable("No vehicle class can price this journey")
        return quotes

    async def _price(
        self,
        request: QuoteRequest,
        rate_card: RateCard,
        rules,
        discount: Optional[int],
        oracle: DistanceOracle,
    ) -> Quote:
        selection = await select_mode(
            request,
            fixed_route_lookup=self.fixed_routes.find,
            zone_lookup=self.zones.zone_for_location,
            zone_route_lookup=self.zone_routes.find,
            distance_oracle=oracle,
        )
        breakdown, surge = self.engine.calculate_price(
            selection,
            rate_card,
            rules,
            to_civil(request.pickup_instant, self.civil_timezone),
            corporate_discount_percent=discount,
            is_return_journey=request.is_return_journey,
        )
        logger.info(
            "Quoted %s %s: %s (surge %.3fx, rules=%s)",
            rate_card.vehicle_class,
            selection.mode.value,
            breakdown.display_total,
            surge.multiplier,
            list(surge.applied_rule_ids),
        )
        return Quote(
            vehicle_class=rate_card.vehicle_class,
            breakdown=breakdown,
            selection=selection,
            rate_card=rate_card,
            surge=surge,
        )
