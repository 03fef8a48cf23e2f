"""
Read-through caches over the rate card and surge rule stores.

Rate cards
----------
Cached for ``rate_cache_ttl_seconds``.  When the store is unreachable or
has no row for a class, the hardcoded fallback card is used (and not
cached, so the real card is picked up as soon as the store recovers).
A class unknown to both raises ``PriceUnavailable``.

Surge rules
-----------
Active rules are cached for ``surge_cache_ttl_seconds``.  A store failure
yields an empty rule list: the quote proceeds at 1.0x rather than failing.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.domain.entities import RateCard, SurgeRule
from src.domain.errors import ConfigurationInvariantViolation, LookupFailure, PriceUnavailable
from src.domain.rates import FALLBACK_RATE_CARDS, fallback_rate_card
from src.infrastructure.cache import Cache
from src.infrastructure.codecs import (
    rate_card_from_dict,
    rate_card_to_dict,
    surge_rule_from_dict,
    surge_rule_to_dict,
)

logger = logging.getLogger(__name__)

RATE_CARDS_KEY = "rate_cards"
ACTIVE_SURGE_RULES_KEY = "surge_rules:active"


def rate_card_key(vehicle_class: str) -> str:
    return f"rate_card:{vehicle_class}"


class RateCatalog:
    def __init__(self, repository, cache: Cache, ttl_seconds: int = 300):
        self.repository = repository
        self.cache = cache
        self.ttl = ttl_seconds

    async def get_rate_card(self, vehicle_class: str) -> RateCard:
        key = rate_card_key(vehicle_class)
        cached = await self.cache.get(key)
        if cached is not None:
            return rate_card_from_dict(cached)

        card: Optional[RateCard] = None
        try:
            card = await self.repository.get(vehicle_class)
        except LookupFailure as exc:
            logger.warning("Rate store unavailable for %s, using fallback: %s", vehicle_class, exc)
        else:
            if card is None:
                logger.warning("No stored rate card for %s, using fallback", vehicle_class)
            else:
                await self.cache.put(key, rate_card_to_dict(card), self.ttl)
                return card

        card = fallback_rate_card(vehicle_class)
        if card is None:
            raise PriceUnavailable(
                f"Unknown vehicle class: {vehicle_class}", {"vehicle_class": vehicle_class}
            )
        return card

    async def list_rate_cards(self) -> list[RateCard]:
        cached = await self.cache.get(RATE_CARDS_KEY)
        if cached is not None:
            return [rate_card_from_dict(d) for d in cached]

        try:
            cards = await self.repository.list_all()
        except LookupFailure as exc:
            logger.warning("Rate store unavailable, listing fallback cards: %s", exc)
            return list(FALLBACK_RATE_CARDS.values())
        if not cards:
            return list(FALLBACK_RATE_CARDS.values())

        await self._store(cards)
        return cards

    async def refresh(self) -> int:
        """Reload every card from the store into the cache."""
        cards = await self.repository.list_all()
        await self._store(cards)
        return len(cards)

    async def invalidate(self, vehicle_class: Optional[str] = None) -> None:
        keys = [RATE_CARDS_KEY]
        if vehicle_class is not None:
            keys.append(rate_card_key(vehicle_class))
        await self.cache.invalidate(*keys)

    async def _store(self, cards: list[RateCard]) -> None:
        encoded = [rate_card_to_dict(c) for c in cards]
        await self.cache.put(RATE_CARDS_KEY, encoded, self.ttl)
        for data in encoded:
            await self.cache.put(rate_card_key(data["vehicle_class"]), data, self.ttl)


class SurgeRuleSource:
    def __init__(self, repository, cache: Cache, ttl_seconds: int = 60):
        self.repository = repository
        self.cache = cache
        self.ttl = ttl_seconds

    async def active_rules(self) -> list[SurgeRule]:
        cached = await self.cache.get(ACTIVE_SURGE_RULES_KEY)
        if cached is not None:
            return self._decode(cached)

        try:
            rules = await self.repository.list_active()
        except LookupFailure as exc:
            logger.warning("Surge rule store unavailable, pricing without surge: %s", exc)
            return []

        await self.cache.put(
            ACTIVE_SURGE_RULES_KEY, [surge_rule_to_dict(r) for r in rules], self.ttl
        )
        return rules

    async def refresh(self) -> int:
        rules = await self.repository.list_active()
        await self.cache.put(
            ACTIVE_SURGE_RULES_KEY, [surge_rule_to_dict(r) for r in rules], self.ttl
        )
        return len(rules)

    async def invalidate(self) -> None:
        await self.cache.invalidate(ACTIVE_SURGE_RULES_KEY)

    @staticmethod
    def _decode(entries: list[dict]) -> list[SurgeRule]:
        rules = []
        for data in entries:
            try:
                rules.append(surge_rule_from_dict(data))
            except ConfigurationInvariantViolation as exc:
                logger.warning("Dropping cached surge rule %s: %s", data.get("id"), exc.message)
        return rules
