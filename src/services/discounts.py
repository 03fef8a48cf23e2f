"""Corporate discount lookup.  Any doubt about the account means no discount."""

from __future__ import annotations

import logging
from typing import Optional

from src.domain.enums import AccountStatus
from src.domain.errors import LookupFailure

logger = logging.getLogger(__name__)

MAX_CORPORATE_DISCOUNT_PERCENT = 50


class CorporateDiscountResolver:
    def __init__(self, repository):
        self.repository = repository

    async def resolve(self, account_id: Optional[str]) -> Optional[int]:
        if not account_id:
            return None

        try:
            account = await self.repository.get(account_id)
        except LookupFailure as exc:
            logger.warning("Corporate account lookup failed for %s: %s", account_id, exc)
            return None

        if account is None:
            logger.info("Corporate account %s not found", account_id)
            return None
        if account.status != AccountStatus.ACTIVE:
            logger.info("Corporate account %s is %s, no discount", account_id, account.status.value)
            return None

        percent = account.discount_percent
        if not percent:
            return None
        if not 0 < percent <= MAX_CORPORATE_DISCOUNT_PERCENT:
            logger.warning("Corporate account %s has out-of-range discount %s", account_id, percent)
            return None
        return percent
