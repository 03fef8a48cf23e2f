"""
Quote endpoints
===============

POST /api/v1/quotes          -- price one journey for one vehicle class
POST /api/v1/quotes/compare  -- price the journey for every class that fits

Quotes are not stored.  The quote id is a correlation token for logs and
clients only; ``expires_at`` tells the client how long to show the price.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_quote_service
from src.api.middleware import limiter
from src.api.schemas import (
    ErrorResponse,
    QuoteComparisonResponse,
    QuoteCreateRequest,
    QuoteResponse,
)
from src.config import settings
from src.domain.entities import Quote
from src.services.quoting import QuoteService

router = APIRouter(prefix="/quotes", tags=["quotes"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    422: {"model": ErrorResponse, "description": "No price available for this journey"},
    503: {"model": ErrorResponse, "description": "Route could not be measured right now"},
}


def _respond(quote: Quote, body: QuoteCreateRequest, created_at: datetime) -> QuoteResponse:
    return QuoteResponse.from_quote(
        quote,
        request=body,
        quote_id=str(uuid.uuid4()),
        created_at=created_at,
        expires_at=created_at + timedelta(minutes=settings.quote_validity_minutes),
    )


@router.post(
    "",
    response_model=QuoteResponse,
    summary="Quote a journey",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def create_quote(
    request: Request,
    body: QuoteCreateRequest,
    service: QuoteService = Depends(get_quote_service),
):
    quote = await service.quote(body.to_domain())
    return _respond(quote, body, datetime.now(timezone.utc))


@router.post(
    "/compare",
    response_model=QuoteComparisonResponse,
    summary="Quote a journey for every vehicle class",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def compare_quotes(
    request: Request,
    body: QuoteCreateRequest,
    service: QuoteService = Depends(get_quote_service),
):
    quotes = await service.quote_all_classes(body.to_domain())
    created_at = datetime.now(timezone.utc)
    return QuoteComparisonResponse(quotes=[_respond(q, body, created_at) for q in quotes])
