"""
Pricing error taxonomy.

``InvalidQuoteRequest``          malformed / out-of-range request fields.
``LookupFailure``                a reference-data store is unreachable;
                                 always recovered locally by the caller.
``DistanceOracleFailure``        the route could not be measured right now.
``PriceUnavailable``             no price exists for this journey.
``ConfigurationInvariantViolation``  bad reference data at the point of entry.
"""

from __future__ import annotations

from typing import Any


class PricingError(Exception):
    code = "PRICING_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidQuoteRequest(PricingError):
    code = "VALIDATION_ERROR"


class LookupFailure(PricingError):
    code = "LOOKUP_FAILURE"


class DistanceOracleFailure(PricingError):
    """Raised when the distance provider is down, times out or errors."""

    code = "ROUTE_UNAVAILABLE"


class PriceUnavailable(PricingError):
    """Raised when the journey cannot be priced at all (not serviceable)."""

    code = "PRICE_UNAVAILABLE"


class ConfigurationInvariantViolation(PricingError):
    code = "CONFIGURATION_INVALID"
