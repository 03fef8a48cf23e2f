"""
UK postcode helpers used for zone membership.

Zones are defined by outward codes (``BH1``, ``DT11``); a pickup belongs
to a zone when its postcode's outward code is one of the zone's codes.
"""

from __future__ import annotations

import re
from typing import Optional

from .entities import Location

_POSTCODE_RE = re.compile(r"\b([A-Z]{1,2}\d[A-Z\d]?)\s*(\d[A-Z]{2})\b")
_OUTWARD_RE = re.compile(r"[A-Z]{1,2}\d[A-Z\d]?")


def is_outward_code(code: str) -> bool:
    return _OUTWARD_RE.fullmatch(code) is not None


def outward_code(text: Optional[str]) -> Optional[str]:
    """Return the outward code of the first full postcode found in *text*."""
    if not text:
        return None
    found = _POSTCODE_RE.search(text.upper())
    return found.group(1) if found else None


def location_outward_code(location: Location) -> Optional[str]:
    return outward_code(location.postcode) or outward_code(location.address)
