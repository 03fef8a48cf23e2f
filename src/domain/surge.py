"""
Surge Rule Evaluator
====================

A rule matches the pickup instant when its predicate holds:

* ``specific_dates`` -- date is one of the listed dates
* ``date_range``     -- start_date <= date <= end_date
* ``day_of_week``    -- weekday listed, AND inside the optional date range,
                        AND inside the optional time window
* ``time_of_day``    -- start_time <= time <= end_time, AND weekday listed
                        when a weekday set is given

Combination
-----------
  multiplier = min(MAX_SURGE_MULTIPLIER, product(matching multipliers))

Multipliers stack by multiplication, so two 1.5x and 1.25x rules give
1.875x.  The cap applies to the full product, never per rule.

The evaluator never reads a clock and never converts timezones: the
caller passes an instant already expressed in the civil time the rules
were authored in.  Seconds are ignored, matching the HH:MM granularity of
rule windows.

Complexity: O(R) per evaluation for R rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Optional

from .entities import (
    DateRangeRule,
    DayOfWeekRule,
    SpecificDatesRule,
    SurgeResult,
    SurgeRule,
    TimeOfDayRule,
)
from .enums import WEEKDAYS, Weekday

MAX_SURGE_MULTIPLIER = 3.0
MIN_SURGE_MULTIPLIER = 1.0


@dataclass(frozen=True)
class CivilInstant:
    day: date
    time_of_day: time
    weekday: Weekday

    @classmethod
    def from_datetime(cls, instant: datetime) -> "CivilInstant":
        return cls(
            day=instant.date(),
            time_of_day=instant.time().replace(second=0, microsecond=0, tzinfo=None),
            weekday=WEEKDAYS[instant.weekday()],
        )


def _within(value, start, end) -> bool:
    return start <= value <= end


def _optional_window(value, start: Optional[object], end: Optional[object]) -> bool:
    # A window narrows the rule only when both bounds are present.
    if start is None or end is None:
        return True
    return _within(value, start, end)


def rule_matches(rule: SurgeRule, at: CivilInstant) -> bool:
    match rule:
        case SpecificDatesRule():
            return at.day in rule.dates
        case DateRangeRule():
            return _within(at.day, rule.start_date, rule.end_date)
        case DayOfWeekRule():
            return (
                at.weekday in rule.days
                and _optional_window(at.day, rule.start_date, rule.end_date)
                and _optional_window(at.time_of_day, rule.start_time, rule.end_time)
            )
        case TimeOfDayRule():
            return _within(at.time_of_day, rule.start_time, rule.end_time) and (
                not rule.days or at.weekday in rule.days
            )
        case _:
            raise TypeError(f"Unsupported surge rule: {type(rule).__name__}")


def evaluate(rules: Iterable[SurgeRule], instant: datetime) -> SurgeResult:
    """Combine every active rule that matches ``instant``."""
    at = CivilInstant.from_datetime(instant)

    applied: list[str] = []
    product = 1.0
    for rule in rules:
        if not rule.active or not rule_matches(rule, at):
            continue
        applied.append(rule.id)
        product *= rule.multiplier

    was_capped = product > MAX_SURGE_MULTIPLIER
    multiplier = min(MAX_SURGE_MULTIPLIER, max(MIN_SURGE_MULTIPLIER, product))
    return SurgeResult(
        multiplier=multiplier,
        applied_rule_ids=tuple(applied),
        was_capped=was_capped,
    )
