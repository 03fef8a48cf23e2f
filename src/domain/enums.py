"""Domain enumerations."""

import enum


class PricingMode(str, enum.Enum):
    FIXED = "fixed"
    ZONE = "zone"
    VARIABLE = "variable"
    HOURLY = "hourly"


class JourneyType(str, enum.Enum):
    ONE_WAY = "one-way"
    BY_THE_HOUR = "by-the-hour"


class VehicleClass(str, enum.Enum):
    STANDARD = "standard"
    EXECUTIVE = "executive"
    MINIBUS = "minibus"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CLOSED = "closed"


class SurgeRuleType(str, enum.Enum):
    SPECIFIC_DATES = "specific_dates"
    DATE_RANGE = "date_range"
    DAY_OF_WEEK = "day_of_week"
    TIME_OF_DAY = "time_of_day"


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# Indexed by ``date.weekday()`` (Monday == 0)
WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)
