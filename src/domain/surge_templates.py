"""Pre-defined surge rules administrators can apply with one click."""

SURGE_TEMPLATES: dict[str, dict] = {
    "uk-bank-holidays-2025": {
        "name": "UK Bank Holidays 2025",
        "rule_type": "specific_dates",
        "multiplier": 1.5,
        "dates": [
            "2025-01-01",  # New Year's Day
            "2025-04-18",  # Good Friday
            "2025-04-21",  # Easter Monday
            "2025-05-05",  # Early May Bank Holiday
            "2025-05-26",  # Spring Bank Holiday
            "2025-08-25",  # Summer Bank Holiday
            "2025-12-25",  # Christmas Day
            "2025-12-26",  # Boxing Day
        ],
        "description": "UK Bank Holidays for 2025",
    },
    "uk-bank-holidays-2026": {
        "name": "UK Bank Holidays 2026",
        "rule_type": "specific_dates",
        "multiplier": 1.5,
        "dates": [
            "2026-01-01",
            "2026-04-03",
            "2026-04-06",
            "2026-05-04",
            "2026-05-25",
            "2026-08-31",
            "2026-12-25",
            "2026-12-28",  # Boxing Day (substitute)
        ],
        "description": "UK Bank Holidays for 2026",
    },
    "christmas-period": {
        "name": "Christmas & New Year Period",
        "rule_type": "date_range",
        "multiplier": 1.5,
        "start_date": "2025-12-20",
        "end_date": "2026-01-03",
        "description": "Peak Christmas and New Year period",
    },
    "dorset-summer-2025": {
        "name": "Dorset School Summer Holiday 2025",
        "rule_type": "date_range",
        "multiplier": 1.25,
        "start_date": "2025-07-23",
        "end_date": "2025-09-02",
        "description": "Dorset school summer holidays 2025",
    },
    "summer-weekends": {
        "name": "Summer Weekend Peak",
        "rule_type": "day_of_week",
        "multiplier": 1.25,
        "days_of_week": ["friday", "saturday", "sunday"],
        "start_date": "2025-07-01",
        "end_date": "2025-08-31",
        "description": "Weekend peak pricing during summer months",
    },
    "weekend-evenings": {
        "name": "Weekend Evening Peak",
        "rule_type": "day_of_week",
        "multiplier": 1.25,
        "days_of_week": ["friday", "saturday"],
        "start_time": "18:00",
        "end_time": "23:59",
        "description": "Evening peak on Friday and Saturday nights",
    },
}
