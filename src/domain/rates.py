"""Hardcoded rate cards used when the rate catalog store is unreachable."""

from __future__ import annotations

from typing import Optional

from .entities import RateCard
from .enums import VehicleClass

FALLBACK_RATE_CARDS: dict[str, RateCard] = {
    VehicleClass.STANDARD.value: RateCard(
        vehicle_class=VehicleClass.STANDARD.value,
        base_fare=500,
        per_mile=100,
        per_minute=10,
        per_hour=3500,  # £35/hour
        capacity=4,
        name="Standard Sedan",
        description="Comfortable sedan for up to 4 passengers",
        features=("Air Conditioning", "Phone Charger"),
    ),
    VehicleClass.EXECUTIVE.value: RateCard(
        vehicle_class=VehicleClass.EXECUTIVE.value,
        base_fare=800,
        per_mile=150,
        per_minute=15,
        per_hour=5000,  # £50/hour
        capacity=4,
        name="Executive Sedan",
        description="Premium sedan with luxury amenities",
        features=("Air Conditioning", "WiFi", "Premium Amenities"),
    ),
    VehicleClass.MINIBUS.value: RateCard(
        vehicle_class=VehicleClass.MINIBUS.value,
        base_fare=1000,
        per_mile=120,
        per_minute=12,
        per_hour=7000,  # £70/hour
        capacity=8,
        name="Minibus",
        description="Spacious minibus for up to 8 passengers",
        features=("Air Conditioning", "WiFi", "Extra Luggage Space"),
    ),
}


def fallback_rate_card(vehicle_class: str) -> Optional[RateCard]:
    return FALLBACK_RATE_CARDS.get(vehicle_class)
