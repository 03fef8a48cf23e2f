"""
Seed script -- populates the database with sample pricing data.

Run after migrations:
    python seed.py

Creates:
  - 3 rate cards (standard, executive, minibus)
  - 3 fixed routes (Bournemouth station -> Heathrow / Gatwick)
  - 1 zone (Bournemouth town centre) with a Heathrow zone route
  - 2 surge rules (Christmas period, weekend evenings) from the templates
  - 2 corporate accounts (one active, one suspended)
"""

import asyncio
import uuid

from sqlalchemy import text

from src.domain.rates import FALLBACK_RATE_CARDS
from src.domain.surge_templates import SURGE_TEMPLATES
from src.infrastructure.codecs import rate_card_to_dict
from src.infrastructure.database import async_session_factory, dispose_engine
from src.infrastructure.models import (
    CorporateAccountModel,
    FixedRouteModel,
    VehicleRateModel,
    ZoneModel,
    ZonePostcodeModel,
    ZoneRouteModel,
)
from src.infrastructure.repositories import SurgeRuleRepository

BOURNEMOUTH_STATION = "ChIJ-bournemouth-station"
HEATHROW = "ChIJ-heathrow-airport"
GATWICK = "ChIJ-gatwick-airport"

FIXED_ROUTES = [
    # (origin, destination, class, name, price, miles, minutes)
    (BOURNEMOUTH_STATION, HEATHROW, "standard", "Bournemouth Station to Heathrow", 15000, 95.2, 110),
    (BOURNEMOUTH_STATION, HEATHROW, "executive", "Bournemouth Station to Heathrow", 21000, 95.2, 110),
    (BOURNEMOUTH_STATION, GATWICK, "standard", "Bournemouth Station to Gatwick", 17500, 112.4, 135),
]

TOWN_CENTRE_CODES = ["BH1", "BH2", "BH8"]

CORPORATE_ACCOUNTS = [
    {"company_name": "Dorset Logistics Ltd", "status": "active", "discount_percent": 15},
    {"company_name": "Coastal Events Co", "status": "suspended", "discount_percent": 20},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM vehicle_rates"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Rate cards ────────────────────────────────────────────────
        for card in FALLBACK_RATE_CARDS.values():
            session.add(VehicleRateModel(**rate_card_to_dict(card)))
        await session.flush()
        print(f"  Created {len(FALLBACK_RATE_CARDS)} rate cards")

        # ── Fixed routes ──────────────────────────────────────────────
        for origin, dest, cls, name, price, miles, minutes in FIXED_ROUTES:
            session.add(
                FixedRouteModel(
                    origin_place_id=origin,
                    destination_place_id=dest,
                    vehicle_class=cls,
                    name=name,
                    price=price,
                    distance_miles=miles,
                    duration_minutes=minutes,
                )
            )
        print(f"  Created {len(FIXED_ROUTES)} fixed routes")

        # ── Zones ─────────────────────────────────────────────────────
        zone = ZoneModel(id=str(uuid.uuid4()), name="Bournemouth Town Centre")
        session.add(zone)
        await session.flush()
        session.add_all(ZonePostcodeModel(outward_code=c, zone_id=zone.id) for c in TOWN_CENTRE_CODES)
        session.add(
            ZoneRouteModel(
                zone_id=zone.id,
                destination_place_id=HEATHROW,
                name="Bournemouth Town Centre to Heathrow",
                prices={
                    "standard": {"outbound": 16000, "return": 15000},
                    "executive": {"outbound": 22000, "return": 20500},
                    "minibus": {"outbound": 26000, "return": 24000},
                },
            )
        )
        print(f"  Created 1 zone ({', '.join(TOWN_CENTRE_CODES)}) with 1 zone route")

        # ── Surge rules ───────────────────────────────────────────────
        surge_repo = SurgeRuleRepository(session)
        for key in ("christmas-period", "weekend-evenings"):
            await surge_repo.create(SURGE_TEMPLATES[key])
        print("  Created 2 surge rules")

        # ── Corporate accounts ────────────────────────────────────────
        for account in CORPORATE_ACCOUNTS:
            session.add(CorporateAccountModel(id=str(uuid.uuid4()), **account))
        print(f"  Created {len(CORPORATE_ACCOUNTS)} corporate accounts")

        await session.commit()
        print("Seed complete.")


async def main():
    print("Seeding database...")
    await seed()
    await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
