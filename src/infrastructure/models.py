"""
SQLAlchemy ORM models for pricing reference data.

Tables
------
* ``vehicle_rates``       -- one rate card per vehicle class
* ``surge_rules``         -- time-predicate surge rules (one row per rule)
* ``fixed_routes``        -- origin/destination/vehicle flat prices
* ``zones``               -- named groups of postcode outward codes
* ``zone_postcodes``      -- outward code -> zone lookup
* ``zone_routes``         -- zone -> destination price matrix
* ``corporate_accounts``  -- account discount percentages

Indexes
-------
* **Unique** on the fixed-route triple and on (zone, destination) so each
  lookup returns at most one row.
* **B-Tree** on ``surge_rules.is_active`` for the active-rules scan.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .database import Base


class VehicleRateModel(Base):
    __tablename__ = "vehicle_rates"

    vehicle_class = Column(String(32), primary_key=True)
    name = Column(String(120), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    capacity = Column(Integer, nullable=False, default=4)
    base_fare = Column(Integer, nullable=False)
    per_mile = Column(Integer, nullable=False)
    per_minute = Column(Integer, nullable=False)
    per_hour = Column(Integer, nullable=False)
    return_discount_percent = Column(Integer, nullable=False, default=0)
    features = Column(JSON, nullable=False, default=list)
    image_url = Column(String(512), nullable=False, default="")
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class SurgeRuleModel(Base):
    __tablename__ = "surge_rules"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    rule_type = Column(String(20), nullable=False)
    multiplier = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=False, default="")

    # Predicate fields; which ones are set depends on rule_type
    dates = Column(JSON, nullable=True)  # ["YYYY-MM-DD", ...]
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    days_of_week = Column(JSON, nullable=True)  # ["monday", ...]
    start_time = Column(String(5), nullable=True)  # "HH:MM"
    end_time = Column(String(5), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_surge_rules_active", "is_active"),)


class FixedRouteModel(Base):
    __tablename__ = "fixed_routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    origin_place_id = Column(String(255), nullable=False)
    destination_place_id = Column(String(255), nullable=False)
    vehicle_class = Column(String(32), nullable=False)
    name = Column(String(200), nullable=False, default="")
    price = Column(Integer, nullable=False)
    distance_miles = Column(Float, nullable=False, default=0.0)
    duration_minutes = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint(
            "origin_place_id",
            "destination_place_id",
            "vehicle_class",
            name="uq_fixed_routes_triple",
        ),
    )


class ZoneModel(Base):
    __tablename__ = "zones"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class ZonePostcodeModel(Base):
    __tablename__ = "zone_postcodes"

    outward_code = Column(String(8), primary_key=True)
    zone_id = Column(String(36), ForeignKey("zones.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (Index("idx_zone_postcodes_zone", "zone_id"),)


class ZoneRouteModel(Base):
    __tablename__ = "zone_routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(String(36), ForeignKey("zones.id", ondelete="CASCADE"), nullable=False)
    destination_place_id = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False, default="")
    # {"standard": {"outbound": 4500, "return": 4200}, ...}
    prices = Column(JSON, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("zone_id", "destination_place_id", name="uq_zone_routes_pair"),
    )


class CorporateAccountModel(Base):
    __tablename__ = "corporate_accounts"

    id = Column(String(36), primary_key=True)
    company_name = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    discount_percent = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
