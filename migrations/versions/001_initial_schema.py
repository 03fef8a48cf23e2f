"""Initial schema: rate cards, surge rules, route overrides, corporate accounts.

Revision ID: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── vehicle_rates ─────────────────────────────────────────────────
    op.create_table(
        "vehicle_rates",
        sa.Column("vehicle_class", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="4"),
        sa.Column("base_fare", sa.Integer, nullable=False),
        sa.Column("per_mile", sa.Integer, nullable=False),
        sa.Column("per_minute", sa.Integer, nullable=False),
        sa.Column("per_hour", sa.Integer, nullable=False),
        sa.Column(
            "return_discount_percent", sa.Integer, nullable=False, server_default="0"
        ),
        sa.Column("features", sa.JSON, nullable=False),
        sa.Column("image_url", sa.String(512), nullable=False, server_default=""),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "base_fare >= 0 AND per_mile >= 0 AND per_minute >= 0 AND per_hour >= 0",
            name="ck_vehicle_rates_non_negative",
        ),
        sa.CheckConstraint(
            "return_discount_percent BETWEEN 0 AND 100",
            name="ck_vehicle_rates_return_discount",
        ),
    )

    # ── surge_rules ───────────────────────────────────────────────────
    op.create_table(
        "surge_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("rule_type", sa.String(20), nullable=False),
        sa.Column("multiplier", sa.Float, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("dates", sa.JSON, nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("days_of_week", sa.JSON, nullable=True),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "multiplier >= 1.0 AND multiplier <= 3.0",
            name="ck_surge_rules_multiplier",
        ),
        sa.CheckConstraint(
            "rule_type IN ('specific_dates', 'date_range', 'day_of_week', 'time_of_day')",
            name="ck_surge_rules_type",
        ),
    )
    op.create_index("idx_surge_rules_active", "surge_rules", ["is_active"])

    # ── fixed_routes ──────────────────────────────────────────────────
    op.create_table(
        "fixed_routes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("origin_place_id", sa.String(255), nullable=False),
        sa.Column("destination_place_id", sa.String(255), nullable=False),
        sa.Column("vehicle_class", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("price", sa.Integer, nullable=False),
        sa.Column("distance_miles", sa.Float, nullable=False, server_default="0"),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint(
            "origin_place_id",
            "destination_place_id",
            "vehicle_class",
            name="uq_fixed_routes_triple",
        ),
    )

    # ── zones ─────────────────────────────────────────────────────────
    op.create_table(
        "zones",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_table(
        "zone_postcodes",
        sa.Column("outward_code", sa.String(8), primary_key=True),
        sa.Column(
            "zone_id",
            sa.String(36),
            sa.ForeignKey("zones.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index("idx_zone_postcodes_zone", "zone_postcodes", ["zone_id"])

    op.create_table(
        "zone_routes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "zone_id",
            sa.String(36),
            sa.ForeignKey("zones.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("destination_place_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("prices", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("zone_id", "destination_place_id", name="uq_zone_routes_pair"),
    )

    # ── corporate_accounts ────────────────────────────────────────────
    op.create_table(
        "corporate_accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("company_name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("discount_percent", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "discount_percent BETWEEN 0 AND 50",
            name="ck_corporate_accounts_discount",
        ),
    )


def downgrade() -> None:
    op.drop_table("corporate_accounts")
    op.drop_table("zone_routes")
    op.drop_table("zone_postcodes")
    op.drop_table("zones")
    op.drop_table("fixed_routes")
    op.drop_table("surge_rules")
    op.drop_table("vehicle_rates")
