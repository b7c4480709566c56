"""Initial pricing schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = postgresql.JSONB().with_variant(sa.JSON(), "sqlite")

# Enum columns store member names.
loyalty_tier_enum = sa.Enum(
    "BRONZE", "SILVER", "GOLD", "PLATINUM", "DIAMOND", name="loyaltytier"
)
membership_status_enum = sa.Enum(
    "INACTIVE", "ACTIVE", "EXPIRED", "CANCELLED", name="membershipstatus"
)
user_role_enum = sa.Enum("GUEST", "HOST", "ADMIN", name="userrole")
property_type_enum = sa.Enum(
    "APARTMENT",
    "HOUSE",
    "VILLA",
    "HOMESTAY",
    "HOTEL",
    "RESORT",
    "BUNGALOW",
    "OTHER",
    name="propertytype",
)
booking_status_enum = sa.Enum(
    "PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", name="bookingstatus"
)
guest_type_enum = sa.Enum("REGISTERED", "WALK_IN", name="guesttype")
discount_kind_enum = sa.Enum("PERCENTAGE", "FIXED_AMOUNT", name="discountkind")
redemption_status_enum = sa.Enum("ACTIVE", "USED", name="redemptionstatus")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _money(name: str, *, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(14, 2), nullable=True)
    return sa.Column(name, sa.Numeric(14, 2), server_default="0", nullable=False)


def upgrade() -> None:
    op.create_table(
        "membership_plans",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column(
            "booking_discount_rate",
            sa.Numeric(5, 2),
            server_default="0",
            nullable=False,
        ),
        sa.Column(
            "apply_discount_to_services",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("name", sa.String(length=240), nullable=False),
        sa.Column("phone_number", sa.String(length=32)),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("loyalty_tier", loyalty_tier_enum),
        sa.Column("membership_status", membership_status_enum, nullable=False),
        sa.Column("membership_expires_at", sa.DateTime(timezone=True)),
        sa.Column(
            "membership_plan_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("membership_plans.id", ondelete="SET NULL"),
        ),
        *_timestamps(),
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "host_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=240), nullable=False),
        sa.Column("property_type", property_type_enum, nullable=False),
        sa.Column("base_price", sa.Numeric(14, 2), nullable=False),
        _money("cleaning_fee"),
        _money("service_fee", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_listings_host_id", "listings", ["host_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "host_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "guest_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
        ),
        sa.Column("guest_type", guest_type_enum, nullable=False),
        sa.Column("contact_name", sa.String(length=240)),
        sa.Column("contact_email", sa.String(length=320)),
        sa.Column("contact_phone", sa.String(length=32)),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False),
        _money("base_price"),
        _money("cleaning_fee"),
        _money("service_fee"),
        _money("additional_services_total"),
        _money("membership_discount"),
        _money("promotion_discount"),
        _money("discount"),
        _money("total_price"),
        sa.Column("applied_adjustments", JSON_TYPE, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_bookings_guest_id", "bookings", ["guest_id"])
    op.create_index("ix_bookings_listing_id", "bookings", ["listing_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("name", sa.String(length=240), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("discount_kind", discount_kind_enum, nullable=False),
        sa.Column("discount_value", sa.Numeric(14, 2), nullable=False),
        _money("max_discount", nullable=True),
        _money("min_booking_value", nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True)),
        sa.Column("valid_until", sa.DateTime(timezone=True)),
        sa.Column("max_uses", sa.Integer()),
        sa.Column("max_uses_per_user", sa.Integer()),
        sa.Column("used_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("listing_ids", JSON_TYPE, nullable=False),
        sa.Column("property_types", JSON_TYPE, nullable=False),
        sa.Column("allowed_membership_tiers", JSON_TYPE, nullable=False),
        sa.Column("user_ids", JSON_TYPE, nullable=False),
        sa.Column(
            "stack_with_membership",
            sa.Boolean(),
            server_default=sa.true(),
            nullable=False,
        ),
        sa.Column(
            "stack_with_promotions",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.CheckConstraint("used_count >= 0", name="ck_promotions_used_count"),
        *_timestamps(),
    )

    op.create_table(
        "promotion_redemptions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "promotion_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("promotions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", redemption_status_enum, nullable=False),
        sa.Column(
            "applied_booking_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="SET NULL"),
        ),
        sa.Column("booking_ids", JSON_TYPE, nullable=False),
        sa.Column("details", JSON_TYPE, nullable=False),
        sa.UniqueConstraint("promotion_id", "user_id", name="uq_redemption_user"),
        *_timestamps(),
    )
    op.create_index(
        "ix_promotion_redemptions_applied_booking_id",
        "promotion_redemptions",
        ["applied_booking_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_promotion_redemptions_applied_booking_id",
        table_name="promotion_redemptions",
    )
    op.drop_table("promotion_redemptions")
    op.drop_table("promotions")
    op.drop_index("ix_bookings_listing_id", table_name="bookings")
    op.drop_index("ix_bookings_guest_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_listings_host_id", table_name="listings")
    op.drop_table("listings")
    op.drop_table("users")
    op.drop_table("membership_plans")

    bind = op.get_bind()
    for enum_type in (
        redemption_status_enum,
        discount_kind_enum,
        guest_type_enum,
        booking_status_enum,
        property_type_enum,
        user_role_enum,
        membership_status_enum,
        loyalty_tier_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
