"""Initial schema — the six CampusShare collections.

Revision: 001_initial_schema
Created:  2026-10-17

Append-only: never edit this file once it has run against a database.
Schema changes go in a new revision.

Each collection is one table keyed by a server-generated UUID string (or,
for group_memberships, by (user_id, group_id)). There are no foreign keys:
references between collections are resolved at read time, and cascades
(deleting a group's membership rows) are done by the application.

Secondary indexes:
  users.email               (unique)
  listings.seller_id, listings.status
  proposals.listing_id, proposals.buyer_id, proposals.seller_id
  study_groups.creator_id, study_groups.subject, study_groups.status
  group_memberships.group_id   (user_id leads the primary key)
  favorites.user_id, favorites.listing_id, (user_id, listing_id)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("university", sa.String(200), nullable=False),
        sa.Column("major", sa.String(200), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("profile_image", sa.String(500), nullable=True),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("total_ratings", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id", name="pk_users"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        sa.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_users_rating_range"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ── listings ───────────────────────────────────────────────────────────
    op.create_table(
        "listings",
        sa.Column("listing_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("price_type", sa.String(10), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("condition", sa.String(10), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("seller_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("listing_id", name="pk_listings"),
        sa.CheckConstraint("price >= 0", name="ck_listings_price_nonnegative"),
        sa.CheckConstraint("price_type <> 'free' OR price = 0", name="ck_listings_free_price_zero"),
        sa.CheckConstraint("price_type IN ('sale', 'rent', 'free')", name="ck_listings_price_type"),
        sa.CheckConstraint(
            "category IN ('textbook', 'laptop', 'cloud-credits', 'equipment', 'other')",
            name="ck_listings_category",
        ),
        sa.CheckConstraint(
            "condition IN ('new', 'like-new', 'good', 'fair', 'poor')",
            name="ck_listings_condition",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'sold', 'expired', 'inactive')",
            name="ck_listings_status",
        ),
    )
    op.create_index("ix_listings_seller_id", "listings", ["seller_id"])
    op.create_index("ix_listings_status", "listings", ["status"])

    # ── proposals ──────────────────────────────────────────────────────────
    op.create_table(
        "proposals",
        sa.Column("proposal_id", sa.String(36), nullable=False),
        sa.Column("listing_id", sa.String(36), nullable=False),
        sa.Column("buyer_id", sa.String(36), nullable=False),
        sa.Column("seller_id", sa.String(36), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("proposed_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("proposal_id", name="pk_proposals"),
        sa.CheckConstraint("buyer_id <> seller_id", name="ck_proposals_not_self"),
        sa.CheckConstraint("proposed_price >= 0", name="ck_proposals_price_nonnegative"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'withdrawn')",
            name="ck_proposals_status",
        ),
    )
    op.create_index("ix_proposals_listing_id", "proposals", ["listing_id"])
    op.create_index("ix_proposals_buyer_id", "proposals", ["buyer_id"])
    op.create_index("ix_proposals_seller_id", "proposals", ["seller_id"])

    # ── study_groups ───────────────────────────────────────────────────────
    op.create_table(
        "study_groups",
        sa.Column("group_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("course", sa.String(100), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("max_members", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("current_members", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("creator_id", sa.String(36), nullable=False),
        sa.Column("meeting_schedule", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("group_id", name="pk_study_groups"),
        sa.CheckConstraint(
            "max_members >= 2 AND max_members <= 50",
            name="ck_study_groups_capacity",
        ),
        sa.CheckConstraint(
            "status IN ('active', 'full', 'inactive')",
            name="ck_study_groups_status",
        ),
    )
    op.create_index("ix_study_groups_creator_id", "study_groups", ["creator_id"])
    op.create_index("ix_study_groups_subject", "study_groups", ["subject"])
    op.create_index("ix_study_groups_status", "study_groups", ["status"])

    # ── group_memberships (reverse index: user → groups) ──────────────────
    op.create_table(
        "group_memberships",
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("group_id", sa.String(36), nullable=False),
        sa.Column("role", sa.String(10), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "group_id", name="pk_group_memberships"),
    )
    op.create_index("ix_group_memberships_group_id", "group_memberships", ["group_id"])

    # ── favorites ──────────────────────────────────────────────────────────
    op.create_table(
        "favorites",
        sa.Column("favorite_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("listing_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("favorite_id", name="pk_favorites"),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])
    op.create_index("ix_favorites_listing_id", "favorites", ["listing_id"])
    op.create_index("idx_favorites_user_listing", "favorites", ["user_id", "listing_id"])


def downgrade() -> None:
    """Drops everything upgrade() created. Local development resets only."""
    op.drop_index("idx_favorites_user_listing", table_name="favorites")
    op.drop_index("ix_favorites_listing_id", table_name="favorites")
    op.drop_index("ix_favorites_user_id", table_name="favorites")
    op.drop_table("favorites")

    op.drop_index("ix_group_memberships_group_id", table_name="group_memberships")
    op.drop_table("group_memberships")

    op.drop_index("ix_study_groups_status", table_name="study_groups")
    op.drop_index("ix_study_groups_subject", table_name="study_groups")
    op.drop_index("ix_study_groups_creator_id", table_name="study_groups")
    op.drop_table("study_groups")

    op.drop_index("ix_proposals_seller_id", table_name="proposals")
    op.drop_index("ix_proposals_buyer_id", table_name="proposals")
    op.drop_index("ix_proposals_listing_id", table_name="proposals")
    op.drop_table("proposals")

    op.drop_index("ix_listings_status", table_name="listings")
    op.drop_index("ix_listings_seller_id", table_name="listings")
    op.drop_table("listings")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
