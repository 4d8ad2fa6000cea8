"""initial schema: users, designs, images, favorites, carts, settings

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

from modules.admin.models import DEFAULT_SETTINGS

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("is_approved", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_is_admin", "users", ["is_admin"])
    op.create_index("ix_users_is_approved", "users", ["is_approved"])

    op.create_table(
        "designs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("short_description", sa.String(500), nullable=True),
        sa.Column("long_description", sa.Text(), nullable=True),
        sa.Column("object_key", sa.String(500), nullable=False),
        sa.Column("design_number", sa.String(20), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("style", sa.String(100), nullable=True),
        sa.Column("colour", sa.String(100), nullable=True),
        sa.Column("fabric", sa.String(100), nullable=True),
        sa.Column("occasion", sa.String(100), nullable=True),
        sa.Column("size_available", sa.String(255), nullable=True),
        sa.Column("price_range", sa.String(100), nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("designer_name", sa.String(255), nullable=True),
        sa.Column("collection_name", sa.String(255), nullable=True),
        sa.Column("season", sa.String(50), nullable=True),
        sa.Column("featured", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("view_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("like_count", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive', 'draft')", name="ck_design_status"),
        sa.CheckConstraint("view_count >= 0", name="ck_design_views"),
        sa.CheckConstraint("like_count >= 0", name="ck_design_likes"),
    )
    op.create_index("ix_designs_design_number", "designs", ["design_number"], unique=True)
    for column in (
        "category", "style", "colour", "fabric", "occasion", "designer_name",
        "collection_name", "season", "featured", "status", "created_at",
    ):
        op.create_index(f"ix_designs_{column}", "designs", [column])

    op.create_table(
        "design_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("design_id", sa.Integer(), sa.ForeignKey("designs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("object_key", sa.String(500), nullable=False),
        sa.Column("image_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_primary", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("alt_text", sa.String(255), nullable=True),
        sa.Column("caption", sa.String(500), nullable=True),
        sa.Column("image_type", sa.String(50), server_default="standard", nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("content_type", sa.String(100), nullable=True),
        sa.Column("uploaded_by", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_design_images_design_id", "design_images", ["design_id"])
    op.create_index(
        "uq_design_images_primary", "design_images", ["design_id"], unique=True,
        postgresql_where=sa.text("is_primary"),
        sqlite_where=sa.text("is_primary = 1"),
    )

    op.create_table(
        "user_favorites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("design_id", sa.Integer(), sa.ForeignKey("designs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "design_id", name="uq_user_favorite"),
    )
    op.create_index("ix_user_favorites_user_id", "user_favorites", ["user_id"])
    op.create_index("ix_user_favorites_design_id", "user_favorites", ["design_id"])

    op.create_table(
        "carts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "cart_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("carts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("design_id", sa.Integer(), sa.ForeignKey("designs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("cart_id", "design_id", name="uq_cart_design"),
        sa.CheckConstraint("quantity >= 1 AND quantity <= 10", name="ck_cart_qty"),
    )
    op.create_index("ix_cart_items_cart_id", "cart_items", ["cart_id"])
    op.create_index("ix_cart_items_design_id", "cart_items", ["design_id"])

    settings_table = op.create_table(
        "app_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.bulk_insert(
        settings_table,
        [{"key": k, "value": v, "description": d} for k, v, d in DEFAULT_SETTINGS],
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("cart_items")
    op.drop_table("carts")
    op.drop_table("user_favorites")
    op.drop_index("uq_design_images_primary", table_name="design_images")
    op.drop_table("design_images")
    op.drop_table("designs")
    op.drop_table("users")
