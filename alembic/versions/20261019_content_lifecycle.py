"""content items and version archive

Revision ID: 20261019_content_lifecycle
Revises:
Create Date: 2026-10-19 10:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_content_lifecycle"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False, server_default=""),
        sa.Column("slug", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("excerpt", sa.Text(), nullable=False, server_default=""),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("cover_image", sa.String(length=2048), nullable=True),
        sa.Column("read_time", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("draft_snapshot", sa.Text(), nullable=True),
        sa.Column("revision", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("version_seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "NOT (published AND scheduled_at IS NOT NULL)",
            name="ck_content_items_single_state",
        ),
    )
    op.create_index("ix_content_items_slug", "content_items", ["slug"], unique=False)
    op.create_index("ix_content_items_due", "content_items", ["published", "scheduled_at"], unique=False)
    op.create_index("ix_content_items_published_at", "content_items", ["published_at"], unique=False)

    op.create_table(
        "content_versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_item_id", sa.Integer(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=1024), nullable=False, server_default=""),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("excerpt", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("cover_image", sa.String(length=2048), nullable=True),
        sa.Column("read_time", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(["content_item_id"], ["content_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("content_item_id", "version_number", name="uq_content_version_number"),
    )
    op.create_index("ix_content_versions_content_item_id", "content_versions", ["content_item_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_content_versions_content_item_id", table_name="content_versions")
    op.drop_table("content_versions")
    op.drop_index("ix_content_items_published_at", table_name="content_items")
    op.drop_index("ix_content_items_due", table_name="content_items")
    op.drop_index("ix_content_items_slug", table_name="content_items")
    op.drop_table("content_items")
