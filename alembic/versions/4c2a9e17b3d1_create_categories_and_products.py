"""Create categories and products tables

Revision ID: 4c2a9e17b3d1
Revises:
Create Date: 2026-10-19 09:12:41.208315

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c2a9e17b3d1"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    is_postgresql = op.get_bind().dialect.name == "postgresql"

    # SQLite keeps the ancestor list as JSON and cannot express cardinality()
    path_ids_type = postgresql.ARRAY(sa.String(36)).with_variant(sa.JSON(), "sqlite")
    constraints = [sa.CheckConstraint("level >= 0", name="level_non_negative")]
    if is_postgresql:
        constraints.append(sa.CheckConstraint("level = cardinality(path_ids)", name="level_matches_path_ids"))

    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("parent_id", sa.String(36), nullable=True),
        sa.Column("path", sa.String(2048), nullable=False),
        sa.Column("path_ids", path_ids_type, nullable=False, server_default="{}" if is_postgresql else "[]"),
        sa.Column("level", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("child_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("descendant_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        *constraints,
    )

    op.create_index("ix_categories_parent_id", "categories", ["parent_id"], unique=False)
    op.create_index("ix_categories_level", "categories", ["level"], unique=False)
    op.create_index("ix_categories_path", "categories", ["path"], unique=True)
    # Inverted index backing the "path_ids @> ARRAY[...]" descendant and cycle lookups
    op.create_index("ix_categories_path_ids", "categories", ["path_ids"], unique=False, postgresql_using="gin")

    op.create_table(
        "products",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category_id", sa.String(36), nullable=False),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_category_id", "products", ["category_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_products_category_id", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_categories_path_ids", table_name="categories")
    op.drop_index("ix_categories_path", table_name="categories")
    op.drop_index("ix_categories_level", table_name="categories")
    op.drop_index("ix_categories_parent_id", table_name="categories")
    op.drop_table("categories")
