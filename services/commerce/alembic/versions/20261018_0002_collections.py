"""add collections

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 12:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "collections",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_collections_tenant_slug"),
    )
    op.create_index("ix_collections_tenant_id", "collections", ["tenant_id"], unique=False)

    op.create_table(
        "collection_products",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("collection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("collection_id", "product_id", name="uq_collection_products_pair"),
    )
    op.create_index("ix_collection_products_tenant_id", "collection_products", ["tenant_id"], unique=False)
    op.create_index("ix_collection_products_collection_id", "collection_products", ["collection_id"], unique=False)
    op.create_index("ix_collection_products_product_id", "collection_products", ["product_id"], unique=False)

    op.add_column(
        "discounts",
        sa.Column(
            "applicable_collection_ids",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
    )


def downgrade() -> None:
    op.drop_column("discounts", "applicable_collection_ids")
    op.drop_index("ix_collection_products_product_id", table_name="collection_products")
    op.drop_index("ix_collection_products_collection_id", table_name="collection_products")
    op.drop_index("ix_collection_products_tenant_id", table_name="collection_products")
    op.drop_table("collection_products")
    op.drop_index("ix_collections_tenant_id", table_name="collections")
    op.drop_table("collections")
