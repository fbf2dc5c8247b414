"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB(astext_type=sa.Text())
MONEY = sa.Numeric(12, 2)
WEIGHT = sa.Numeric(10, 3)


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _updated_at():
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _tenant_fk():
    return sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", UUID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("plan", sa.String(), nullable=False, server_default=sa.text("'basico'")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("contact_email", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "store_settings",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("free_shipping_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("free_shipping_threshold", MONEY, nullable=True),
        sa.Column("default_handling_time", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("low_stock_threshold", sa.Integer(), nullable=False, server_default=sa.text("10")),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id"),
    )

    op.create_table(
        "categories",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("parent_id", UUID, nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(["parent_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_categories_tenant_slug"),
    )
    op.create_index("ix_categories_tenant_id", "categories", ["tenant_id"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("category_id", UUID, nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("compare_at_price", MONEY, nullable=True),
        sa.Column("cost_price", MONEY, nullable=True),
        sa.Column("sku", sa.String(), nullable=True),
        sa.Column("barcode", sa.String(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("track_quantity", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_backorder", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("weight", WEIGHT, nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("images", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_products_tenant_slug"),
    )
    op.create_index("ix_products_tenant_id", "products", ["tenant_id"], unique=False)
    op.create_index("ix_products_category_id", "products", ["category_id"], unique=False)

    op.create_table(
        "product_variants",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("product_id", UUID, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("sku", sa.String(), nullable=True),
        sa.Column("price", MONEY, nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("options", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_variants_tenant_id", "product_variants", ["tenant_id"], unique=False)
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"], unique=False)

    op.create_table(
        "discounts",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kind", sa.String(), nullable=False, server_default=sa.text("'voucher'")),
        sa.Column("type", sa.String(), nullable=False, server_default=sa.text("'percentage'")),
        sa.Column("value", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("scope", sa.String(), nullable=False, server_default=sa.text("'entire_order'")),
        sa.Column("apply_once_per_order", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("min_order_amount", MONEY, nullable=True),
        sa.Column("min_checkout_items_quantity", sa.Integer(), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("apply_once_per_customer", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("only_for_staff", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("single_use", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("applicable_product_ids", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("applicable_category_ids", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_discounts_tenant_id", "discounts", ["tenant_id"], unique=False)

    op.create_table(
        "voucher_codes",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("discount_id", UUID, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'active'")),
        sa.Column("is_manually_created", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["discount_id"], ["discounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "code", name="uq_voucher_codes_tenant_code"),
    )
    op.create_index("ix_voucher_codes_tenant_id", "voucher_codes", ["tenant_id"], unique=False)
    op.create_index("ix_voucher_codes_discount_id", "voucher_codes", ["discount_id"], unique=False)

    op.create_table(
        "discount_usages",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("discount_id", UUID, nullable=False),
        sa.Column("voucher_code_id", UUID, nullable=True),
        sa.Column("order_id", UUID, nullable=True),
        sa.Column("customer_id", UUID, nullable=True),
        sa.Column("discount_amount", MONEY, nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["discount_id"], ["discounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voucher_code_id"], ["voucher_codes.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_discount_usages_tenant_id", "discount_usages", ["tenant_id"], unique=False)
    op.create_index("ix_discount_usages_discount_id", "discount_usages", ["discount_id"], unique=False)
    op.create_index("ix_discount_usages_customer_id", "discount_usages", ["customer_id"], unique=False)

    op.create_table(
        "shipping_zones",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shipping_zones_tenant_id", "shipping_zones", ["tenant_id"], unique=False)

    op.create_table(
        "shipping_zone_countries",
        sa.Column("id", UUID, nullable=False),
        sa.Column("zone_id", UUID, nullable=False),
        sa.Column("country_code", sa.String(length=2), nullable=False),
        sa.Column("country_name", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["zone_id"], ["shipping_zones.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shipping_zone_countries_zone_id", "shipping_zone_countries", ["zone_id"], unique=False)

    op.create_table(
        "shipping_rates",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("zone_id", UUID, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rate_type", sa.String(), nullable=False, server_default=sa.text("'flat'")),
        sa.Column("price", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("min_weight", WEIGHT, nullable=True),
        sa.Column("max_weight", WEIGHT, nullable=True),
        sa.Column("min_order_total", MONEY, nullable=True),
        sa.Column("max_order_total", MONEY, nullable=True),
        sa.Column("price_per_kg", MONEY, nullable=True),
        sa.Column("price_per_item", MONEY, nullable=True),
        sa.Column("free_shipping_threshold", MONEY, nullable=True),
        sa.Column("estimated_days_min", sa.Integer(), nullable=True),
        sa.Column("estimated_days_max", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(["zone_id"], ["shipping_zones.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_shipping_rates_tenant_id", "shipping_rates", ["tenant_id"], unique=False)
    op.create_index("ix_shipping_rates_zone_id", "shipping_rates", ["zone_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("accepts_marketing", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "email", name="uq_customers_tenant_email"),
    )
    op.create_index("ix_customers_tenant_id", "customers", ["tenant_id"], unique=False)

    op.create_table(
        "carts",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("customer_id", UUID, nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'active'")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("subtotal", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("discount_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("shipping_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("tax_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("shipping_address_line1", sa.String(), nullable=True),
        sa.Column("shipping_address_line2", sa.String(), nullable=True),
        sa.Column("shipping_city", sa.String(), nullable=True),
        sa.Column("shipping_state", sa.String(), nullable=True),
        sa.Column("shipping_postal_code", sa.String(), nullable=True),
        sa.Column("shipping_country", sa.String(length=2), nullable=True),
        sa.Column("shipping_rate_id", UUID, nullable=True),
        sa.Column("discount_id", UUID, nullable=True),
        sa.Column("voucher_code_id", UUID, nullable=True),
        sa.Column("voucher_code", sa.String(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_carts_tenant_id", "carts", ["tenant_id"], unique=False)

    op.create_table(
        "cart_items",
        sa.Column("id", UUID, nullable=False),
        sa.Column("cart_id", UUID, nullable=False),
        sa.Column("product_id", UUID, nullable=False),
        sa.Column("variant_id", UUID, nullable=True),
        sa.Column("category_id", UUID, nullable=True),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("product_sku", sa.String(), nullable=True),
        sa.Column("product_image", sa.String(), nullable=True),
        sa.Column("variant_title", sa.String(), nullable=True),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("compare_at_price", MONEY, nullable=True),
        sa.Column("weight", WEIGHT, nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cart_items_cart_id", "cart_items", ["cart_id"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("customer_id", UUID, nullable=True),
        sa.Column("cart_id", UUID, nullable=True),
        sa.Column("order_number", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("fulfillment_status", sa.String(), nullable=False, server_default=sa.text("'unfulfilled'")),
        sa.Column("subtotal", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("discount_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("shipping_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("tax_total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default=sa.text("'USD'")),
        sa.Column("items_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("shipping_address", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("customer_email", sa.String(), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("customer_note", sa.Text(), nullable=True),
        sa.Column("shipping_method", sa.String(), nullable=True),
        sa.Column("discount_id", UUID, nullable=True),
        sa.Column("discount_code", sa.String(), nullable=True),
        sa.Column("discount_name", sa.String(), nullable=True),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_number"),
    )
    op.create_index("ix_orders_tenant_id", "orders", ["tenant_id"], unique=False)
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"], unique=False)
    op.create_index("ix_orders_status", "orders", ["status"], unique=False)
    op.create_index("ix_orders_payment_status", "orders", ["payment_status"], unique=False)
    op.create_index("ix_orders_created_at", "orders", ["created_at"], unique=False)

    op.create_table(
        "order_items",
        sa.Column("id", UUID, nullable=False),
        sa.Column("order_id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("product_id", UUID, nullable=True),
        sa.Column("variant_id", UUID, nullable=True),
        sa.Column("product_name", sa.String(), nullable=False),
        sa.Column("product_sku", sa.String(), nullable=True),
        sa.Column("product_image", sa.String(), nullable=True),
        sa.Column("variant_title", sa.String(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)
    op.create_index("ix_order_items_tenant_id", "order_items", ["tenant_id"], unique=False)
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"], unique=False)

    op.create_table(
        "order_status_history",
        sa.Column("id", UUID, nullable=False),
        sa.Column("order_id", UUID, nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_status_history_order_id", "order_status_history", ["order_id"], unique=False)

    op.create_table(
        "store_pages",
        sa.Column("id", UUID, nullable=False),
        sa.Column("tenant_id", UUID, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("page_type", sa.String(), nullable=False, server_default=sa.text("'custom'")),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("sections", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        _tenant_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_store_pages_tenant_slug"),
    )
    op.create_index("ix_store_pages_tenant_id", "store_pages", ["tenant_id"], unique=False)


def downgrade() -> None:
    for table in (
        "store_pages",
        "order_status_history",
        "order_items",
        "orders",
        "cart_items",
        "carts",
        "customers",
        "shipping_rates",
        "shipping_zone_countries",
        "shipping_zones",
        "discount_usages",
        "voucher_codes",
        "discounts",
        "product_variants",
        "products",
        "categories",
        "store_settings",
        "tenants",
    ):
        op.drop_table(table)
