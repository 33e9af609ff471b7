"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""

import uuid

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

RESPONSIBLE_DEFAULT = "Administrador do sistema"


def _base_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responsible", sa.String(length=200), nullable=False, server_default=RESPONSIBLE_DEFAULT),
    ]


def _tenant_column():
    return sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False)


def upgrade():
    op.create_table(
        "field_definitions",
        *_base_columns(),
        _tenant_column(),
        sa.Column("key", sa.String(length=80), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="spec"),
        sa.Column("field_type", sa.String(length=30), nullable=False, server_default="text"),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("validation", sa.JSON(), nullable=True),
        sa.Column("placeholder", sa.String(length=200), nullable=True),
        sa.Column("help_text", sa.Text(), nullable=True),
        sa.Column("table_config", sa.JSON(), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="999"),
        sa.UniqueConstraint("company_id", "key", name="uq_field_definitions_company_key"),
    )
    op.create_index("ix_field_definitions_company_id", "field_definitions", ["company_id"])
    op.create_index("ix_field_definitions_key", "field_definitions", ["key"])

    op.create_table(
        "categories",
        *_base_columns(),
        _tenant_column(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("config", sa.JSON(), nullable=False),
        sa.UniqueConstraint("company_id", "slug", name="uq_categories_company_slug"),
    )
    op.create_index("ix_categories_company_id", "categories", ["company_id"])

    op.create_table(
        "customers",
        *_base_columns(),
        _tenant_column(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("customer_type", sa.String(length=20), nullable=False, server_default="retail"),
        sa.Column("admin_preview_type", sa.String(length=20), nullable=True),
    )
    op.create_index("ix_customers_company_id", "customers", ["company_id"])
    op.create_index("ix_customers_email", "customers", ["email"])

    op.create_table(
        "products",
        *_base_columns(),
        _tenant_column(),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("sku", sa.String(length=80), nullable=True),
        sa.Column("specs", sa.JSON(), nullable=False),
        sa.Column("price_retail", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price_wholesale", sa.Integer(), nullable=True),
        sa.Column("price_reseller", sa.Integer(), nullable=True),
        sa.Column("discount_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_products_company_id", "products", ["company_id"])
    op.create_index("ix_products_category_id", "products", ["category_id"])
    op.create_index("ix_products_sku", "products", ["sku"])
    op.create_index("ix_products_is_active", "products", ["is_active"])

    op.create_table(
        "brands",
        *_base_columns(),
        _tenant_column(),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_brands_company_id", "brands", ["company_id"])
    op.create_index("ix_brands_is_active", "brands", ["is_active"])

    op.create_table(
        "table_availability",
        *_base_columns(),
        sa.Column("table_name", sa.String(length=120), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_table_availability_table_name", "table_availability", ["table_name"], unique=True)
    op.create_index("ix_table_availability_is_active", "table_availability", ["is_active"])

    op.bulk_insert(
        sa.table(
            "table_availability",
            sa.column("id", postgresql.UUID(as_uuid=True)),
            sa.column("table_name", sa.String()),
            sa.column("is_active", sa.Boolean()),
        ),
        [{"id": uuid.UUID("6f1c2a4e-8b7d-4f3a-9c21-0d5e6b7a8c90"), "table_name": "brands", "is_active": True}],
    )


def downgrade():
    op.drop_index("ix_table_availability_is_active", table_name="table_availability")
    op.drop_index("ix_table_availability_table_name", table_name="table_availability")
    op.drop_table("table_availability")
    op.drop_index("ix_brands_is_active", table_name="brands")
    op.drop_index("ix_brands_company_id", table_name="brands")
    op.drop_table("brands")
    op.drop_index("ix_products_is_active", table_name="products")
    op.drop_index("ix_products_sku", table_name="products")
    op.drop_index("ix_products_category_id", table_name="products")
    op.drop_index("ix_products_company_id", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_customers_email", table_name="customers")
    op.drop_index("ix_customers_company_id", table_name="customers")
    op.drop_table("customers")
    op.drop_index("ix_categories_company_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_field_definitions_key", table_name="field_definitions")
    op.drop_index("ix_field_definitions_company_id", table_name="field_definitions")
    op.drop_table("field_definitions")
