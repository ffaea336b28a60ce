"""Initial Stockly schema: inventory, contacts, documents, settings

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _contact_columns():
    return [
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("address", sa.String(512), nullable=False),
        sa.Column("city", sa.String(128), nullable=False),
        sa.Column("country", sa.String(128), nullable=False),
        sa.Column("postal_code", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    ]


def _document_columns():
    return [
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("number", sa.String(64), nullable=False),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_address", sa.String(512), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=True),
        sa.Column("client_phone", sa.String(64), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("date_created", sa.DateTime(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("discount", sa.Float(), nullable=False),
        sa.Column("discount_type", sa.String(32), nullable=False),
        sa.Column("tax", sa.Float(), nullable=False),
        sa.Column("tax_rate", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("header_note", sa.Text(), nullable=True),
        sa.Column("footer_note", sa.Text(), nullable=True),
        sa.Column("template_type", sa.String(32), nullable=False),
        *_timestamps(),
    ]


def _line_item_columns(parent_fk: str, parent_table: str):
    return [
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(parent_fk, sa.String(36), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("tax", sa.Float(), nullable=False),
        sa.Column("discount", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint([parent_fk], [f"{parent_table}.id"]),
        sa.PrimaryKeyConstraint("id"),
    ]


def _custom_field_columns(parent_fk: str, parent_table: str):
    return [
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(parent_fk, sa.String(36), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint([parent_fk], [f"{parent_table}.id"]),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade():
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("categories", schema=None) as batch_op:
        batch_op.create_index("ix_categories_name", ["name"], unique=False)

    op.create_table(
        "category_custom_fields",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("category_id", sa.String(36), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("field_type", sa.String(32), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("category_custom_fields", schema=None) as batch_op:
        batch_op.create_index("ix_category_custom_fields_category_id", ["category_id"], unique=False)

    op.create_table(
        "items",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("buy_price", sa.Float(), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False),
        sa.Column("min_stock_level", sa.Integer(), nullable=False),
        sa.Column("measurement_unit", sa.String(32), nullable=False),
        sa.Column("tax_rate", sa.Float(), nullable=False),
        sa.Column("barcode", sa.String(128), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("image_data", sa.LargeBinary(), nullable=True),
        *_timestamps(),
        sa.Column("inventory_added_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sku", name="uq_items_sku"),
    )
    with op.batch_alter_table("items", schema=None) as batch_op:
        batch_op.create_index("ix_items_category", ["category"], unique=False)
        batch_op.create_index("ix_items_barcode", ["barcode"], unique=False)

    op.create_table("clients", *_contact_columns(), sa.PrimaryKeyConstraint("id"))
    with op.batch_alter_table("clients", schema=None) as batch_op:
        batch_op.create_index("ix_clients_name", ["name"], unique=False)

    op.create_table(
        "suppliers",
        *_contact_columns(),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.create_index("ix_suppliers_name", ["name"], unique=False)

    op.create_table(
        "invoices",
        *_document_columns(),
        sa.Column("due_date", sa.DateTime(), nullable=False),
        sa.Column("payment_method", sa.String(64), nullable=True),
        sa.Column("document_type", sa.String(16), nullable=False),
        sa.Column("banking_info", sa.Text(), nullable=True),
        sa.Column("signature", sa.LargeBinary(), nullable=True),
        sa.Column("barcode_data", sa.String(128), nullable=True),
        sa.Column("qr_code_data", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.create_index("ix_invoices_number", ["number"], unique=False)
        batch_op.create_index("ix_invoices_status_due", ["status", "due_date"], unique=False)

    op.create_table("invoice_items", *_line_item_columns("invoice_id", "invoices"))
    op.create_table("invoice_custom_fields", *_custom_field_columns("invoice_id", "invoices"))

    op.create_table(
        "estimates",
        *_document_columns(),
        sa.Column("expiry_date", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("estimates", schema=None) as batch_op:
        batch_op.create_index("ix_estimates_number", ["number"], unique=False)
        batch_op.create_index("ix_estimates_status_expiry", ["status", "expiry_date"], unique=False)

    op.create_table("estimate_items", *_line_item_columns("estimate_id", "estimates"))
    op.create_table("estimate_custom_fields", *_custom_field_columns("estimate_id", "estimates"))

    for table, fk in (
        ("invoice_items", "invoice_id"),
        ("invoice_custom_fields", "invoice_id"),
        ("estimate_items", "estimate_id"),
        ("estimate_custom_fields", "estimate_id"),
    ):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(f"ix_{table}_{fk}", [fk], unique=False)

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(128), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade():
    op.drop_table("app_settings")
    op.drop_table("estimate_custom_fields")
    op.drop_table("estimate_items")
    op.drop_table("estimates")
    op.drop_table("invoice_custom_fields")
    op.drop_table("invoice_items")
    op.drop_table("invoices")
    op.drop_table("suppliers")
    op.drop_table("clients")
    op.drop_table("items")
    op.drop_table("category_custom_fields")
    op.drop_table("categories")
