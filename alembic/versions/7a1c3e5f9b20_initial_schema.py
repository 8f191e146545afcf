"""initial schema: users, clients, materials, inventory ledger, transactions

Revision ID: 7a1c3e5f9b20
Revises:
Create Date: 2025-11-03 10:12:44.218301

"""
from alembic import op
import sqlalchemy as sa


revision = "7a1c3e5f9b20"
down_revision = None
branch_labels = None
depends_on = None

userrole = sa.Enum("ADMIN", "OPERATOR", name="userrole")
movementtype = sa.Enum("IN", "OUT", "ADJUST", name="movementtype")
transactiontype = sa.Enum("PURCHASE", "SALE", name="transactiontype")
transactionsource = sa.Enum("KEYBOARD", "SCALE", name="transactionsource")
transactionstatus = sa.Enum("PENDING", "COMPLETED", "CANCELLED", name="transactionstatus")


def upgrade() -> None:
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120)),
        sa.Column("password_hash", sa.String(length=255)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("role", userrole, nullable=False),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_user_account_email", "user_account", ["email"], unique=True)

    op.create_table(
        "client",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("document_type", sa.String(length=20)),
        sa.Column("document", sa.String(length=50), unique=True),
        sa.Column("address", sa.Text()),
        sa.Column("phone", sa.String(length=30)),
        sa.Column("email", sa.String(length=255), unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "material",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=20), nullable=False, unique=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("stock", sa.Numeric(14, 3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "inventory_movement",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("material.id"), nullable=False),
        sa.Column("type", movementtype, nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("balance", sa.Numeric(14, 3), nullable=False),
        sa.Column("reference", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index(
        "ix_inventory_movement_material_id", "inventory_movement", ["material_id"]
    )
    op.create_index(
        "ix_inventory_movement_created_at", "inventory_movement", ["created_at"]
    )

    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("folio", sa.String(length=20), nullable=False, unique=True),
        sa.Column("type", transactiontype, nullable=False),
        sa.Column("source", transactionsource, nullable=False),
        sa.Column("status", transactionstatus, nullable=False),
        sa.Column("total_weight", sa.Numeric(14, 3), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("client.id"), nullable=False),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False
        ),
    )
    op.create_index("ix_transaction_created_at", "transaction", ["created_at"])

    op.create_table(
        "transaction_detail",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "transaction_id",
            sa.Integer(),
            sa.ForeignKey("transaction.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("material_id", sa.Integer(), sa.ForeignKey("material.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("transaction_detail")
    op.drop_index("ix_transaction_created_at", table_name="transaction")
    op.drop_table("transaction")
    op.drop_index("ix_inventory_movement_created_at", table_name="inventory_movement")
    op.drop_index("ix_inventory_movement_material_id", table_name="inventory_movement")
    op.drop_table("inventory_movement")
    op.drop_table("material")
    op.drop_table("client")
    op.drop_index("ix_user_account_email", table_name="user_account")
    op.drop_table("user_account")

    bind = op.get_bind()
    for enum in (transactionstatus, transactionsource, transactiontype, movementtype, userrole):
        enum.drop(bind, checkfirst=True)
