"""initial feepay schema

Revision ID: 0001_feepay
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_feepay"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("school_id", sa.String(), nullable=False),
        sa.Column("trustee_id", sa.String(), nullable=True),
        sa.Column("student_info", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("gateway_name", sa.String(), nullable=False),
        sa.Column("custom_order_id", sa.String(), nullable=True),
        sa.Column("order_amount", sa.Integer(), nullable=False),
        sa.Column("collect_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("order_amount > 0", name="ck_orders_amount_positive"),
    )
    op.create_index("ix_orders_school_id", "orders", ["school_id"])
    op.create_index("ix_orders_custom_order_id", "orders", ["custom_order_id"], unique=True)
    op.create_index("ix_orders_collect_id", "orders", ["collect_id"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])

    op.create_table(
        "order_statuses",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("order_id", sa.String(length=24), nullable=False),
        sa.Column("order_amount", sa.Integer(), nullable=True),
        sa.Column("transaction_amount", sa.Integer(), nullable=True),
        sa.Column("payment_mode", sa.String(), nullable=True),
        sa.Column("payment_details", sa.Text(), nullable=True),
        sa.Column("bank_reference", sa.String(), nullable=True),
        sa.Column("payment_message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("payment_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("gateway_payment_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("gateway_response", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_order_statuses_order_id", "order_statuses", ["order_id"], unique=True)
    op.create_index("ix_order_statuses_status", "order_statuses", ["status"])
    op.create_index("ix_order_statuses_payment_time", "order_statuses", ["payment_time"])
    op.create_index("ix_order_statuses_bank_reference", "order_statuses", ["bank_reference"])

    op.create_table(
        "webhook_logs",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_webhook_logs_received_at", "webhook_logs", ["received_at"])
    op.create_index("ix_webhook_logs_processed", "webhook_logs", ["processed"])
    op.create_index("ix_webhook_logs_order_id", "webhook_logs", ["order_id"])
    op.create_index("ix_webhook_logs_status", "webhook_logs", ["status"])


def downgrade() -> None:
    op.drop_index("ix_webhook_logs_status", table_name="webhook_logs")
    op.drop_index("ix_webhook_logs_order_id", table_name="webhook_logs")
    op.drop_index("ix_webhook_logs_processed", table_name="webhook_logs")
    op.drop_index("ix_webhook_logs_received_at", table_name="webhook_logs")
    op.drop_table("webhook_logs")
    op.drop_index("ix_order_statuses_bank_reference", table_name="order_statuses")
    op.drop_index("ix_order_statuses_payment_time", table_name="order_statuses")
    op.drop_index("ix_order_statuses_status", table_name="order_statuses")
    op.drop_index("ix_order_statuses_order_id", table_name="order_statuses")
    op.drop_table("order_statuses")
    op.drop_index("ix_orders_created_at", table_name="orders")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_collect_id", table_name="orders")
    op.drop_index("ix_orders_custom_order_id", table_name="orders")
    op.drop_index("ix_orders_school_id", table_name="orders")
    op.drop_table("orders")
