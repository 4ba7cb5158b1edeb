"""create rental tables

Revision ID: 4f1c2a9e7b10
Revises:
Create Date: 2026-10-19 10:12:41.518204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4f1c2a9e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

order_status = sa.Enum(
    "pending", "confirmed", "delivered", "returned", "cancelled", name="orderstatus"
)
payment_status = sa.Enum("pending", "completed", "failed", name="paymentstatus")


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("role", sa.String(), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("shopper_id", sa.String(), nullable=False),
        sa.Column("shopper_email", sa.String(), nullable=False),
        sa.Column("shopper_name", sa.String(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("delivery_address", sa.String(), nullable=False),
        sa.Column("status", order_status, nullable=False, server_default="pending"),
        sa.Column("payment_status", payment_status, nullable=False, server_default="pending"),
        sa.Column("payment_reference", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("return_due_date", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_order_shopper_id", "order", ["shopper_id"])
    op.create_index("ix_order_status", "order", ["status"])
    op.create_index("ix_order_payment_reference", "order", ["payment_reference"])

    op.create_table(
        "rented_book",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("book_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=False),
        sa.Column("cover_image", sa.String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("rental_days", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
    )
    op.create_index("ix_rented_book_order_id", "rented_book", ["order_id"])

    op.create_table(
        "order_event",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False, server_default="system"),
    )

    # indexes for fast timeline queries
    op.create_index("ix_order_event_order_id", "order_event", ["order_id"])
    op.create_index("ix_order_event_event_type", "order_event", ["event_type"])


def downgrade():
    op.drop_index("ix_order_event_event_type", table_name="order_event")
    op.drop_index("ix_order_event_order_id", table_name="order_event")
    op.drop_table("order_event")
    op.drop_index("ix_rented_book_order_id", table_name="rented_book")
    op.drop_table("rented_book")
    op.drop_index("ix_order_payment_reference", table_name="order")
    op.drop_index("ix_order_status", table_name="order")
    op.drop_index("ix_order_shopper_id", table_name="order")
    op.drop_table("order")
    op.drop_table("user")
    order_status.drop(op.get_bind(), checkfirst=True)
    payment_status.drop(op.get_bind(), checkfirst=True)
