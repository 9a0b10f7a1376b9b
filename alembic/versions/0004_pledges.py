"""Pledges tracked against contribution categories.

Revision ID: 0004_pledges
Revises: 0003_payments_ledger
"""

from alembic import op
import sqlalchemy as sa


revision = "0004_pledges"
down_revision = "0003_payments_ledger"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pledges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("payment_categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("fulfilled_amount", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.CheckConstraint("status IN ('pending', 'fulfilled', 'cancelled')", name="ck_pledges_status"),
    )
    op.create_index("ix_pledges_user_id", "pledges", ["user_id"])
    op.create_index("ix_pledges_category_id", "pledges", ["category_id"])
    op.create_index("ix_pledges_due_date", "pledges", ["due_date"])
    op.create_index("ix_pledges_status", "pledges", ["status"])


def downgrade() -> None:
    op.drop_index("ix_pledges_status", table_name="pledges")
    op.drop_index("ix_pledges_due_date", table_name="pledges")
    op.drop_index("ix_pledges_category_id", table_name="pledges")
    op.drop_index("ix_pledges_user_id", table_name="pledges")
    op.drop_table("pledges")
