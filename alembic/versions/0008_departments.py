"""Departments and department membership.

Revision ID: 0008_departments
Revises: 0007_events
"""

from alembic import op
import sqlalchemy as sa


revision = "0008_departments"
down_revision = "0007_events"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=150), nullable=False, unique=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("head_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
    )

    op.create_table(
        "member_departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey("departments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.UniqueConstraint("department_id", "user_id", name="uq_member_departments_department_user"),
    )
    op.create_index("ix_member_departments_department_id", "member_departments", ["department_id"])
    op.create_index("ix_member_departments_user_id", "member_departments", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_member_departments_user_id", table_name="member_departments")
    op.drop_index("ix_member_departments_department_id", table_name="member_departments")
    op.drop_table("member_departments")
    op.drop_table("departments")
