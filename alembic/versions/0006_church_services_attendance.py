"""Church services and attendance check-in.

Revision ID: 0006_church_services_attendance
Revises: 0005_activity_logs
"""

from alembic import op
import sqlalchemy as sa


revision = "0006_church_services_attendance"
down_revision = "0005_activity_logs"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "church_services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("service_type", sa.String(length=30), nullable=False, server_default="divine_service"),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.CheckConstraint(
            "service_type IN ('sabbath_school', 'divine_service', 'prayer_meeting', 'youth_program', "
            "'midweek_service', 'special_event', 'other')",
            name="ck_church_services_type",
        ),
    )
    op.create_index("ix_church_services_service_date", "church_services", ["service_date"])

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "service_id",
            sa.Integer(),
            sa.ForeignKey("church_services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("checked_in_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.UniqueConstraint("service_id", "user_id", name="uq_attendance_records_service_user"),
    )
    op.create_index("ix_attendance_records_service_id", "attendance_records", ["service_id"])
    op.create_index("ix_attendance_records_user_id", "attendance_records", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_attendance_records_user_id", table_name="attendance_records")
    op.drop_index("ix_attendance_records_service_id", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_index("ix_church_services_service_date", table_name="church_services")
    op.drop_table("church_services")
