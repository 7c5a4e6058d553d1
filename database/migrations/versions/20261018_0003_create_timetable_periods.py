"""create timetable periods

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0003"
down_revision = "20261018_0002"
branch_labels = None
depends_on = None


day_of_week_enum = sa.Enum(
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY", name="day_of_week"
)


def upgrade() -> None:
    op.create_table(
        "timetable_periods",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), sa.ForeignKey("schools.id", ondelete="CASCADE"), nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "academic_term_id",
            sa.String(length=36),
            sa.ForeignKey("academic_terms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", day_of_week_enum, nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "school_id",
            "teacher_id",
            "day_of_week",
            "academic_term_id",
            "start_time",
            name="uq_timetable_periods_teacher_slot",
        ),
        sa.UniqueConstraint(
            "school_id",
            "class_id",
            "day_of_week",
            "academic_term_id",
            "start_time",
            name="uq_timetable_periods_class_slot",
        ),
    )
    op.create_index("ix_timetable_periods_school_id", "timetable_periods", ["school_id"])
    op.create_index(
        "ix_timetable_periods_term_day",
        "timetable_periods",
        ["school_id", "academic_term_id", "day_of_week"],
    )


def downgrade() -> None:
    op.drop_index("ix_timetable_periods_term_day", table_name="timetable_periods")
    op.drop_index("ix_timetable_periods_school_id", table_name="timetable_periods")
    op.drop_table("timetable_periods")
    day_of_week_enum.drop(op.get_bind(), checkfirst=True)
