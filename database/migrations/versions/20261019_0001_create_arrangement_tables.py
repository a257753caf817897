"""create arrangement tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


day_type_enum = sa.Enum("normal", "holiday", name="day_type")
asset_status_enum = sa.Enum("active", "inactive", name="asset_status")
setup_status_enum = sa.Enum("pending", "arranged", name="setup_status")


def upgrade() -> None:
    op.create_table(
        "lesson",
        sa.Column("lesson_no", sa.Integer(), primary_key=True, autoincrement=False, nullable=False),
        sa.Column("begin_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
    )
    op.create_table(
        "semester_date",
        sa.Column("date", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("day_type", day_type_enum, nullable=False),
        sa.Column("holiday_name", sa.String(length=100), nullable=True),
        sa.UniqueConstraint("semester", "weekday", "week", name="uq_semester_date_slot"),
    )
    op.create_index("ix_semester_date_semester", "semester_date", ["semester"])

    op.create_table(
        "campus",
        sa.Column("name", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("status", asset_status_enum, nullable=False),
    )
    op.create_table(
        "building",
        sa.Column("name", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("campus", sa.String(length=50), sa.ForeignKey("campus.name"), nullable=False),
    )
    op.create_index("ix_building_campus", "building", ["campus"])
    op.create_table(
        "classroom",
        sa.Column("name", sa.String(length=30), primary_key=True, nullable=False),
        sa.Column("building", sa.String(length=50), sa.ForeignKey("building.name"), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("status", asset_status_enum, nullable=False),
    )
    op.create_index("ix_classroom_building", "classroom", ["building"])

    op.create_table(
        "curricular",
        sa.Column("code", sa.String(length=10), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("class_hours", sa.Integer(), nullable=False),
    )
    op.create_table(
        "course_setup",
        sa.Column("course_no", sa.String(length=30), primary_key=True, nullable=False),
        sa.Column("curricular_code", sa.String(length=10), sa.ForeignKey("curricular.code"), nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("campus", sa.String(length=50), sa.ForeignKey("campus.name"), nullable=False),
        sa.Column("max_headcount", sa.Integer(), nullable=False),
        sa.Column("status", setup_status_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_course_setup_curricular_code", "course_setup", ["curricular_code"])
    op.create_table(
        "course_setup_day",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "course_no",
            sa.String(length=30),
            sa.ForeignKey("course_setup.course_no", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.UniqueConstraint("course_no", "weekday", name="uq_course_setup_day"),
    )
    op.create_index("ix_course_setup_day_course_no", "course_setup_day", ["course_no"])
    op.create_table(
        "course_section",
        sa.Column("section_no", sa.String(length=30), primary_key=True, nullable=False),
        sa.Column("curricular_code", sa.String(length=10), sa.ForeignKey("curricular.code"), nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("max_headcount", sa.Integer(), nullable=False),
        sa.Column("enrolled", sa.Integer(), nullable=False),
    )
    op.create_index("ix_course_section_curricular_code", "course_section", ["curricular_code"])
    op.create_index("ix_course_section_semester", "course_section", ["semester"])
    op.create_table(
        "course_arrangement",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_no", sa.String(length=30), sa.ForeignKey("course_setup.course_no"), nullable=False),
        sa.Column("class_hour_no", sa.Integer(), nullable=False),
        sa.Column("lesson_no", sa.Integer(), sa.ForeignKey("lesson.lesson_no"), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("classroom", sa.String(length=30), sa.ForeignKey("classroom.name"), nullable=False),
        sa.UniqueConstraint("course_no", "class_hour_no", name="uq_course_arrangement_hour"),
    )
    op.create_index("ix_course_arrangement_course_no", "course_arrangement", ["course_no"])
    op.create_index("ix_course_arrangement_date", "course_arrangement", ["date"])
    op.create_index("ix_course_arrangement_classroom", "course_arrangement", ["classroom"])

    op.create_table(
        "exam_setup",
        sa.Column("setup_id", sa.String(length=30), primary_key=True, nullable=False),
        sa.Column("curricular_code", sa.String(length=10), sa.ForeignKey("curricular.code"), nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("exam_no", sa.String(length=30), nullable=False, unique=True),
        sa.Column("kind", sa.String(length=30), nullable=False),
        sa.Column("window_begin", sa.String(length=16), nullable=False),
        sa.Column("window_end", sa.String(length=16), nullable=False),
        sa.Column("status", setup_status_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_exam_setup_curricular_code", "exam_setup", ["curricular_code"])
    op.create_table(
        "exam_arrangement",
        sa.Column("arrange_id", sa.String(length=40), primary_key=True, nullable=False),
        sa.Column("setup_id", sa.String(length=30), sa.ForeignKey("exam_setup.setup_id"), nullable=False),
        sa.Column("exam_no", sa.String(length=30), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("classroom", sa.String(length=30), sa.ForeignKey("classroom.name"), nullable=False),
    )
    op.create_index("ix_exam_arrangement_setup_id", "exam_arrangement", ["setup_id"])
    op.create_index("ix_exam_arrangement_exam_no", "exam_arrangement", ["exam_no"])
    op.create_index("ix_exam_arrangement_classroom", "exam_arrangement", ["classroom"])


def downgrade() -> None:
    op.drop_table("exam_arrangement")
    op.drop_table("exam_setup")
    op.drop_table("course_arrangement")
    op.drop_table("course_section")
    op.drop_table("course_setup_day")
    op.drop_table("course_setup")
    op.drop_table("curricular")
    op.drop_table("classroom")
    op.drop_table("building")
    op.drop_table("campus")
    op.drop_table("semester_date")
    op.drop_table("lesson")
    setup_status_enum.drop(op.get_bind(), checkfirst=True)
    asset_status_enum.drop(op.get_bind(), checkfirst=True)
    day_type_enum.drop(op.get_bind(), checkfirst=True)
