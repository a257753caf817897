"""add section rosters and exam seats

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "section_enrollment",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "section_no",
            sa.String(length=30),
            sa.ForeignKey("course_section.section_no", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_no", sa.String(length=20), nullable=False),
        sa.UniqueConstraint("section_no", "student_no", name="uq_section_enrollment"),
    )
    op.create_index("ix_section_enrollment_section_no", "section_enrollment", ["section_no"])
    op.create_index("ix_section_enrollment_student_no", "section_enrollment", ["student_no"])

    op.create_table(
        "exam_seat",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "arrange_id",
            sa.String(length=40),
            sa.ForeignKey("exam_arrangement.arrange_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exam_no", sa.String(length=30), nullable=False),
        sa.Column("student_no", sa.String(length=20), nullable=False),
        sa.Column("seat_no", sa.Integer(), nullable=False),
        sa.UniqueConstraint("arrange_id", "seat_no", name="uq_exam_seat_room_seat"),
        sa.UniqueConstraint("exam_no", "student_no", name="uq_exam_seat_student"),
    )
    op.create_index("ix_exam_seat_arrange_id", "exam_seat", ["arrange_id"])
    op.create_index("ix_exam_seat_exam_no", "exam_seat", ["exam_no"])


def downgrade() -> None:
    op.drop_index("ix_exam_seat_exam_no", table_name="exam_seat")
    op.drop_index("ix_exam_seat_arrange_id", table_name="exam_seat")
    op.drop_table("exam_seat")
    op.drop_index("ix_section_enrollment_student_no", table_name="section_enrollment")
    op.drop_index("ix_section_enrollment_section_no", table_name="section_enrollment")
    op.drop_table("section_enrollment")
