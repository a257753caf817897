import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from portal.db.base import Base
from portal.models.course import SetupStatus


class ExamSetup(Base):
    __tablename__ = "exam_setup"

    setup_id: Mapped[str] = mapped_column(String(30), primary_key=True)
    curricular_code: Mapped[str] = mapped_column(ForeignKey("curricular.code"), index=True, nullable=False)
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    exam_no: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    kind: Mapped[str] = mapped_column(String(30), nullable=False, default="closed-book")
    window_begin: Mapped[str] = mapped_column(String(16), nullable=False)
    window_end: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[SetupStatus] = mapped_column(SAEnum(SetupStatus, name="setup_status"), nullable=False, default=SetupStatus.pending)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class ExamArrangement(Base):
    __tablename__ = "exam_arrangement"

    arrange_id: Mapped[str] = mapped_column(String(40), primary_key=True)
    setup_id: Mapped[str] = mapped_column(ForeignKey("exam_setup.setup_id"), index=True, nullable=False)
    exam_no: Mapped[str] = mapped_column(String(30), index=True, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    classroom: Mapped[str] = mapped_column(ForeignKey("classroom.name"), index=True, nullable=False)


class ExamSeat(Base):
    __tablename__ = "exam_seat"
    __table_args__ = (
        UniqueConstraint("arrange_id", "seat_no", name="uq_exam_seat_room_seat"),
        UniqueConstraint("exam_no", "student_no", name="uq_exam_seat_student"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    arrange_id: Mapped[str] = mapped_column(ForeignKey("exam_arrangement.arrange_id", ondelete="CASCADE"), index=True, nullable=False)
    exam_no: Mapped[str] = mapped_column(String(30), index=True, nullable=False)
    student_no: Mapped[str] = mapped_column(String(20), nullable=False)
    seat_no: Mapped[int] = mapped_column(Integer, nullable=False)
