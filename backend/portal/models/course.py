import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from portal.db.base import Base


class SetupStatus(str, Enum):
    pending = "pending"
    arranged = "arranged"


class Curricular(Base):
    __tablename__ = "curricular"

    code: Mapped[str] = mapped_column(String(10), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    class_hours: Mapped[int] = mapped_column(Integer, nullable=False)


class CourseSetup(Base):
    __tablename__ = "course_setup"

    course_no: Mapped[str] = mapped_column(String(30), primary_key=True)
    curricular_code: Mapped[str] = mapped_column(ForeignKey("curricular.code"), index=True, nullable=False)
    semester: Mapped[str] = mapped_column(String(10), nullable=False)
    campus: Mapped[str] = mapped_column(ForeignKey("campus.name"), nullable=False)
    max_headcount: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[SetupStatus] = mapped_column(SAEnum(SetupStatus, name="setup_status"), nullable=False, default=SetupStatus.pending)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class CourseSetupDay(Base):
    __tablename__ = "course_setup_day"
    __table_args__ = (UniqueConstraint("course_no", "weekday", name="uq_course_setup_day"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_no: Mapped[str] = mapped_column(ForeignKey("course_setup.course_no", ondelete="CASCADE"), index=True, nullable=False)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)


class CourseSection(Base):
    __tablename__ = "course_section"

    section_no: Mapped[str] = mapped_column(String(30), primary_key=True)
    curricular_code: Mapped[str] = mapped_column(ForeignKey("curricular.code"), index=True, nullable=False)
    semester: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    max_headcount: Mapped[int] = mapped_column(Integer, nullable=False)
    enrolled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseArrangement(Base):
    __tablename__ = "course_arrangement"
    __table_args__ = (UniqueConstraint("course_no", "class_hour_no", name="uq_course_arrangement_hour"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_no: Mapped[str] = mapped_column(ForeignKey("course_setup.course_no"), index=True, nullable=False)
    class_hour_no: Mapped[int] = mapped_column(Integer, nullable=False)
    lesson_no: Mapped[int] = mapped_column(ForeignKey("lesson.lesson_no"), nullable=False)
    date: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    classroom: Mapped[str] = mapped_column(ForeignKey("classroom.name"), index=True, nullable=False)


class SectionEnrollment(Base):
    __tablename__ = "section_enrollment"
    __table_args__ = (UniqueConstraint("section_no", "student_no", name="uq_section_enrollment"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_no: Mapped[str] = mapped_column(ForeignKey("course_section.section_no", ondelete="CASCADE"), index=True, nullable=False)
    student_no: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
