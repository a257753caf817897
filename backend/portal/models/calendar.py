from enum import Enum

from sqlalchemy import Enum as SAEnum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from portal.db.base import Base


class DayType(str, Enum):
    normal = "normal"
    holiday = "holiday"


class Lesson(Base):
    __tablename__ = "lesson"

    lesson_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    begin_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)


class SemesterDate(Base):
    __tablename__ = "semester_date"
    __table_args__ = (UniqueConstraint("semester", "weekday", "week", name="uq_semester_date_slot"),)

    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    semester: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    day_type: Mapped[DayType] = mapped_column(SAEnum(DayType, name="day_type"), nullable=False, default=DayType.normal)
    holiday_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
