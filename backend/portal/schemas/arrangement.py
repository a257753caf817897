from __future__ import annotations

import re
import datetime as dt
from datetime import datetime, time
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
LESSON_PATTERN = re.compile(r"^[0-9]{2}$")
FIELD_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

DATETIME_FORMAT = "%Y-%m-%d %H:%M"


def parse_clock(value: str) -> time:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def parse_stamp(value: str | datetime) -> datetime:
    """Parse `YYYY-MM-DD HH:MM` (seconds and a `T` separator are tolerated)."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).strip().replace(" ", "T"))


def format_stamp(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def lesson_code(index: int) -> str:
    return f"{index:02d}"


# ---------------------------------------------------------------------------
# Records read through the tabular endpoint
# ---------------------------------------------------------------------------


class LessonSlot(BaseModel):
    index: int = Field(ge=1, le=13)
    begin: time
    end: time

    @model_validator(mode="after")
    def validate_order(self) -> "LessonSlot":
        if self.end <= self.begin:
            raise ValueError("Lesson end must be after its begin")
        return self


class CalendarEntry(BaseModel):
    semester: str
    weekday: int = Field(ge=1, le=7)
    weekNumber: int = Field(ge=1)
    date: dt.date
    dayType: Literal["normal", "holiday"] = "normal"
    holidayName: str | None = None

    @property
    def is_holiday(self) -> bool:
        return self.dayType == "holiday"


class OccupancyRecord(BaseModel):
    room: str
    date: dt.date
    begin: datetime
    end: datetime
    source: str = ""
    reference: str = ""


class RoomAsset(BaseModel):
    name: str
    building: str
    campus: str | None = None
    capacity: int = Field(ge=0)
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class CourseTransaction(BaseModel):
    kind: Literal["course"] = "course"
    id: str
    campus: str
    maxHeadcount: int = Field(ge=0)
    eligibleWeekdays: list[int] = Field(default_factory=list)
    courseCode: str
    semesterCode: str
    totalClassHours: int | None = None


class ExamTransaction(BaseModel):
    kind: Literal["exam"] = "exam"
    id: str
    courseCode: str
    semesterCode: str
    windowBegin: datetime | None = None
    windowEnd: datetime | None = None
    expectedHeadcount: int = Field(default=0, ge=0)
    headcountTerms: list[int] = Field(default_factory=list)

    @property
    def has_window(self) -> bool:
        return self.windowBegin is not None and self.windowEnd is not None and self.windowEnd > self.windowBegin

    @property
    def headcount_expression(self) -> str:
        if not self.headcountTerms:
            return "0=0"
        return f"{'+'.join(str(term) for term in self.headcountTerms)}={self.expectedHeadcount}"


# ---------------------------------------------------------------------------
# Transaction listing
# ---------------------------------------------------------------------------


class TransactionListRequest(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=200)
    searchId: str | None = Field(default=None, max_length=40)


class TransactionSummary(BaseModel):
    type: Literal["course", "exam"]
    id: str
    createdAt: str | None = None
    campus: str | None = None
    pmax: int | None = None
    cno: str | None = None
    seme: str | None = None
    eattri: str | None = None
    beginTime: str | None = None
    endTime: str | None = None
    summary: str = ""


class Pagination(BaseModel):
    total: int = 0
    page: int = 1
    totalPages: int = 1
    limit: int = 20


class TransactionPage(BaseModel):
    success: bool = True
    data: list[TransactionSummary] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


# ---------------------------------------------------------------------------
# Submission contracts
# ---------------------------------------------------------------------------


class CourseWeekPayload(BaseModel):
    week: int = Field(ge=1, le=255)
    lessons: list[str] = Field(default_factory=list, max_length=13)
    classroom: str = Field(min_length=1, max_length=30)

    @field_validator("classroom")
    @classmethod
    def strip_classroom(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Classroom is required")
        return cleaned

    @field_validator("lessons")
    @classmethod
    def normalize_lessons(cls, value: list[str]) -> list[str]:
        cleaned = {str(item).strip() for item in value}
        invalid = sorted(item for item in cleaned if not LESSON_PATTERN.match(item))
        if invalid:
            raise ValueError(f"Invalid lesson code(s): {', '.join(invalid)}")
        return sorted(cleaned, key=int)


class CourseSubmitRequest(BaseModel):
    courno: str = Field(min_length=1, max_length=30)
    selectedDay: int = Field(ge=1, le=7)
    perSessionLessons: int = Field(ge=1, le=13)
    weeks: list[CourseWeekPayload] = Field(min_length=1, max_length=255)

    @model_validator(mode="after")
    def validate_unique_weeks(self) -> "CourseSubmitRequest":
        numbers = [item.week for item in self.weeks]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Duplicate week")
        return self


class CourseSubmitResponse(BaseModel):
    success: bool = True
    classhour: int
    requiredWeeks: int


class ExamSubmitRequest(BaseModel):
    setupEId: str = Field(min_length=1, max_length=30)
    classrooms: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("classrooms")
    @classmethod
    def normalize_classrooms(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for item in value:
            name = str(item).strip()
            if not name:
                continue
            if len(name) > 30:
                raise ValueError("Invalid classroom")
            if name not in seen:
                seen.append(name)
        return seen


class ExamSubmitResponse(BaseModel):
    success: bool = True
    eno: str
    capacity: int
    people: int
    arrangeIds: list[str] = Field(default_factory=list)


class ExamSeatRequest(BaseModel):
    arrangeId: str = Field(min_length=1, max_length=40)

    @field_validator("arrangeId")
    @classmethod
    def strip_arrange_id(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Arrangement id is required")
        return cleaned


class ExamSeatResponse(BaseModel):
    success: bool = True
    arrangeId: str
    classroom: str
    quota: int
    added: int
    seated: int
