"""Demo campus, calendar and pending setups for local runs and tests."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db.bootstrap import seed_default_lessons
from portal.models import (
    AssetStatus,
    Building,
    Campus,
    Classroom,
    CourseSection,
    CourseSetup,
    CourseSetupDay,
    Curricular,
    DayType,
    ExamSetup,
    SectionEnrollment,
    SemesterDate,
    SetupStatus,
)

SEMESTER = "2026-1"
SEMESTER_START = dt.date(2026, 9, 7)
SEMESTER_WEEKS = 18
HOLIDAYS: dict[dt.date, str] = {
    SEMESTER_START + dt.timedelta(days=offset): "National Day" for offset in range(24, 31)
}

CAMPUSES = ["North", "South"]
BUILDINGS = {
    "Science Hall": "North",
    "Library Annex": "North",
    "Engineering Hall": "South",
}
CLASSROOMS = [
    ("N101", "Science Hall", 60, AssetStatus.active),
    ("N102", "Science Hall", 120, AssetStatus.active),
    ("N201", "Science Hall", 40, AssetStatus.active),
    ("L01", "Library Annex", 80, AssetStatus.active),
    ("S101", "Engineering Hall", 100, AssetStatus.active),
    ("S102", "Engineering Hall", 200, AssetStatus.inactive),
]
CURRICULARS = [
    ("CS101", "Programming Foundations", 13),
    ("MA201", "Linear Algebra", 12),
    ("PH110", "General Physics", 16),
]
COURSE_SETUPS = [
    ("C2026CS101A", "CS101", "North", 50, [1, 3]),
    ("C2026MA201A", "MA201", "South", 90, [2, 4]),
]
SECTIONS = [
    ("S2025CS101A", "CS101", 45),
    ("S2025CS101B", "CS101", 38),
]
EXAM_SETUPS = [
    ("E2026CS101", "CS101", "EX-CS101-01", "2026-12-28 09:00", "2026-12-28 11:00"),
    ("E2026PH110", "PH110", "EX-PH110-01", "2026-12-29 14:00", "2026-12-29 16:00"),
]


def semester_day(week: int, weekday: int) -> dt.date:
    return SEMESTER_START + dt.timedelta(days=(week - 1) * 7 + weekday - 1)


def upsert_calendar(session: Session) -> None:
    for week in range(1, SEMESTER_WEEKS + 1):
        for weekday in range(1, 8):
            day = semester_day(week, weekday)
            holiday = HOLIDAYS.get(day)
            row = session.get(SemesterDate, day.isoformat())
            if row is None:
                row = SemesterDate(date=day.isoformat())
                session.add(row)
            row.semester = SEMESTER
            row.weekday = weekday
            row.week = week
            row.day_type = DayType.holiday if holiday else DayType.normal
            row.holiday_name = holiday


def upsert_campus(session: Session) -> None:
    for name in CAMPUSES:
        if session.get(Campus, name) is None:
            session.add(Campus(name=name, status=AssetStatus.active))
    session.flush()
    for name, campus in BUILDINGS.items():
        building = session.get(Building, name)
        if building is None:
            session.add(Building(name=name, campus=campus))
        else:
            building.campus = campus
    session.flush()
    for name, building, capacity, status in CLASSROOMS:
        room = session.get(Classroom, name)
        if room is None:
            session.add(Classroom(name=name, building=building, capacity=capacity, status=status))
        else:
            room.building = building
            room.capacity = capacity
            room.status = status


def upsert_setups(session: Session) -> None:
    for code, name, class_hours in CURRICULARS:
        curricular = session.get(Curricular, code)
        if curricular is None:
            session.add(Curricular(code=code, name=name, class_hours=class_hours))
        else:
            curricular.name = name
            curricular.class_hours = class_hours
    session.flush()

    base_time = dt.datetime(2026, 8, 20, 9, 0, tzinfo=dt.timezone.utc)
    for offset, (course_no, code, campus, max_headcount, weekdays) in enumerate(COURSE_SETUPS):
        if session.get(CourseSetup, course_no) is not None:
            continue
        session.add(
            CourseSetup(
                course_no=course_no,
                curricular_code=code,
                semester=SEMESTER,
                campus=campus,
                max_headcount=max_headcount,
                status=SetupStatus.pending,
                created_at=base_time + dt.timedelta(hours=offset),
            )
        )
        session.flush()
        for weekday in weekdays:
            session.add(CourseSetupDay(course_no=course_no, weekday=weekday))

    for section_no, code, enrolled in SECTIONS:
        if session.get(CourseSection, section_no) is None:
            session.add(
                CourseSection(
                    section_no=section_no,
                    curricular_code=code,
                    semester=SEMESTER,
                    max_headcount=max(enrolled, 60),
                    enrolled=enrolled,
                )
            )

    for offset, (setup_id, code, exam_no, window_begin, window_end) in enumerate(EXAM_SETUPS):
        if session.get(ExamSetup, setup_id) is not None:
            continue
        session.add(
            ExamSetup(
                setup_id=setup_id,
                curricular_code=code,
                semester=SEMESTER,
                exam_no=exam_no,
                window_begin=window_begin,
                window_end=window_end,
                status=SetupStatus.pending,
                created_at=base_time + dt.timedelta(days=1, hours=offset),
            )
        )


def roster(section_no: str, enrolled: int) -> list[str]:
    return [f"{section_no[1:]}-{index:03d}" for index in range(1, enrolled + 1)]


def upsert_rosters(session: Session) -> None:
    for section_no, _, enrolled in SECTIONS:
        existing = set(
            session.execute(
                select(SectionEnrollment.student_no).where(SectionEnrollment.section_no == section_no)
            ).scalars()
        )
        for student_no in roster(section_no, enrolled):
            if student_no not in existing:
                session.add(SectionEnrollment(section_no=section_no, student_no=student_no))


def seed_demo_data(session: Session) -> dict[str, int]:
    seed_default_lessons(session)
    upsert_campus(session)
    upsert_calendar(session)
    upsert_setups(session)
    session.flush()
    upsert_rosters(session)
    session.flush()
    return {
        "classrooms": len(session.execute(select(Classroom.name)).all()),
        "calendar_days": len(session.execute(select(SemesterDate.date)).all()),
        "course_setups": len(session.execute(select(CourseSetup.course_no)).all()),
        "exam_setups": len(session.execute(select(ExamSetup.setup_id)).all()),
        "enrollments": len(session.execute(select(SectionEnrollment.id)).all()),
    }
