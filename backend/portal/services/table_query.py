from __future__ import annotations

import math
from typing import Any, Mapping

from sqlalchemy import String, cast, func, literal, select, union_all
from sqlalchemy.sql.expression import FromClause
from sqlalchemy.orm import Session

from portal.core.exceptions import ArrangementValidationError, ResourceNotFoundError
from portal.models import (
    Building,
    Campus,
    Classroom,
    CourseArrangement,
    CourseSection,
    CourseSetup,
    CourseSetupDay,
    Curricular,
    ExamArrangement,
    ExamSeat,
    ExamSetup,
    Lesson,
    SectionEnrollment,
    SemesterDate,
)
from portal.schemas.arrangement import FIELD_PATTERN

SEARCH_PREFIX = "search_"


def room_occupancy_view() -> FromClause:
    """Every booking that blocks a room: course lessons plus exam windows.

    Course rows combine the arrangement date with the lesson clock times, exam
    rows reuse the exam window, so both expose `begin`/`end` as
    `YYYY-MM-DD HH:MM` strings that compare correctly as text.
    """
    course_rows = select(
        CourseArrangement.classroom.label("room"),
        CourseArrangement.date.label("date"),
        (CourseArrangement.date + literal(" ") + Lesson.begin_time).label("begin"),
        (CourseArrangement.date + literal(" ") + Lesson.end_time).label("end"),
        literal("course").label("source"),
        CourseArrangement.course_no.label("reference"),
    ).join(Lesson, Lesson.lesson_no == CourseArrangement.lesson_no)
    exam_rows = select(
        ExamArrangement.classroom.label("room"),
        func.substr(ExamSetup.window_begin, 1, 10).label("date"),
        ExamSetup.window_begin.label("begin"),
        ExamSetup.window_end.label("end"),
        literal("exam").label("source"),
        ExamArrangement.exam_no.label("reference"),
    ).join(ExamSetup, ExamSetup.setup_id == ExamArrangement.setup_id)
    return union_all(course_rows, exam_rows).subquery("room_occupancy")


TABLES: dict[str, Any] = {
    "lesson": Lesson.__table__,
    "semester_date": SemesterDate.__table__,
    "campus": Campus.__table__,
    "building": Building.__table__,
    "classroom": Classroom.__table__,
    "curricular": Curricular.__table__,
    "course_setup": CourseSetup.__table__,
    "course_setup_day": CourseSetupDay.__table__,
    "course_section": CourseSection.__table__,
    "section_enrollment": SectionEnrollment.__table__,
    "course_arrangement": CourseArrangement.__table__,
    "exam_setup": ExamSetup.__table__,
    "exam_arrangement": ExamArrangement.__table__,
    "exam_seat": ExamSeat.__table__,
    "room_occupancy": room_occupancy_view,
}


def resolve_table(table_name: str) -> FromClause:
    if not table_name or not FIELD_PATTERN.match(table_name):
        raise ArrangementValidationError("Invalid table name format.")
    source = TABLES.get(table_name)
    if source is None:
        raise ResourceNotFoundError("Table", table_name)
    return source() if callable(source) else source


def list_table(
    db: Session,
    *,
    table_name: str,
    page: int = 1,
    limit: int = 20,
    max_limit: int = 2000,
    order_by: str | None = None,
    order_dir: str | None = None,
    search: Mapping[str, str] | None = None,
) -> dict:
    table = resolve_table(table_name)
    page = max(1, page)
    limit = min(max(1, limit), max_limit)

    conditions = []
    for field, value in (search or {}).items():
        if not value:
            continue
        if not FIELD_PATTERN.match(field) or field not in table.c:
            raise ArrangementValidationError(f"Unknown search field: {field}")
        conditions.append(cast(table.c[field], String).like(f"%{value}%"))

    statement = select(table).where(*conditions)
    ordering = []
    if order_by:
        if not FIELD_PATTERN.match(order_by) or order_by not in table.c:
            raise ArrangementValidationError(f"Unknown order field: {order_by}")
        column = table.c[order_by]
        ordering.append(column.desc() if (order_dir or "").upper() == "DESC" else column.asc())
    # Remaining columns break ties so consecutive pages never overlap.
    ordering.extend(column.asc() for column in table.c if column.name != order_by)
    statement = statement.order_by(*ordering)

    total = db.execute(select(func.count()).select_from(statement.subquery())).scalar_one()
    rows = db.execute(statement.limit(limit).offset((page - 1) * limit)).mappings().all()
    return {
        "success": True,
        "data": [dict(row) for row in rows],
        "pagination": {
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / limit) or 1,
            "limit": limit,
        },
    }


def search_params(query_params: Mapping[str, str]) -> dict[str, str]:
    return {
        key[len(SEARCH_PREFIX):]: value
        for key, value in query_params.items()
        if key.startswith(SEARCH_PREFIX)
    }
