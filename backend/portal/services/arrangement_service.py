"""Authoritative booking of course and exam arrangements.

The engine's conflict view is only as fresh as its last occupancy fetch, so
every rule it enforces locally is re-checked here inside the same database
transaction that writes the booking.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portal.arrangement.planner import plan_sessions, required_exam_capacity, seats_per_room
from portal.core.exceptions import ArrangementConflictError, ArrangementValidationError, ResourceNotFoundError
from portal.models import (
    AssetStatus,
    Building,
    Classroom,
    CourseArrangement,
    CourseSection,
    CourseSetup,
    CourseSetupDay,
    Curricular,
    DayType,
    ExamArrangement,
    ExamSeat,
    ExamSetup,
    Lesson,
    SectionEnrollment,
    SemesterDate,
    SetupStatus,
)
from portal.schemas.arrangement import (
    CourseSubmitRequest,
    CourseSubmitResponse,
    ExamSeatRequest,
    ExamSeatResponse,
    ExamSubmitRequest,
    ExamSubmitResponse,
    Pagination,
    TransactionListRequest,
    TransactionPage,
    TransactionSummary,
    format_stamp,
    parse_stamp,
)
from portal.services.table_query import room_occupancy_view

logger = logging.getLogger(__name__)


def room_is_occupied(db: Session, room: str, begin: str, end: str) -> bool:
    view = room_occupancy_view()
    count = db.execute(
        select(func.count())
        .select_from(view)
        .where(view.c.room == room, view.c.begin < end, view.c.end > begin)
    ).scalar_one()
    return count > 0


def _active_classroom(db: Session, name: str) -> tuple[Classroom, str] | None:
    row = db.execute(
        select(Classroom, Building.campus)
        .join(Building, Building.name == Classroom.building)
        .where(Classroom.name == name, Classroom.status == AssetStatus.active)
        .with_for_update()
    ).first()
    if row is None:
        return None
    return row[0], row[1]


def _pending_course_setup(db: Session, course_no: str) -> CourseSetup:
    setup = db.execute(
        select(CourseSetup).where(CourseSetup.course_no == course_no).with_for_update()
    ).scalar_one_or_none()
    if setup is None:
        raise ResourceNotFoundError("Course setup", course_no)
    if setup.status != SetupStatus.pending:
        raise ArrangementValidationError("Only pending setup can be arranged")
    return setup


def arrange_course(db: Session, request: CourseSubmitRequest, *, lessons_per_day: int = 13) -> CourseSubmitResponse:
    setup = _pending_course_setup(db, request.courno)

    intended_days = set(
        db.execute(select(CourseSetupDay.weekday).where(CourseSetupDay.course_no == setup.course_no)).scalars()
    )
    if request.selectedDay not in intended_days:
        raise ArrangementValidationError("Selected day is not in intended days")

    if db.get(CourseSection, setup.course_no) is not None:
        raise ArrangementValidationError("Course already exists")

    curricular = db.get(Curricular, setup.curricular_code)
    if curricular is None:
        raise ResourceNotFoundError("Curricular", setup.curricular_code)
    requirement = plan_sessions(curricular.class_hours, request.perSessionLessons)
    if len(request.weeks) != requirement.required_weeks:
        raise ArrangementValidationError(
            "Weeks count mismatch",
            details={"expected": requirement.required_weeks, "received": len(request.weeks)},
        )

    lesson_times = {
        lesson.lesson_no: lesson
        for lesson in db.execute(select(Lesson).where(Lesson.lesson_no <= lessons_per_day)).scalars()
    }
    room_cache: dict[str, tuple[Classroom, str] | None] = {}
    slots: list[tuple[str, int, str]] = []

    weeks = sorted(request.weeks, key=lambda item: item.week)
    for position, week in enumerate(weeks):
        target = requirement.target_for(position, len(weeks))
        if len(week.lessons) != target:
            raise ArrangementValidationError(
                f"Lessons count invalid for week {week.week}",
                details={"expected": target, "received": len(week.lessons)},
            )

        calendar_day = db.execute(
            select(SemesterDate).where(
                SemesterDate.semester == setup.semester,
                SemesterDate.weekday == request.selectedDay,
                SemesterDate.week == week.week,
            )
        ).scalar_one_or_none()
        if calendar_day is None:
            raise ArrangementValidationError("Date not found for selected week/day", details={"week": week.week})
        if calendar_day.day_type == DayType.holiday:
            raise ArrangementValidationError(
                f"Week {week.week} falls on {calendar_day.holiday_name or 'a holiday'}",
                details={"week": week.week, "date": calendar_day.date},
            )

        if week.classroom not in room_cache:
            room_cache[week.classroom] = _active_classroom(db, week.classroom)
        resolved = room_cache[week.classroom]
        if resolved is None:
            raise ArrangementValidationError("Invalid classroom", details={"classroom": week.classroom})
        classroom, campus = resolved
        if campus != setup.campus:
            raise ArrangementValidationError("Classroom campus mismatch", details={"classroom": week.classroom})
        if classroom.capacity < setup.max_headcount:
            raise ArrangementValidationError("Classroom capacity not enough", details={"classroom": week.classroom})

        for code in week.lessons:
            lesson = lesson_times.get(int(code))
            if lesson is None:
                raise ArrangementValidationError("Lesson not found", details={"lesson": code})
            begin = f"{calendar_day.date} {lesson.begin_time}"
            end = f"{calendar_day.date} {lesson.end_time}"
            if room_is_occupied(db, week.classroom, begin, end):
                raise ArrangementConflictError(
                    "Classroom occupied",
                    details={"classroom": week.classroom, "date": calendar_day.date, "lesson": code},
                )
            slots.append((calendar_day.date, lesson.lesson_no, week.classroom))

    for class_hour_no, (date, lesson_no, classroom) in enumerate(slots, start=1):
        db.add(
            CourseArrangement(
                course_no=setup.course_no,
                class_hour_no=class_hour_no,
                lesson_no=lesson_no,
                date=date,
                classroom=classroom,
            )
        )
    db.add(
        CourseSection(
            section_no=setup.course_no,
            curricular_code=setup.curricular_code,
            semester=setup.semester,
            max_headcount=setup.max_headcount,
            enrolled=0,
        )
    )
    setup.status = SetupStatus.arranged
    db.flush()

    logger.info(
        "Arranged course %s on weekday %s: %d class hours over %d weeks",
        setup.course_no,
        request.selectedDay,
        len(slots),
        requirement.required_weeks,
    )
    return CourseSubmitResponse(classhour=len(slots), requiredWeeks=requirement.required_weeks)


def exam_headcount_terms(db: Session, curricular_code: str, semester: str) -> list[int]:
    return list(
        db.execute(
            select(CourseSection.enrolled)
            .where(CourseSection.curricular_code == curricular_code, CourseSection.semester == semester)
            .order_by(CourseSection.section_no)
        ).scalars()
    )


def arrange_exam(db: Session, request: ExamSubmitRequest, *, capacity_multiplier: int = 3) -> ExamSubmitResponse:
    setup = db.execute(
        select(ExamSetup).where(ExamSetup.setup_id == request.setupEId).with_for_update()
    ).scalar_one_or_none()
    if setup is None:
        raise ResourceNotFoundError("Exam setup", request.setupEId)
    if setup.status != SetupStatus.pending:
        raise ArrangementValidationError("Only pending setup can be arranged")

    try:
        window_begin = parse_stamp(setup.window_begin)
        window_end = parse_stamp(setup.window_end)
    except ValueError as exc:
        raise ArrangementValidationError("Invalid exam datetime") from exc
    if window_end <= window_begin:
        raise ArrangementValidationError("Invalid exam datetime")
    begin, end = format_stamp(window_begin), format_stamp(window_end)

    people = sum(exam_headcount_terms(db, setup.curricular_code, setup.semester))
    if people > 0 and not request.classrooms:
        raise ArrangementValidationError("Missing classrooms")

    capacity = 0
    for name in request.classrooms:
        resolved = _active_classroom(db, name)
        if resolved is None:
            raise ArrangementValidationError("Invalid classroom", details={"classroom": name})
        capacity += resolved[0].capacity

    required = required_exam_capacity(people, capacity_multiplier)
    if capacity < required:
        raise ArrangementValidationError(
            "Classroom capacity sum not enough",
            details={"capacity": capacity, "required": required},
        )

    for name in request.classrooms:
        if room_is_occupied(db, name, begin, end):
            raise ArrangementConflictError("Classroom occupied", details={"classroom": name, "begin": begin})

    last_number = db.execute(
        select(func.max(ExamArrangement.number)).where(ExamArrangement.exam_no == setup.exam_no)
    ).scalar_one_or_none()
    next_number = -1 if last_number is None else last_number
    arrange_ids: list[str] = []
    for name in request.classrooms:
        next_number += 1
        arrange_id = f"{setup.exam_no}-{next_number:03X}"
        db.add(
            ExamArrangement(
                arrange_id=arrange_id,
                setup_id=setup.setup_id,
                exam_no=setup.exam_no,
                number=next_number,
                classroom=name,
            )
        )
        arrange_ids.append(arrange_id)
    setup.status = SetupStatus.arranged
    db.flush()

    logger.info(
        "Arranged exam %s in %d room(s): capacity %d for %d people",
        setup.exam_no,
        len(arrange_ids),
        capacity,
        people,
    )
    return ExamSubmitResponse(eno=setup.exam_no, capacity=capacity, people=people, arrangeIds=arrange_ids)


def _created_key(value: datetime | None) -> float:
    return value.timestamp() if value is not None else 0.0


def list_pending_transactions(db: Session, request: TransactionListRequest) -> TransactionPage:
    course_query = select(CourseSetup).where(CourseSetup.status == SetupStatus.pending)
    exam_query = select(ExamSetup).where(ExamSetup.status == SetupStatus.pending)
    search = (request.searchId or "").strip()
    if search:
        course_query = course_query.where(CourseSetup.course_no.like(f"%{search}%"))
        exam_query = exam_query.where(ExamSetup.setup_id.like(f"%{search}%"))

    entries: list[tuple[float, TransactionSummary]] = []
    for setup in db.execute(course_query).scalars():
        entries.append(
            (
                _created_key(setup.created_at),
                TransactionSummary(
                    type="course",
                    id=setup.course_no,
                    createdAt=setup.created_at.strftime("%Y-%m-%d %H:%M:%S") if setup.created_at else None,
                    campus=setup.campus,
                    pmax=setup.max_headcount,
                    summary=f"Campus: {setup.campus}, max headcount: {setup.max_headcount}",
                ),
            )
        )
    for setup in db.execute(exam_query).scalars():
        entries.append(
            (
                _created_key(setup.created_at),
                TransactionSummary(
                    type="exam",
                    id=setup.setup_id,
                    createdAt=setup.created_at.strftime("%Y-%m-%d %H:%M:%S") if setup.created_at else None,
                    cno=setup.curricular_code,
                    seme=setup.semester,
                    eattri=setup.kind,
                    beginTime=setup.window_begin,
                    endTime=setup.window_end,
                    summary=f"Course: {setup.curricular_code}, semester: {setup.semester}, kind: {setup.kind}",
                ),
            )
        )

    entries.sort(key=lambda item: item[1].id)
    entries.sort(key=lambda item: item[0], reverse=True)
    total = len(entries)
    offset = (request.page - 1) * request.limit
    page = [summary for _, summary in entries[offset : offset + request.limit]]
    return TransactionPage(
        data=page,
        pagination=Pagination(
            total=total,
            page=request.page,
            totalPages=math.ceil(total / request.limit) or 1,
            limit=request.limit,
        ),
    )


def seat_exam_room(db: Session, request: ExamSeatRequest, *, capacity_multiplier: int = 3) -> ExamSeatResponse:
    """Seat not-yet-seated students of the exam's sections into one booked room.

    A room takes at most `ceil(capacity / multiplier)` students, numbered from
    1 in student-number order after any seats already taken. Repeating the
    call tops the room up and never moves a seated student.
    """
    arrangement = db.execute(
        select(ExamArrangement).where(ExamArrangement.arrange_id == request.arrangeId).with_for_update()
    ).scalar_one_or_none()
    if arrangement is None:
        raise ResourceNotFoundError("Exam arrangement", request.arrangeId)
    setup = db.get(ExamSetup, arrangement.setup_id)
    if setup is None:
        raise ResourceNotFoundError("Exam setup", arrangement.setup_id)
    classroom = db.get(Classroom, arrangement.classroom)
    if classroom is None or classroom.capacity <= 0:
        raise ArrangementValidationError("Invalid classroom capacity", details={"classroom": arrangement.classroom})

    quota = seats_per_room(classroom.capacity, capacity_multiplier)
    seated = db.execute(
        select(func.count()).select_from(ExamSeat).where(ExamSeat.arrange_id == arrangement.arrange_id)
    ).scalar_one()
    remaining = quota - seated
    added = 0
    if remaining > 0:
        already_seated = select(ExamSeat.student_no).where(ExamSeat.exam_no == setup.exam_no)
        candidates = db.execute(
            select(SectionEnrollment.student_no)
            .join(CourseSection, CourseSection.section_no == SectionEnrollment.section_no)
            .where(
                CourseSection.curricular_code == setup.curricular_code,
                CourseSection.semester == setup.semester,
                SectionEnrollment.student_no.not_in(already_seated),
            )
            .distinct()
            .order_by(SectionEnrollment.student_no)
            .limit(remaining)
        ).scalars().all()

        last_seat = db.execute(
            select(func.max(ExamSeat.seat_no)).where(ExamSeat.arrange_id == arrangement.arrange_id)
        ).scalar_one_or_none()
        next_seat = 1 if last_seat is None else last_seat + 1
        for student_no in candidates:
            db.add(
                ExamSeat(
                    arrange_id=arrangement.arrange_id,
                    exam_no=setup.exam_no,
                    student_no=student_no,
                    seat_no=next_seat,
                )
            )
            next_seat += 1
        added = len(candidates)
        db.flush()

    logger.info(
        "Seated %d student(s) in %s for exam %s (%d/%d)",
        added,
        arrangement.classroom,
        setup.exam_no,
        seated + added,
        quota,
    )
    return ExamSeatResponse(
        arrangeId=arrangement.arrange_id,
        classroom=arrangement.classroom,
        quota=quota,
        added=added,
        seated=seated + added,
    )
