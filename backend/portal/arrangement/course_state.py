"""Course arrangement: weekday, session length, weeks, lessons and rooms.

The plan is an immutable snapshot. Every user action goes through one of the
pure transition functions below, which return a new snapshot; completeness is
then read straight off that snapshot. `CourseArrangementState` wraps the
transitions with the lookups (calendar, occupancy, rooms) they depend on.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace
from enum import Enum

from portal.arrangement.calendar import CalendarIndex
from portal.arrangement.occupancy import OccupancyResolver, free_course_rooms
from portal.arrangement.planner import SessionRequirement, plan_sessions
from portal.arrangement.rooms import RoomCatalog
from portal.arrangement.timetable import LessonTimetable
from portal.core.exceptions import ArrangementValidationError
from portal.schemas.arrangement import (
    CalendarEntry,
    CourseSubmitRequest,
    CourseTransaction,
    CourseWeekPayload,
    RoomAsset,
    lesson_code,
)

logger = logging.getLogger(__name__)


class CourseStage(str, Enum):
    empty = "empty"
    day_chosen = "day_chosen"
    session_length_chosen = "session_length_chosen"
    weeks_chosen = "weeks_chosen"
    per_week_filling = "per_week_filling"
    complete = "complete"


@dataclass(frozen=True)
class WeekSelection:
    week: int
    entry: CalendarEntry | None = None
    lessons: frozenset[int] = frozenset()
    room: str | None = None

    @property
    def is_holiday(self) -> bool:
        return self.entry is not None and self.entry.is_holiday

    @property
    def date(self) -> dt.date | None:
        return self.entry.date if self.entry is not None else None

    def cleared(self) -> "WeekSelection":
        return replace(self, lessons=frozenset(), room=None)


@dataclass(frozen=True)
class CoursePlan:
    transaction: CourseTransaction | None = None
    weekday: int | None = None
    per_session: int = 0
    weeks: tuple[WeekSelection, ...] = ()
    available_weeks: tuple[int, ...] = ()

    @property
    def requirement(self) -> SessionRequirement | None:
        if self.transaction is None or not self.transaction.totalClassHours or self.per_session <= 0:
            return None
        return plan_sessions(self.transaction.totalClassHours, self.per_session)

    @property
    def week_numbers(self) -> list[int]:
        return [selection.week for selection in self.weeks]

    def week(self, number: int) -> WeekSelection | None:
        for selection in self.weeks:
            if selection.week == number:
                return selection
        return None

    def target_for(self, number: int) -> int | None:
        requirement = self.requirement
        if requirement is None:
            return None
        for position, selection in enumerate(self.weeks):
            if selection.week == number:
                return requirement.target_for(position, len(self.weeks))
        return None

    @property
    def stage(self) -> CourseStage:
        if self.transaction is None or self.weekday is None:
            return CourseStage.empty
        requirement = self.requirement
        if requirement is None:
            return CourseStage.day_chosen
        if len(self.weeks) < requirement.required_weeks:
            return CourseStage.session_length_chosen
        if course_plan_complete(self):
            return CourseStage.complete
        if any(selection.lessons or selection.room for selection in self.weeks):
            return CourseStage.per_week_filling
        return CourseStage.weeks_chosen


def _with_weeks(plan: CoursePlan, weeks: list[WeekSelection]) -> CoursePlan:
    return replace(plan, weeks=tuple(sorted(weeks, key=lambda selection: selection.week)))


def _drop_overfull_weeks(plan: CoursePlan) -> CoursePlan:
    # Adding or removing a week can change which week is last and so its target.
    requirement = plan.requirement
    if requirement is None:
        return plan
    weeks = []
    for position, selection in enumerate(plan.weeks):
        target = requirement.target_for(position, len(plan.weeks))
        weeks.append(selection.cleared() if len(selection.lessons) > target else selection)
    return replace(plan, weeks=tuple(weeks))


def choose_weekday(plan: CoursePlan, weekday: int) -> CoursePlan:
    if plan.transaction is None:
        raise ArrangementValidationError("No course transaction selected")
    if weekday not in plan.transaction.eligibleWeekdays:
        raise ArrangementValidationError(f"Weekday {weekday} is not an intended day for this course")
    if plan.weekday == weekday:
        return plan
    return replace(plan, weekday=weekday, weeks=(), available_weeks=())


def with_available_weeks(plan: CoursePlan, weeks: list[int]) -> CoursePlan:
    available = tuple(sorted(set(weeks)))
    kept = [selection for selection in plan.weeks if selection.week in available]
    return _drop_overfull_weeks(_with_weeks(replace(plan, available_weeks=available), kept))


def choose_per_session(plan: CoursePlan, per_session: int, *, lessons_per_day: int = 13) -> CoursePlan:
    if per_session < 1 or per_session > lessons_per_day:
        raise ArrangementValidationError(f"Lessons per session must be between 1 and {lessons_per_day}")
    if plan.per_session == per_session:
        return plan
    updated = replace(plan, per_session=per_session)
    requirement = updated.requirement
    if requirement is None:
        return updated

    kept = list(updated.weeks[: requirement.required_weeks])
    weeks = []
    for position, selection in enumerate(kept):
        target = requirement.target_for(position, len(kept))
        if selection.lessons and len(selection.lessons) != target:
            selection = selection.cleared()
        weeks.append(selection)
    return replace(updated, weeks=tuple(weeks))


def add_week(plan: CoursePlan, selection: WeekSelection) -> CoursePlan:
    requirement = plan.requirement
    if plan.weekday is None or requirement is None:
        raise ArrangementValidationError("Choose a weekday and lessons per session first")
    if selection.week not in plan.available_weeks:
        raise ArrangementValidationError(f"Week {selection.week} is not available for this weekday")
    if plan.week(selection.week) is not None:
        return plan
    if len(plan.weeks) >= requirement.required_weeks:
        raise ArrangementValidationError(f"Only {requirement.required_weeks} weeks are required")
    return _drop_overfull_weeks(_with_weeks(plan, [*plan.weeks, selection.cleared()]))


def remove_week(plan: CoursePlan, week: int) -> CoursePlan:
    remaining = [selection for selection in plan.weeks if selection.week != week]
    return _drop_overfull_weeks(_with_weeks(plan, remaining))


def toggle_lesson(plan: CoursePlan, week: int, lesson: int, *, lessons_per_day: int = 13) -> CoursePlan:
    selection = plan.week(week)
    if selection is None:
        raise ArrangementValidationError(f"Week {week} is not selected")
    if selection.is_holiday:
        raise ArrangementValidationError(_holiday_message(selection))
    if lesson < 1 or lesson > lessons_per_day:
        raise ArrangementValidationError(f"Lesson {lesson} does not exist")
    target = plan.target_for(week)
    if target is None:
        raise ArrangementValidationError("Choose lessons per session first")

    lessons = set(selection.lessons)
    if lesson in lessons:
        lessons.discard(lesson)
    elif len(lessons) >= target:
        raise ArrangementValidationError(f"Week {week} already holds {target} lessons")
    else:
        lessons.add(lesson)
    # Room eligibility was computed against the previous lesson set.
    updated = replace(selection, lessons=frozenset(lessons), room=None)
    return _with_weeks(plan, [updated if item.week == week else item for item in plan.weeks])


def assign_room(plan: CoursePlan, week: int, room: str | None) -> CoursePlan:
    selection = plan.week(week)
    if selection is None:
        raise ArrangementValidationError(f"Week {week} is not selected")
    if room is not None and (selection.is_holiday or not selection.lessons):
        raise ArrangementValidationError(f"Choose lessons for week {week} before its classroom")
    updated = replace(selection, room=room)
    return _with_weeks(plan, [updated if item.week == week else item for item in plan.weeks])


def _holiday_message(selection: WeekSelection) -> str:
    name = selection.entry.holidayName if selection.entry is not None else None
    return f"Week {selection.week} falls on {name or 'a holiday'}; no lessons can be arranged"


def course_plan_issues(plan: CoursePlan) -> list[str]:
    if plan.transaction is None:
        return ["No course transaction selected"]
    if not plan.transaction.totalClassHours:
        return ["Class hours are unknown for this course"]
    issues: list[str] = []
    if plan.weekday is None:
        issues.append("Choose a weekday")
    requirement = plan.requirement
    if requirement is None:
        issues.append("Choose lessons per session")
        return issues
    if len(plan.weeks) != requirement.required_weeks:
        issues.append(f"Select {requirement.required_weeks} weeks ({len(plan.weeks)} selected)")
    for position, selection in enumerate(plan.weeks):
        if selection.is_holiday:
            issues.append(_holiday_message(selection))
            continue
        target = requirement.target_for(position, len(plan.weeks))
        if len(selection.lessons) != target:
            issues.append(f"Week {selection.week} needs {target} lessons ({len(selection.lessons)} selected)")
        elif not selection.room:
            issues.append(f"Week {selection.week} has no classroom")
    return issues


def course_plan_complete(plan: CoursePlan) -> bool:
    return not course_plan_issues(plan)


class CourseArrangementState:
    """Drives one course transaction's plan against the session's lookups."""

    def __init__(
        self,
        transaction: CourseTransaction,
        *,
        timetable: LessonTimetable,
        calendar: CalendarIndex,
        occupancy: OccupancyResolver,
        rooms: RoomCatalog,
        lessons_per_day: int = 13,
    ) -> None:
        self._timetable = timetable
        self._calendar = calendar
        self._occupancy = occupancy
        self._rooms = rooms
        self._lessons_per_day = lessons_per_day
        self._plan = CoursePlan(transaction=transaction)
        # Bumped whenever the weekday or session length changes.
        self._generation = 0

    @property
    def plan(self) -> CoursePlan:
        return self._plan

    @property
    def transaction(self) -> CourseTransaction:
        return self._plan.transaction

    @property
    def stage(self) -> CourseStage:
        return self._plan.stage

    @property
    def is_complete(self) -> bool:
        return course_plan_complete(self._plan)

    def issues(self) -> list[str]:
        return course_plan_issues(self._plan)

    async def select_weekday(self, weekday: int) -> list[int] | None:
        updated = choose_weekday(self._plan, weekday)
        if updated is not self._plan:
            self._generation += 1
            self._plan = updated
        generation = self._generation

        weeks = await self._calendar.available_weeks(self.transaction.semesterCode, weekday)
        if generation != self._generation:
            logger.debug("Discarding weeks for weekday %s: selection changed", weekday)
            return None
        self._plan = with_available_weeks(self._plan, weeks)
        return list(self._plan.available_weeks)

    def set_per_session(self, per_session: int) -> SessionRequirement | None:
        updated = choose_per_session(self._plan, per_session, lessons_per_day=self._lessons_per_day)
        if updated is not self._plan:
            self._generation += 1
            self._plan = updated
        return self._plan.requirement

    async def add_week(self, week: int) -> WeekSelection | None:
        # Validate before the lookup so rejections don't cost a round trip.
        add_week(self._plan, WeekSelection(week=week))
        generation = self._generation
        entry = await self._calendar.resolve(self.transaction.semesterCode, self._plan.weekday, week)
        if generation != self._generation:
            logger.debug("Discarding week %s: selection changed", week)
            return None
        self._plan = add_week(self._plan, WeekSelection(week=week, entry=entry))
        return self._plan.week(week)

    def remove_week(self, week: int) -> None:
        self._plan = remove_week(self._plan, week)

    def toggle_lesson(self, week: int, lesson: int) -> WeekSelection:
        self._plan = toggle_lesson(self._plan, week, lesson, lessons_per_day=self._lessons_per_day)
        return self._plan.week(week)

    def _selection_token(self, week: int) -> tuple:
        selection = self._plan.week(week)
        return (self._generation, selection.lessons if selection else None)

    async def free_rooms(self, week: int) -> list[RoomAsset] | None:
        """Campus rooms big enough and free for the week's lessons; None when stale."""
        selection = self._plan.week(week)
        if selection is None or selection.is_holiday or not selection.lessons or selection.date is None:
            return []
        token = self._selection_token(week)

        await self._timetable.load()
        intervals = self._timetable.intervals(selection.date, selection.lessons)
        rooms = await self._rooms.campus_rooms(self.transaction.campus)
        occupied = await self._occupancy.occupied_rooms(selection.date, intervals)
        if token != self._selection_token(week):
            logger.debug("Discarding free rooms for week %s: selection changed", week)
            return None
        return free_course_rooms(rooms, occupied, self.transaction.maxHeadcount)

    async def assign_room(self, week: int, room: str) -> bool:
        token = self._selection_token(week)
        candidates = await self.free_rooms(week)
        if candidates is None or token != self._selection_token(week):
            return False
        if room not in {candidate.name for candidate in candidates}:
            raise ArrangementValidationError(f"Classroom {room} is not available for week {week}")
        self._plan = assign_room(self._plan, week, room)
        return True

    def clear_room(self, week: int) -> None:
        self._plan = assign_room(self._plan, week, None)

    async def recheck_rooms(self) -> list[int]:
        """Drop rooms that fresh occupancy shows as taken; returns the affected weeks."""
        dropped = []
        for selection in self._plan.weeks:
            if not selection.room:
                continue
            candidates = await self.free_rooms(selection.week)
            if candidates is None:
                continue
            if selection.room not in {candidate.name for candidate in candidates}:
                self.clear_room(selection.week)
                dropped.append(selection.week)
        return dropped

    def booked_dates(self) -> list[dt.date]:
        return sorted({selection.date for selection in self._plan.weeks if selection.date is not None})

    def to_submission(self) -> CourseSubmitRequest:
        issues = self.issues()
        if issues:
            raise ArrangementValidationError(issues[0], details={"issues": issues})
        return CourseSubmitRequest(
            courno=self.transaction.id,
            selectedDay=self._plan.weekday,
            perSessionLessons=self._plan.per_session,
            weeks=[
                CourseWeekPayload(
                    week=selection.week,
                    lessons=[lesson_code(index) for index in sorted(selection.lessons)],
                    classroom=selection.room,
                )
                for selection in self._plan.weeks
            ],
        )
