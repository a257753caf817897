import datetime as dt

import anyio
import pytest
from anyio import wait_all_tasks_blocked

from fakes import FakeStore, occupancy_row
from portal.arrangement.calendar import CalendarIndex
from portal.arrangement.course_state import (
    CourseArrangementState,
    CoursePlan,
    CourseStage,
    WeekSelection,
    add_week,
    assign_room,
    choose_per_session,
    choose_weekday,
    course_plan_complete,
    course_plan_issues,
    remove_week,
    toggle_lesson,
    with_available_weeks,
)
from portal.arrangement.occupancy import OccupancyResolver
from portal.arrangement.rooms import RoomCatalog
from portal.arrangement.timetable import LessonTimetable
from portal.core.exceptions import ArrangementValidationError
from portal.db.seed import HOLIDAYS, semester_day
from portal.schemas.arrangement import CalendarEntry, CourseTransaction


def course(total=13):
    return CourseTransaction(
        id="C2026CS101A",
        campus="North",
        maxHeadcount=50,
        eligibleWeekdays=[1, 3],
        courseCode="CS101",
        semesterCode="2026-1",
        totalClassHours=total,
    )


def entry(week, weekday=1):
    day = semester_day(week, weekday)
    holiday = HOLIDAYS.get(day)
    return CalendarEntry(
        semester="2026-1",
        weekday=weekday,
        weekNumber=week,
        date=day,
        dayType="holiday" if holiday else "normal",
        holidayName=holiday,
    )


def planned(total=13, per=3, weeks=(1, 2, 3, 4, 6)):
    plan = choose_weekday(CoursePlan(transaction=course(total)), 1)
    plan = with_available_weeks(plan, list(range(1, 19)))
    plan = choose_per_session(plan, per)
    for week in weeks:
        plan = add_week(plan, WeekSelection(week=week, entry=entry(week)))
    return plan


def filled(plan, room="L01"):
    for selection in plan.weeks:
        for lesson in range(1, plan.target_for(selection.week) + 1):
            plan = toggle_lesson(plan, selection.week, lesson)
        plan = assign_room(plan, selection.week, room)
    return plan


def test_plan_walks_through_every_stage():
    plan = CoursePlan(transaction=course())
    assert plan.stage == CourseStage.empty

    plan = with_available_weeks(choose_weekday(plan, 1), list(range(1, 19)))
    assert plan.stage == CourseStage.day_chosen

    plan = choose_per_session(plan, 3)
    assert plan.stage == CourseStage.session_length_chosen

    for week in (1, 2, 3, 4, 6):
        plan = add_week(plan, WeekSelection(week=week, entry=entry(week)))
    assert plan.stage == CourseStage.weeks_chosen

    plan = toggle_lesson(plan, 1, 1)
    assert plan.stage == CourseStage.per_week_filling

    plan = filled(toggle_lesson(plan, 1, 1))
    assert plan.stage == CourseStage.complete
    assert course_plan_complete(plan)
    assert course_plan_issues(plan) == []


def test_last_week_carries_the_remainder():
    plan = filled(planned())
    assert [len(selection.lessons) for selection in plan.weeks] == [3, 3, 3, 3, 1]


def test_mismatched_lesson_count_is_never_complete():
    plan = toggle_lesson(filled(planned()), 2, 3)
    assert not course_plan_complete(plan)
    assert "Week 2 needs 3 lessons (2 selected)" in course_plan_issues(plan)


def test_toggling_beyond_target_is_rejected():
    plan = toggle_lesson(planned(), 6, 1)
    with pytest.raises(ArrangementValidationError):
        toggle_lesson(plan, 6, 2)
    assert plan.week(6).lessons == frozenset({1})


def test_toggling_a_lesson_clears_the_week_room():
    plan = filled(planned())
    plan = toggle_lesson(toggle_lesson(plan, 1, 3), 1, 3)
    assert plan.week(1).room is None
    assert "Week 1 has no classroom" in course_plan_issues(plan)


def test_per_session_change_clears_only_mismatched_weeks():
    plan = filled(planned(total=7, per=3, weeks=(1, 2, 3)))
    assert [len(selection.lessons) for selection in plan.weeks] == [3, 3, 1]

    plan = choose_per_session(plan, 2)
    assert plan.week(1).lessons == frozenset() and plan.week(1).room is None
    assert plan.week(2).lessons == frozenset() and plan.week(2).room is None
    assert plan.week(3).lessons == frozenset({1})
    assert plan.week(3).room == "L01"


def test_per_session_change_drops_latest_surplus_weeks():
    plan = choose_per_session(filled(planned()), 4)
    assert plan.week_numbers == [1, 2, 3, 4]
    assert all(not selection.lessons and selection.room is None for selection in plan.weeks)


def test_weekday_switch_clears_weeks_but_keeps_session_length():
    plan = choose_weekday(filled(planned()), 3)
    assert plan.weekday == 3
    assert plan.weeks == ()
    assert plan.available_weeks == ()
    assert plan.per_session == 3


def test_ineligible_weekday_is_rejected():
    with pytest.raises(ArrangementValidationError):
        choose_weekday(CoursePlan(transaction=course()), 2)


def test_removing_the_short_week_clears_the_new_last_week():
    plan = remove_week(filled(planned()), 6)
    assert plan.week_numbers == [1, 2, 3, 4]
    assert plan.week(4).lessons == frozenset()
    assert plan.week(4).room is None
    assert all(len(plan.week(week).lessons) == 3 for week in (1, 2, 3))


def test_holiday_week_blocks_lessons_and_completion():
    plan = planned(weeks=(1, 2, 3, 4, 5))
    assert plan.week(5).is_holiday
    with pytest.raises(ArrangementValidationError, match="National Day"):
        toggle_lesson(plan, 5, 1)
    assert "Week 5 falls on National Day; no lessons can be arranged" in course_plan_issues(plan)
    assert not course_plan_complete(plan)


def test_week_selection_limits():
    plan = planned()
    with pytest.raises(ArrangementValidationError, match="Only 5 weeks"):
        add_week(plan, WeekSelection(week=7, entry=entry(7)))
    with pytest.raises(ArrangementValidationError):
        add_week(remove_week(plan, 6), WeekSelection(week=19))


def test_room_needs_lessons_first():
    with pytest.raises(ArrangementValidationError):
        assign_room(planned(), 1, "L01")


def test_unknown_class_hours_blocks_the_plan():
    plan = choose_weekday(CoursePlan(transaction=course(total=None)), 1)
    assert course_plan_issues(plan) == ["Class hours are unknown for this course"]


def make_state(store):
    return CourseArrangementState(
        course(),
        timetable=LessonTimetable(store),
        calendar=CalendarIndex(store),
        occupancy=OccupancyResolver(store),
        rooms=RoomCatalog(store),
    )


@pytest.mark.anyio
async def test_free_rooms_fit_headcount_and_skip_occupied_rooms():
    store = FakeStore()
    store.tables["room_occupancy"] = [occupancy_row("N101", dt.date(2026, 9, 7), "08:00", "08:45")]
    state = make_state(store)

    assert await state.select_weekday(1) == list(range(1, 19))
    state.set_per_session(3)
    await state.add_week(1)
    state.toggle_lesson(1, 1)

    rooms = await state.free_rooms(1)
    assert [room.name for room in rooms] == ["L01", "N102"]
    assert all(room.capacity >= 50 for room in rooms)

    with pytest.raises(ArrangementValidationError):
        await state.assign_room(1, "N201")
    assert await state.assign_room(1, "L01")
    assert state.plan.week(1).room == "L01"


@pytest.mark.anyio
async def test_complete_state_builds_wire_submission():
    state = make_state(FakeStore())
    await state.select_weekday(1)
    state.set_per_session(3)
    for week in (1, 2, 3, 4, 6):
        await state.add_week(week)
    for week in (1, 2, 3, 4, 6):
        for lesson in range(1, state.plan.target_for(week) + 1):
            state.toggle_lesson(week, lesson)
        assert await state.assign_room(week, "N102")

    assert state.is_complete
    request = state.to_submission()
    assert request.courno == "C2026CS101A"
    assert request.selectedDay == 1
    assert request.perSessionLessons == 3
    assert [item.week for item in request.weeks] == [1, 2, 3, 4, 6]
    assert request.weeks[0].lessons == ["01", "02", "03"]
    assert request.weeks[-1].lessons == ["01"]
    assert state.booked_dates()[0] == dt.date(2026, 9, 7)


@pytest.mark.anyio
async def test_incomplete_state_refuses_submission():
    state = make_state(FakeStore())
    await state.select_weekday(1)
    with pytest.raises(ArrangementValidationError, match="Choose lessons per session"):
        state.to_submission()


@pytest.mark.anyio
async def test_weeks_for_a_superseded_weekday_are_discarded():
    store = FakeStore()
    store.gates["semester_date"] = anyio.Event()
    state = make_state(store)
    results = {}

    async def pick(day):
        results[day] = await state.select_weekday(day)

    async with anyio.create_task_group() as tg:
        tg.start_soon(pick, 1)
        await wait_all_tasks_blocked()
        tg.start_soon(pick, 3)
        await wait_all_tasks_blocked()
        store.gates["semester_date"].set()

    assert results[1] is None
    assert results[3] == list(range(1, 19))
    assert state.plan.weekday == 3


@pytest.mark.anyio
async def test_free_rooms_for_a_changed_lesson_set_are_discarded():
    store = FakeStore()
    state = make_state(store)
    await state.select_weekday(1)
    state.set_per_session(3)
    await state.add_week(1)
    state.toggle_lesson(1, 1)

    store.gates["room_occupancy"] = anyio.Event()
    results = {}

    async def look():
        results["rooms"] = await state.free_rooms(1)

    async with anyio.create_task_group() as tg:
        tg.start_soon(look)
        await wait_all_tasks_blocked()
        state.toggle_lesson(1, 1)
        store.gates["room_occupancy"].set()

    assert results["rooms"] is None


@pytest.mark.anyio
async def test_recheck_drops_rooms_taken_meanwhile():
    store = FakeStore()
    state = make_state(store)
    await state.select_weekday(1)
    state.set_per_session(3)
    await state.add_week(1)
    state.toggle_lesson(1, 1)
    assert await state.assign_room(1, "L01")

    store.tables["room_occupancy"] = [occupancy_row("L01", dt.date(2026, 9, 7), "08:00", "08:45")]
    state._occupancy.invalidate([dt.date(2026, 9, 7)])

    assert await state.recheck_rooms() == [1]
    assert state.plan.week(1).room is None
