import datetime as dt

import anyio
import pytest
from anyio import wait_all_tasks_blocked

from fakes import FakeStore
from portal.arrangement.course_state import CourseArrangementState
from portal.arrangement.exam_state import ExamArrangementState
from portal.arrangement.session import ArrangementSession
from portal.core.exceptions import ArrangementConflictError, ArrangementValidationError
from portal.models import CourseArrangement
from portal.schemas.arrangement import TransactionSummary

WEEKS = (1, 2, 3, 4, 6)


async def plan_course(session, room="L01"):
    page = await session.list_transactions()
    summary = next(item for item in page.data if item.id == "C2026CS101A")
    state = await session.select_transaction(summary)
    await state.select_weekday(1)
    state.set_per_session(3)
    for week in WEEKS:
        await state.add_week(week)
    for week in WEEKS:
        for lesson in range(1, state.plan.target_for(week) + 1):
            state.toggle_lesson(week, lesson)
        assert await state.assign_room(week, room)
    return state


@pytest.mark.anyio
async def test_course_is_arranged_end_to_end(store, seeded):
    session = ArrangementSession(store)
    page = await session.list_transactions()
    assert page.pagination.total == 4
    assert len(session.pending) == 4

    summary = next(item for item in page.data if item.id == "C2026CS101A")
    state = await session.select_transaction(summary)
    assert isinstance(state, CourseArrangementState)
    assert state.transaction.totalClassHours == 13
    assert state.transaction.eligibleWeekdays == [1, 3]

    assert await state.select_weekday(1) == list(range(1, 19))
    state.set_per_session(3)
    for week in (1, 2, 3, 4, 5):
        await state.add_week(week)
    assert state.plan.week(5).is_holiday
    with pytest.raises(ArrangementValidationError):
        state.toggle_lesson(5, 1)
    state.remove_week(5)
    await state.add_week(6)

    for week in WEEKS:
        for lesson in range(1, state.plan.target_for(week) + 1):
            state.toggle_lesson(week, lesson)
    rooms = await state.free_rooms(1)
    assert [room.name for room in rooms] == ["N101", "L01", "N102"]
    for week in WEEKS:
        assert await state.assign_room(week, "L01")
    assert state.is_complete

    result = await session.submit()
    assert result.class_hours == 13
    assert result.required_weeks == 5
    assert session.active is None
    assert [item.id for item in session.pending] == ["E2026PH110", "E2026CS101", "C2026MA201A"]

    # The booking is now visible to a fresh session's room lookups.
    other = ArrangementSession(store)
    records = await other.occupancy.records(dt.date(2026, 9, 7))
    assert {record.room for record in records} == {"L01"}


@pytest.mark.anyio
async def test_conflict_requires_refresh_before_resubmitting(store, seeded):
    session = ArrangementSession(store)
    state = await plan_course(session)

    # Another operator books L01 after our occupancy was fetched.
    with seeded() as db:
        db.add(CourseArrangement(course_no="C2026MA201A", class_hour_no=1, lesson_no=1, date="2026-09-14", classroom="L01"))
        db.commit()

    with pytest.raises(ArrangementConflictError, match="Classroom occupied"):
        await session.submit()
    assert session.refresh_required
    assert session.active is state
    with pytest.raises(ArrangementValidationError, match="refresh"):
        await session.submit()

    assert await session.refresh_occupancy() == [2]
    assert not session.refresh_required
    assert state.plan.week(2).room is None
    assert not state.is_complete

    assert await state.assign_room(2, "N102")
    result = await session.submit()
    assert result.class_hours == 13


@pytest.mark.anyio
async def test_zero_headcount_exam_submits_without_rooms(store, seeded):
    session = ArrangementSession(store)
    summary = TransactionSummary(type="exam", id="E2026PH110")
    state = await session.select_transaction(summary)

    assert isinstance(state, ExamArrangementState)
    assert state.transaction.expectedHeadcount == 0
    assert state.transaction.windowBegin == dt.datetime(2026, 12, 29, 14, 0)
    assert state.is_complete

    result = await session.submit()
    assert result.exam_no == "EX-PH110-01"
    assert result.arrange_ids == []


@pytest.mark.anyio
async def test_exam_is_arranged_across_campuses(store, seeded):
    session = ArrangementSession(store)
    state = await session.select_transaction(TransactionSummary(type="exam", id="E2026CS101"))
    assert state.transaction.headcountTerms == [45, 38]
    assert state.required_capacity == 249

    candidates = await state.candidates()
    assert [room.name for room in candidates] == ["N102", "S101", "L01", "N101", "N201"]
    for name in ("N102", "S101"):
        await state.toggle_room(name)
    assert not state.is_complete
    with pytest.raises(ArrangementValidationError):
        await session.submit()

    await state.toggle_room("L01")
    result = await session.submit()
    assert result.capacity == 300
    assert result.headcount == 83


@pytest.mark.anyio
async def test_short_search_queries_are_ignored(store, seeded):
    session = ArrangementSession(store)
    assert await session.search_transactions("  CS1 ") == []
    found = await session.search_transactions("C2026")
    assert sorted(item.id for item in found) == ["C2026CS101A", "C2026MA201A"]


@pytest.mark.anyio
async def test_submit_without_selection_is_refused(store):
    with pytest.raises(ArrangementValidationError, match="No transaction selected"):
        await ArrangementSession(store).submit()


@pytest.mark.anyio
async def test_superseded_selection_is_discarded():
    store = FakeStore(
        {
            "course_setup": [
                {"course_no": "C1", "curricular_code": "CS101", "semester": "2026-1", "campus": "North", "max_headcount": 50}
            ],
            "course_setup_day": [{"course_no": "C1", "weekday": 1}],
            "curricular": [{"code": "CS101", "class_hours": 13}],
            "exam_setup": [
                {
                    "setup_id": "E1",
                    "curricular_code": "CS101",
                    "semester": "2026-1",
                    "window_begin": "2026-12-28 09:00",
                    "window_end": "2026-12-28 11:00",
                }
            ],
            "course_section": [{"section_no": "S1", "curricular_code": "CS101", "semester": "2026-1", "enrolled": 30}],
        }
    )
    store.gates["course_setup"] = anyio.Event()
    session = ArrangementSession(store)
    results = {}

    async def pick(summary):
        results[summary.id] = await session.select_transaction(summary)

    async with anyio.create_task_group() as tg:
        tg.start_soon(pick, TransactionSummary(type="course", id="C1"))
        await wait_all_tasks_blocked()
        await pick(TransactionSummary(type="exam", id="E1"))
        store.gates["course_setup"].set()

    assert results["C1"] is None
    assert isinstance(results["E1"], ExamArrangementState)
    assert session.active is results["E1"]
    assert session.active.transaction.expectedHeadcount == 30


@pytest.mark.anyio
async def test_submitted_exam_seats_every_student(store, seeded):
    session = ArrangementSession(store)
    state = await session.select_transaction(TransactionSummary(type="exam", id="E2026CS101"))
    for name in ("N102", "S101", "L01"):
        await state.toggle_room(name)
    submission = await session.submit()

    results = await session.seat_exam(submission)
    assert [result.arrange_id for result in results] == submission.arrange_ids
    assert sum(result.seated for result in results) == submission.headcount == 83
    assert all(result.seated <= result.quota for result in results)

    again = await session.seat_exam(submission)
    assert [result.added for result in again] == [0, 0, 0]
