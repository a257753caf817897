import datetime as dt

import pytest

from fakes import FakeStore, calendar_rows, lesson_rows
from portal.arrangement.calendar import CalendarIndex
from portal.arrangement.timetable import LessonTimetable


@pytest.mark.anyio
async def test_resolve_fetches_each_weekday_once():
    store = FakeStore({"semester_date": calendar_rows(weekdays=(1, 3))})
    calendar = CalendarIndex(store)

    entry = await calendar.resolve("2026-1", 1, 2)
    assert entry.date == dt.date(2026, 9, 14)
    assert not entry.is_holiday
    assert calendar.is_loaded("2026-1", 1)

    await calendar.resolve("2026-1", 1, 3)
    assert await calendar.available_weeks("2026-1", 1) == list(range(1, 19))
    assert store.count("semester_date") == 1


@pytest.mark.anyio
async def test_holiday_entries_keep_their_name():
    calendar = CalendarIndex(FakeStore({"semester_date": calendar_rows(weekdays=(1,))}))
    entry = await calendar.resolve("2026-1", 1, 5)
    assert entry.is_holiday
    assert entry.holidayName == "National Day"


@pytest.mark.anyio
async def test_substring_matches_from_the_store_are_filtered_out():
    rows = calendar_rows(weekdays=(1,), weeks=[1])
    rows.append({**rows[0], "semester": "2026-10", "date": "2027-03-01"})
    calendar = CalendarIndex(FakeStore({"semester_date": rows}))
    entry = await calendar.resolve("2026-1", 1, 1)
    assert entry.date == dt.date(2026, 9, 7)


@pytest.mark.anyio
async def test_empty_pair_is_cached_and_resolves_to_none():
    store = FakeStore({"semester_date": []})
    calendar = CalendarIndex(store)
    assert await calendar.resolve("2026-1", 6, 1) is None
    assert calendar.is_loaded("2026-1", 6)
    assert await calendar.resolve("2026-1", 6, 2) is None
    assert store.count("semester_date") == 1


@pytest.mark.anyio
async def test_timetable_intervals_follow_lesson_grid():
    timetable = LessonTimetable(FakeStore({"lesson": lesson_rows()}))
    await timetable.load()
    assert timetable.indices() == list(range(1, 14))

    intervals = timetable.intervals(dt.date(2026, 9, 7), [2, 1])
    assert intervals == [
        (dt.datetime(2026, 9, 7, 8, 0), dt.datetime(2026, 9, 7, 8, 45)),
        (dt.datetime(2026, 9, 7, 8, 55), dt.datetime(2026, 9, 7, 9, 40)),
    ]
