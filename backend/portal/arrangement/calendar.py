from __future__ import annotations

import logging

from portal.arrangement.client import StoreClient
from portal.schemas.arrangement import CalendarEntry

logger = logging.getLogger(__name__)


class CalendarIndex:
    """Resolves (semester, weekday, week) to a calendar date.

    The first lookup for a (semester, weekday) pair fetches every week of that
    pair at once. A pair that yields no rows is cached as an empty mapping, so
    `is_loaded` stays true and resolves keep returning None.
    """

    def __init__(self, store: StoreClient) -> None:
        self._store = store
        self._weeks: dict[tuple[str, int], dict[int, CalendarEntry]] = {}

    def is_loaded(self, semester: str, weekday: int) -> bool:
        return (semester, weekday) in self._weeks

    async def _load(self, semester: str, weekday: int) -> dict[int, CalendarEntry]:
        key = (semester, weekday)
        cached = self._weeks.get(key)
        if cached is not None:
            return cached

        rows = await self._store.fetch_table(
            "semester_date",
            limit=500,
            order_by="week",
            order_dir="ASC",
            semester=semester,
            weekday=weekday,
        )
        entries: dict[int, CalendarEntry] = {}
        for row in rows:
            # The store matches search fields by substring.
            if str(row.get("semester")) != str(semester) or str(row.get("weekday")) != str(weekday):
                continue
            try:
                entry = CalendarEntry(
                    semester=semester,
                    weekday=weekday,
                    weekNumber=int(row["week"]),
                    date=row["date"],
                    dayType=row.get("day_type") or "normal",
                    holidayName=row.get("holiday_name") or None,
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed calendar row %r", row)
                continue
            entries[entry.weekNumber] = entry
        self._weeks[key] = entries
        logger.debug("Loaded %d calendar weeks for semester %s weekday %s", len(entries), semester, weekday)
        return entries

    async def resolve(self, semester: str, weekday: int, week: int) -> CalendarEntry | None:
        if not semester or not weekday or not week:
            return None
        entries = await self._load(semester, weekday)
        return entries.get(int(week))

    async def available_weeks(self, semester: str, weekday: int) -> list[int]:
        if not semester or not weekday:
            return []
        entries = await self._load(semester, weekday)
        return sorted(week for week in entries if week > 0)
