from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable

from portal.arrangement.client import StoreClient
from portal.schemas.arrangement import LessonSlot, parse_clock

logger = logging.getLogger(__name__)


class LessonTimetable:
    """Lesson index to wall-clock range, fetched once per session."""

    def __init__(self, store: StoreClient, *, lessons_per_day: int = 13) -> None:
        self._store = store
        self._lessons_per_day = lessons_per_day
        self._slots: dict[int, LessonSlot] | None = None

    @property
    def loaded(self) -> bool:
        return self._slots is not None

    async def load(self) -> dict[int, LessonSlot]:
        if self._slots is None:
            rows = await self._store.fetch_table("lesson", limit=100, order_by="lesson_no", order_dir="ASC")
            slots: dict[int, LessonSlot] = {}
            for row in rows:
                try:
                    slot = LessonSlot(
                        index=int(row["lesson_no"]),
                        begin=parse_clock(str(row["begin_time"])),
                        end=parse_clock(str(row["end_time"])),
                    )
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping malformed lesson row %r", row)
                    continue
                if slot.index <= self._lessons_per_day:
                    slots[slot.index] = slot
            self._slots = slots
        return self._slots

    def slot(self, index: int) -> LessonSlot | None:
        return (self._slots or {}).get(index)

    def indices(self) -> list[int]:
        return sorted(self._slots or {})

    def intervals(self, day: dt.date, lessons: Iterable[int]) -> list[tuple[dt.datetime, dt.datetime]]:
        """Clock intervals of `lessons` on `day`; unknown lessons are skipped."""
        result = []
        for index in sorted(set(lessons)):
            slot = self.slot(index)
            if slot is None:
                continue
            result.append((dt.datetime.combine(day, slot.begin), dt.datetime.combine(day, slot.end)))
        return result
