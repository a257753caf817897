from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, Sequence

from portal.arrangement.client import StoreClient
from portal.schemas.arrangement import OccupancyRecord, RoomAsset, parse_stamp

logger = logging.getLogger(__name__)

Interval = tuple[dt.datetime, dt.datetime]


def intervals_overlap(a_begin: dt.datetime, a_end: dt.datetime, b_begin: dt.datetime, b_end: dt.datetime) -> bool:
    # Half-open intervals: back-to-back lessons never conflict.
    return a_begin < b_end and a_end > b_begin


class OccupancyResolver:
    """Per-date cache of room bookings with overlap queries on top."""

    def __init__(self, store: StoreClient) -> None:
        self._store = store
        self._by_date: dict[dt.date, list[OccupancyRecord]] = {}

    def is_cached(self, day: dt.date) -> bool:
        return day in self._by_date

    async def records(self, day: dt.date) -> list[OccupancyRecord]:
        cached = self._by_date.get(day)
        if cached is not None:
            return cached

        rows = await self._store.fetch_table("room_occupancy", limit=2000, date=day.isoformat())
        records: list[OccupancyRecord] = []
        for row in rows:
            if str(row.get("date", ""))[:10] != day.isoformat():
                continue
            try:
                records.append(
                    OccupancyRecord(
                        room=str(row["room"]),
                        date=day,
                        begin=parse_stamp(row["begin"]),
                        end=parse_stamp(row["end"]),
                        source=str(row.get("source") or ""),
                        reference=str(row.get("reference") or ""),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed occupancy row %r", row)
        self._by_date[day] = records
        return records

    async def occupied_rooms(self, day: dt.date, intervals: Sequence[Interval]) -> set[str]:
        if not intervals:
            return set()
        occupied: set[str] = set()
        for record in await self.records(day):
            if any(intervals_overlap(record.begin, record.end, begin, end) for begin, end in intervals):
                occupied.add(record.room)
        return occupied

    def invalidate(self, days: Iterable[dt.date]) -> None:
        for day in days:
            self._by_date.pop(day, None)

    def clear(self) -> None:
        self._by_date.clear()


def free_course_rooms(rooms: Iterable[RoomAsset], occupied: set[str], required_headcount: int) -> list[RoomAsset]:
    """Unoccupied rooms large enough for the course, tightest fit first."""
    free = [
        room
        for room in rooms
        if room.is_active and room.name not in occupied and room.capacity >= required_headcount
    ]
    return sorted(free, key=lambda room: (room.capacity, room.name))


def free_exam_rooms(rooms: Iterable[RoomAsset], occupied: set[str]) -> list[RoomAsset]:
    """Unoccupied rooms, largest first."""
    free = [room for room in rooms if room.is_active and room.name not in occupied]
    return sorted(free, key=lambda room: (-room.capacity, room.name))
