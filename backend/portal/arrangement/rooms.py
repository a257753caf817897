from __future__ import annotations

import logging

from portal.arrangement.client import StoreClient
from portal.schemas.arrangement import RoomAsset

logger = logging.getLogger(__name__)


class RoomCatalog:
    """Active classrooms, globally and per campus through building membership."""

    def __init__(self, store: StoreClient) -> None:
        self._store = store
        self._all: list[RoomAsset] | None = None
        self._by_campus: dict[str, list[RoomAsset]] = {}

    async def all_rooms(self) -> list[RoomAsset]:
        if self._all is None:
            rows = await self._store.fetch_table("classroom", limit=2000, order_by="name", order_dir="ASC")
            rooms = []
            for row in rows:
                if row.get("status") != "active" or not row.get("name"):
                    continue
                try:
                    rooms.append(
                        RoomAsset(
                            name=str(row["name"]),
                            building=str(row.get("building") or ""),
                            capacity=int(row.get("capacity") or 0),
                            status="active",
                        )
                    )
                except (TypeError, ValueError):
                    logger.warning("Skipping malformed classroom row %r", row)
            self._all = rooms
        return self._all

    async def campus_rooms(self, campus: str) -> list[RoomAsset]:
        if not campus:
            return []
        cached = self._by_campus.get(campus)
        if cached is not None:
            return cached

        building_rows = await self._store.fetch_table("building", limit=1000, campus=campus)
        buildings = {
            row["name"]
            for row in building_rows
            if str(row.get("campus")) == str(campus) and row.get("name")
        }
        rooms = [
            room.model_copy(update={"campus": campus})
            for room in await self.all_rooms()
            if room.building in buildings
        ]
        self._by_campus[campus] = rooms
        return rooms

    async def capacity(self, name: str) -> int | None:
        for room in await self.all_rooms():
            if room.name == name:
                return room.capacity
        return None
