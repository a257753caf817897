from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, replace

from portal.arrangement.occupancy import OccupancyResolver, free_exam_rooms
from portal.arrangement.planner import required_exam_capacity
from portal.arrangement.rooms import RoomCatalog
from portal.core.exceptions import ArrangementValidationError
from portal.schemas.arrangement import ExamSubmitRequest, ExamTransaction, RoomAsset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExamPlan:
    transaction: ExamTransaction | None = None
    rooms: tuple[RoomAsset, ...] = ()
    capacity_multiplier: int = 3

    @property
    def capacity_sum(self) -> int:
        return sum(room.capacity for room in self.rooms)

    @property
    def required_capacity(self) -> int:
        if self.transaction is None:
            return 0
        return required_exam_capacity(self.transaction.expectedHeadcount, self.capacity_multiplier)

    @property
    def room_names(self) -> list[str]:
        return [room.name for room in self.rooms]


def toggle_exam_room(plan: ExamPlan, room: RoomAsset) -> ExamPlan:
    if room.name in plan.room_names:
        return replace(plan, rooms=tuple(item for item in plan.rooms if item.name != room.name))
    return replace(plan, rooms=(*plan.rooms, room))


def exam_plan_issues(plan: ExamPlan) -> list[str]:
    if plan.transaction is None:
        return ["No exam transaction selected"]
    if not plan.transaction.has_window:
        return ["Exam window is missing"]
    if plan.capacity_sum < plan.required_capacity:
        return [f"Selected capacity {plan.capacity_sum} is below the required {plan.required_capacity}"]
    return []


def exam_plan_complete(plan: ExamPlan) -> bool:
    return not exam_plan_issues(plan)


class ExamArrangementState:
    """Room selection for one exam transaction."""

    def __init__(
        self,
        transaction: ExamTransaction,
        *,
        occupancy: OccupancyResolver,
        rooms: RoomCatalog,
        capacity_multiplier: int = 3,
    ) -> None:
        self._occupancy = occupancy
        self._rooms = rooms
        self._plan = ExamPlan(transaction=transaction, capacity_multiplier=capacity_multiplier)

    @property
    def plan(self) -> ExamPlan:
        return self._plan

    @property
    def transaction(self) -> ExamTransaction:
        return self._plan.transaction

    @property
    def capacity_sum(self) -> int:
        return self._plan.capacity_sum

    @property
    def required_capacity(self) -> int:
        return self._plan.required_capacity

    @property
    def is_complete(self) -> bool:
        return exam_plan_complete(self._plan)

    def issues(self) -> list[str]:
        return exam_plan_issues(self._plan)

    @property
    def exam_date(self) -> dt.date | None:
        if not self.transaction.has_window:
            return None
        return self.transaction.windowBegin.date()

    async def candidates(self) -> list[RoomAsset]:
        """Active rooms on any campus that are free for the whole exam window."""
        if not self.transaction.has_window:
            return []
        window = [(self.transaction.windowBegin, self.transaction.windowEnd)]
        rooms = await self._rooms.all_rooms()
        occupied = await self._occupancy.occupied_rooms(self.exam_date, window)
        return free_exam_rooms(rooms, occupied)

    async def toggle_room(self, name: str) -> bool:
        """Select a free room or deselect a chosen one; returns whether it is now selected."""
        for room in self._plan.rooms:
            if room.name == name:
                self._plan = toggle_exam_room(self._plan, room)
                return False
        for room in await self.candidates():
            if room.name == name:
                # A concurrent toggle may have selected it while candidates loaded.
                if name not in self._plan.room_names:
                    self._plan = toggle_exam_room(self._plan, room)
                return True
        raise ArrangementValidationError(f"Classroom {name} is not available for this exam")

    async def recheck_rooms(self) -> list[str]:
        """Drop selected rooms that fresh occupancy shows as taken."""
        free = {room.name for room in await self.candidates()}
        dropped = [room for room in self._plan.rooms if room.name not in free]
        for room in dropped:
            self._plan = toggle_exam_room(self._plan, room)
        return [room.name for room in dropped]

    def booked_dates(self) -> list[dt.date]:
        day = self.exam_date
        return [day] if day is not None else []

    def to_submission(self) -> ExamSubmitRequest:
        issues = self.issues()
        if issues:
            raise ArrangementValidationError(issues[0], details={"issues": issues})
        return ExamSubmitRequest(setupEId=self.transaction.id, classrooms=self._plan.room_names)
