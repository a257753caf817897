from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from portal.arrangement.client import StoreClient
from portal.arrangement.occupancy import OccupancyResolver
from portal.core.exceptions import ArrangementConflictError, TransientError
from portal.schemas.arrangement import CourseSubmitRequest, ExamSeatRequest, ExamSubmitRequest

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class CourseSubmission:
    course_id: str
    class_hours: int
    required_weeks: int


@dataclass(frozen=True)
class ExamSubmission:
    exam_id: str
    exam_no: str
    capacity: int
    headcount: int
    arrange_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SeatingResult:
    arrange_id: str
    classroom: str
    quota: int
    added: int
    seated: int


class SubmissionGateway:
    """Sends complete plans to the store and keeps the occupancy cache honest."""

    def __init__(
        self,
        store: StoreClient,
        occupancy: OccupancyResolver,
        *,
        on_success: SuccessCallback | None = None,
    ) -> None:
        self._store = store
        self._occupancy = occupancy
        self._on_success = on_success

    async def submit_course(
        self, request: CourseSubmitRequest, booked_dates: Iterable[dt.date] = ()
    ) -> CourseSubmission:
        body = await self._submit("/arrange/course/submit", request.model_dump(), booked_dates)
        result = CourseSubmission(
            course_id=request.courno,
            class_hours=int(body.get("classhour") or 0),
            required_weeks=int(body.get("requiredWeeks") or len(request.weeks)),
        )
        logger.info("Course %s arranged: %d class hours", result.course_id, result.class_hours)
        await self._notify(request.courno)
        return result

    async def submit_exam(self, request: ExamSubmitRequest, booked_dates: Iterable[dt.date] = ()) -> ExamSubmission:
        body = await self._submit("/arrange/exam/submit", request.model_dump(), booked_dates)
        result = ExamSubmission(
            exam_id=request.setupEId,
            exam_no=str(body.get("eno") or ""),
            capacity=int(body.get("capacity") or 0),
            headcount=int(body.get("people") or 0),
            arrange_ids=[str(item) for item in body.get("arrangeIds") or []],
        )
        logger.info("Exam %s arranged as %s in %d rooms", result.exam_id, result.exam_no, len(result.arrange_ids))
        await self._notify(request.setupEId)
        return result

    async def seat_exam_room(self, arrange_id: str) -> SeatingResult:
        """Ask the store to seat students into one booked exam room."""
        body = await self._submit("/arrange/exam/seat", ExamSeatRequest(arrangeId=arrange_id).model_dump(), ())
        result = SeatingResult(
            arrange_id=str(body.get("arrangeId") or arrange_id),
            classroom=str(body.get("classroom") or ""),
            quota=int(body.get("quota") or 0),
            added=int(body.get("added") or 0),
            seated=int(body.get("seated") or 0),
        )
        logger.info("Seated %d in %s (%d/%d)", result.added, result.arrange_id, result.seated, result.quota)
        return result

    async def _submit(self, path: str, payload: dict, booked_dates: Iterable[dt.date]) -> dict:
        dates = list(booked_dates)
        status_code, body = await self._store.post(path, payload)
        if status_code >= 500:
            raise TransientError(body.get("message") or f"Store error {status_code}")
        if not body.get("success"):
            # Either way our view of these dates is out of date.
            self._occupancy.invalidate(dates)
            message = body.get("message") or "Arrangement rejected"
            logger.warning("Submission to %s rejected: %s", path, message)
            raise ArrangementConflictError(message, details=body.get("details"), status_code=status_code if status_code >= 400 else 409)
        self._occupancy.invalidate(dates)
        return body

    async def _notify(self, transaction_id: str) -> None:
        if self._on_success is not None:
            await self._on_success(transaction_id)
