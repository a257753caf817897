"""One operator's arrangement workflow against the store.

The session owns the shared lookups (lesson timetable, calendar, occupancy,
rooms) and at most one active transaction. Selecting another transaction
replaces the active state wholesale; a detail fetch that finishes after a
newer selection was made is dropped.
"""

from __future__ import annotations

import logging
from typing import Union

from portal.arrangement.calendar import CalendarIndex
from portal.arrangement.client import StoreClient
from portal.arrangement.course_state import CourseArrangementState
from portal.arrangement.exam_state import ExamArrangementState
from portal.arrangement.gateway import CourseSubmission, ExamSubmission, SeatingResult, SubmissionGateway
from portal.arrangement.occupancy import OccupancyResolver
from portal.arrangement.rooms import RoomCatalog
from portal.arrangement.timetable import LessonTimetable
from portal.core.config import Settings, get_settings
from portal.core.exceptions import (
    ArrangementConflictError,
    ArrangementValidationError,
    ResourceNotFoundError,
    TransientError,
)
from portal.schemas.arrangement import (
    CourseTransaction,
    ExamTransaction,
    TransactionListRequest,
    TransactionPage,
    TransactionSummary,
    parse_stamp,
)

logger = logging.getLogger(__name__)

ArrangementState = Union[CourseArrangementState, ExamArrangementState]


def _exact(rows: list[dict], **fields: object) -> list[dict]:
    # Store search is a substring match.
    return [row for row in rows if all(str(row.get(key)) == str(value) for key, value in fields.items())]


class ArrangementSession:
    def __init__(self, store: StoreClient, *, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.timetable = LessonTimetable(store, lessons_per_day=self.settings.lessons_per_day)
        self.calendar = CalendarIndex(store)
        self.occupancy = OccupancyResolver(store)
        self.rooms = RoomCatalog(store)
        self.gateway = SubmissionGateway(store, self.occupancy, on_success=self._on_submitted)

        self.active: ArrangementState | None = None
        self.pending: list[TransactionSummary] = []
        self.refresh_required = False
        self._selection = 0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ArrangementSession":
        settings = settings or get_settings()
        return cls(StoreClient.from_settings(settings), settings=settings)

    async def aclose(self) -> None:
        await self.store.aclose()

    async def __aenter__(self) -> "ArrangementSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def list_transactions(self, page: int = 1, limit: int = 20, search_id: str | None = None) -> TransactionPage:
        request = TransactionListRequest(page=page, limit=limit, searchId=search_id)
        status_code, body = await self.store.post("/arrange/transactions/list", request.model_dump())
        if status_code >= 500 or not body.get("success"):
            raise TransientError(body.get("message") or "Unable to load pending transactions")
        result = TransactionPage.model_validate(body)
        if not search_id:
            self.pending = result.data
        return result

    async def search_transactions(self, query: str | None) -> list[TransactionSummary]:
        trimmed = (query or "").strip()
        if len(trimmed) < self.settings.transaction_search_min_length:
            return []
        result = await self.list_transactions(page=1, limit=200, search_id=trimmed)
        return result.data

    async def select_transaction(self, summary: TransactionSummary) -> ArrangementState | None:
        self._selection += 1
        token = self._selection
        self.active = None
        self.refresh_required = False

        if summary.type == "course":
            transaction = await self._load_course(summary.id)
        else:
            transaction = await self._load_exam(summary.id)
        if token != self._selection:
            logger.debug("Discarding details for %s: another transaction was selected", summary.id)
            return None

        if isinstance(transaction, CourseTransaction):
            self.active = CourseArrangementState(
                transaction,
                timetable=self.timetable,
                calendar=self.calendar,
                occupancy=self.occupancy,
                rooms=self.rooms,
                lessons_per_day=self.settings.lessons_per_day,
            )
        else:
            self.active = ExamArrangementState(
                transaction,
                occupancy=self.occupancy,
                rooms=self.rooms,
                capacity_multiplier=self.settings.exam_capacity_multiplier,
            )
        return self.active

    def clear_selection(self) -> None:
        self._selection += 1
        self.active = None
        self.refresh_required = False

    async def _load_course(self, course_no: str) -> CourseTransaction:
        rows = _exact(await self.store.fetch_table("course_setup", limit=50, course_no=course_no), course_no=course_no)
        if not rows:
            raise ResourceNotFoundError("Course setup", course_no)
        setup = rows[0]
        days = _exact(await self.store.fetch_table("course_setup_day", limit=50, course_no=course_no), course_no=course_no)
        code = setup.get("curricular_code")
        curricular = _exact(await self.store.fetch_table("curricular", limit=50, code=code), code=code)
        return CourseTransaction(
            id=course_no,
            campus=str(setup.get("campus") or ""),
            maxHeadcount=int(setup.get("max_headcount") or 0),
            eligibleWeekdays=sorted({int(row["weekday"]) for row in days}),
            courseCode=str(code or ""),
            semesterCode=str(setup.get("semester") or ""),
            totalClassHours=int(curricular[0]["class_hours"]) if curricular else None,
        )

    async def _load_exam(self, setup_id: str) -> ExamTransaction:
        rows = _exact(await self.store.fetch_table("exam_setup", limit=50, setup_id=setup_id), setup_id=setup_id)
        if not rows:
            raise ResourceNotFoundError("Exam setup", setup_id)
        setup = rows[0]
        code, semester = setup.get("curricular_code"), setup.get("semester")
        sections = _exact(
            await self.store.fetch_table(
                "course_section",
                limit=500,
                order_by="section_no",
                curricular_code=code,
                semester=semester,
            ),
            curricular_code=code,
            semester=semester,
        )
        terms = [int(row.get("enrolled") or 0) for row in sections]
        try:
            window_begin = parse_stamp(setup["window_begin"]) if setup.get("window_begin") else None
            window_end = parse_stamp(setup["window_end"]) if setup.get("window_end") else None
        except ValueError:
            logger.warning("Exam setup %s has an unreadable window", setup_id)
            window_begin = window_end = None
        return ExamTransaction(
            id=setup_id,
            courseCode=str(code or ""),
            semesterCode=str(semester or ""),
            windowBegin=window_begin,
            windowEnd=window_end,
            expectedHeadcount=sum(terms),
            headcountTerms=terms,
        )

    async def submit(self) -> CourseSubmission | ExamSubmission:
        state = self.active
        if state is None:
            raise ArrangementValidationError("No transaction selected")
        if self.refresh_required:
            raise ArrangementValidationError("Occupancy changed since the last attempt; refresh before resubmitting")

        request = state.to_submission()
        try:
            if isinstance(state, CourseArrangementState):
                return await self.gateway.submit_course(request, state.booked_dates())
            return await self.gateway.submit_exam(request, state.booked_dates())
        except ArrangementConflictError:
            if self.active is state:
                self.refresh_required = True
            raise

    async def seat_exam(self, submission: ExamSubmission) -> list[SeatingResult]:
        """Seat students into every room of a submitted exam, in booking order."""
        results = []
        for arrange_id in submission.arrange_ids:
            results.append(await self.gateway.seat_exam_room(arrange_id))
        seated = sum(result.seated for result in results)
        if seated < submission.headcount:
            logger.warning("Exam %s seats %d of %d students", submission.exam_no, seated, submission.headcount)
        return results

    async def refresh_occupancy(self) -> list:
        """Re-fetch occupancy for the active plan and drop rooms that are now taken."""
        state = self.active
        if state is None:
            return []
        self.occupancy.invalidate(state.booked_dates())
        dropped = await state.recheck_rooms()
        if self.active is state:
            self.refresh_required = False
        if dropped:
            logger.info("Occupancy refresh released %s for %s", dropped, state.transaction.id)
        return dropped

    async def _on_submitted(self, transaction_id: str) -> None:
        if self.active is not None and self.active.transaction.id == transaction_id:
            self.clear_selection()
        try:
            await self.list_transactions()
        except TransientError as exc:
            # The booking itself went through; the list is refreshed on next load.
            logger.warning("Could not refresh pending transactions: %s", exc.message)
