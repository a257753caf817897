from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import get_db
from portal.core.config import get_settings
from portal.schemas.arrangement import (
    CourseSubmitRequest,
    CourseSubmitResponse,
    ExamSeatRequest,
    ExamSeatResponse,
    ExamSubmitRequest,
    ExamSubmitResponse,
    TransactionListRequest,
    TransactionPage,
)
from portal.services.arrangement_service import (
    arrange_course,
    arrange_exam,
    list_pending_transactions,
    seat_exam_room,
)

router = APIRouter()

settings = get_settings()


@router.post("/transactions/list", response_model=TransactionPage)
def list_transactions(payload: TransactionListRequest, db: Session = Depends(get_db)) -> TransactionPage:
    return list_pending_transactions(db, payload)


@router.post("/course/submit", response_model=CourseSubmitResponse)
def submit_course(payload: CourseSubmitRequest, db: Session = Depends(get_db)) -> CourseSubmitResponse:
    result = arrange_course(db, payload, lessons_per_day=settings.lessons_per_day)
    db.commit()
    return result


@router.post("/exam/submit", response_model=ExamSubmitResponse)
def submit_exam(payload: ExamSubmitRequest, db: Session = Depends(get_db)) -> ExamSubmitResponse:
    result = arrange_exam(db, payload, capacity_multiplier=settings.exam_capacity_multiplier)
    db.commit()
    return result


@router.post("/exam/seat", response_model=ExamSeatResponse)
def seat_exam(payload: ExamSeatRequest, db: Session = Depends(get_db)) -> ExamSeatResponse:
    result = seat_exam_room(db, payload, capacity_multiplier=settings.exam_capacity_multiplier)
    db.commit()
    return result
