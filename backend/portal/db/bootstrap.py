from __future__ import annotations

import logging

from sqlalchemy import func, select

from portal.db.base import Base
from portal.db.session import SessionLocal, engine
from portal.models import Lesson

logger = logging.getLogger(__name__)

DEFAULT_LESSONS: list[tuple[str, str]] = [
    ("08:00", "08:45"),
    ("08:55", "09:40"),
    ("10:00", "10:45"),
    ("10:55", "11:40"),
    ("11:50", "12:35"),
    ("14:00", "14:45"),
    ("14:55", "15:40"),
    ("16:00", "16:45"),
    ("16:55", "17:40"),
    ("17:50", "18:35"),
    ("19:00", "19:45"),
    ("19:55", "20:40"),
    ("20:50", "21:35"),
]


def seed_default_lessons(session) -> int:
    """Insert the daily lesson grid when the table is empty; returns rows added."""
    if session.execute(select(func.count()).select_from(Lesson)).scalar_one() > 0:
        return 0
    for index, (begin, end) in enumerate(DEFAULT_LESSONS, start=1):
        session.add(Lesson(lesson_no=index, begin_time=begin, end_time=end))
    session.flush()
    return len(DEFAULT_LESSONS)


def ensure_runtime_schema() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        added = seed_default_lessons(session)
        session.commit()
    if added:
        logger.info("Seeded %d default lessons", added)
