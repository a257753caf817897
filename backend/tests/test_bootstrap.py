import logging

import pytest

from portal.core.config import Settings
from portal.core.exceptions import (
    AppError,
    ArrangementConflictError,
    ArrangementValidationError,
    ResourceNotFoundError,
    TransientError,
)
from portal.core.logging import resolve_level, setup_logging
from portal.db.bootstrap import DEFAULT_LESSONS, seed_default_lessons
from portal.db.seed import seed_demo_data
from portal.models import Lesson


def test_default_lessons_are_seeded_once(session_factory):
    with session_factory() as session:
        assert seed_default_lessons(session) == 13
        assert seed_default_lessons(session) == 0
        assert session.get(Lesson, 13).end_time == DEFAULT_LESSONS[-1][1]


def test_demo_seed_is_idempotent(session_factory):
    with session_factory() as session:
        first = seed_demo_data(session)
        session.commit()
        second = seed_demo_data(session)
        session.commit()
    assert first == second
    assert first["calendar_days"] == 18 * 7
    assert first["classrooms"] == 6
    assert first["enrollments"] == 45 + 38


def test_error_hierarchy_status_codes():
    assert ArrangementValidationError("bad").status_code == 400
    assert ArrangementConflictError("taken").status_code == 409
    assert ResourceNotFoundError("Course setup", "C1").message == "Course setup with id C1 not found"
    assert TransientError().status_code == 503
    assert all(
        issubclass(cls, AppError)
        for cls in (ArrangementValidationError, ArrangementConflictError, ResourceNotFoundError, TransientError)
    )


def test_settings_parse_origins_and_reject_non_positive_policy(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["http://a.test", "http://b.test"]')
    assert Settings().cors_origins == ["http://a.test", "http://b.test"]

    monkeypatch.setenv("EXAM_CAPACITY_MULTIPLIER", "0")
    with pytest.raises(ValueError):
        Settings()


def test_log_level_follows_environment_unless_overridden():
    assert resolve_level("production") == logging.INFO
    assert resolve_level("development") == logging.DEBUG
    assert resolve_level("production", "warning") == logging.WARNING
    assert resolve_level("test", "not-a-level") == logging.DEBUG


def test_setup_logging_keeps_request_loggers_quiet():
    assert setup_logging(environment="development") == logging.DEBUG
    assert logging.getLogger("portal").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
