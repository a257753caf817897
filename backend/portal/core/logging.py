from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Loggers whose per-request INFO lines drown out booking outcomes.
CHATTY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def resolve_level(environment: str, log_level: str | None = None) -> int:
    if log_level:
        level = logging.getLevelName(log_level.strip().upper())
        if isinstance(level, int):
            return level
    return logging.INFO if (environment or "").strip().lower() == "production" else logging.DEBUG


def setup_logging(*, environment: str, log_level: str | None = None) -> int:
    """Send portal logs to stderr once; repeated calls only adjust the level."""
    level = resolve_level(environment, log_level)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("portal").setLevel(level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
