from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from portal.core.config import get_settings

settings = get_settings()


def _connect_args(url: str) -> dict[str, object]:
    # SQLite connections are shared with the FastAPI threadpool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args(settings.database_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
