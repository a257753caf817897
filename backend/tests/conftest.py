import os

# Point the module-level engine at SQLite before any portal import creates it.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal.api.deps import get_db
from portal.arrangement.client import StoreClient
from portal.db.base import Base
from portal.db.seed import seed_demo_data
from portal.main import app


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def seeded(session_factory):
    with session_factory() as session:
        seed_demo_data(session)
        session.commit()
    return session_factory


@pytest.fixture()
def override_db(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def client(override_db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
async def store(anyio_backend, override_db):
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    store_client = StoreClient(http)
    yield store_client
    await store_client.aclose()
