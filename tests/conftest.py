import os

# settings are read at import time, so point them at a throwaway database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY"] = "test-key"
os.environ["SEED_DEFAULT_BADGES"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from habitforge import services  # noqa: E402
from habitforge.db import Base, SessionLocal, engine  # noqa: E402
from habitforge.main import app  # noqa: E402

OWNER = "user-1"
OTHER_OWNER = "user-2"


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    services.ensure_badge_definitions(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def headers():
    return {"X-API-Key": "test-key", "X-Owner-Id": OWNER}


@pytest.fixture
def other_headers():
    return {"X-API-Key": "test-key", "X-Owner-Id": OTHER_OWNER}
