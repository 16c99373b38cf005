"""Shared fixtures: isolated SQLite stores, a fake model and an API client."""
import os
import tempfile

# Environment must be in place before config is first imported
_TEST_DIR = tempfile.mkdtemp(prefix="happymeter-tests-")
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/default.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["WARMUP_ON_STARTUP"] = "false"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from database import build_engine, build_session_factory, get_db, init_db
from sentiment_analyzer import SentimentClassifier, get_classifier

ADMIN = ("admin", "admin123")


def fake_predict(text: str):
    """Keyword stand-in for the RoBERTa model."""
    lower = text.lower()
    if "amazing" in lower or "great" in lower:
        return {"positive": 0.9, "negative": 0.05, "neutral": 0.05}
    if "terrible" in lower or "awful" in lower:
        return {"positive": 0.05, "negative": 0.9, "neutral": 0.05}
    return {"positive": 0.3, "negative": 0.3, "neutral": 0.4}


@pytest.fixture
def classifier():
    return SentimentClassifier(model_name="fake-model", loader=lambda name: fake_predict)


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Initialize database for testing."""
    async with build_session_factory(engine)() as session:
        yield session


@pytest.fixture
def app(engine, classifier):
    from main import app as fastapi_app

    session_factory = build_session_factory(engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_classifier] = lambda: classifier
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
