from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from order_service.main import app
from order_service.core.database import Base, create_schema, get_db
from order_service.core.broker import broker


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
    echo=False
)

test_async_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest_asyncio.fixture
async def db_session():
    await create_schema(test_engine)

    async with test_async_session_maker() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_broker(monkeypatch):
    published_messages = []

    async def mock_send(topic: str, value: bytes, key: str, headers=None):
        published_messages.append({
            "topic": topic,
            "value": value,
            "key": key,
            "headers": dict(headers or [])
        })
        return SimpleNamespace(topic=topic, partition=0, offset=len(published_messages) - 1)

    monkeypatch.setattr(broker, "send", mock_send)

    yield published_messages


@pytest.fixture
def failing_broker(monkeypatch):
    attempts = []

    async def mock_send(topic: str, value: bytes, key: str, headers=None):
        attempts.append(key)
        raise ConnectionError("Kafka broker unreachable")

    monkeypatch.setattr(broker, "send", mock_send)

    yield attempts


@pytest.fixture
def valid_order_input():
    return {
        "userId": "u1",
        "items": [{"id": 1, "title": "Widget", "quantity": 2, "price": 9.99}],
        "customerEmail": "a@b.com",
        "customerName": "A"
    }
