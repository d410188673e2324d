"""
Pytest configuration and fixtures for ITH Monitor tests.
"""

import os
import sys
from pathlib import Path

# Settings are read at import time; point them at SQLite before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TTN_API_KEY", "")
os.environ.setdefault("REQUIRE_DEVICE_IDENTITY", "true")

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from ith_monitor.api.main import app  # noqa: E402
from ith_monitor.core.database import Base, get_db  # noqa: E402
from ith_monitor.models import Sensor  # noqa: E402


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    """HTTP client bound to the app, using the test database."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_sensor(session):
    """Factory inserting a committed sensor row."""

    async def _make_sensor(**fields) -> Sensor:
        fields.setdefault("nombre_sensor", "Nave 1")
        sensor = Sensor(**fields)
        session.add(sensor)
        await session.commit()
        return sensor

    return _make_sensor


async def fetch_sensor(session: AsyncSession, id_sensor: int) -> Sensor:
    """Reload a sensor from the database, bypassing the identity map."""
    result = await session.execute(
        select(Sensor)
        .where(Sensor.id_sensor == id_sensor)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def count_rows(session: AsyncSession, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def sample_uplink():
    """TTN v3 uplink webhook body."""
    return {
        "end_device_ids": {
            "device_id": "eui-70b3d57ed003abcd",
            "application_ids": {"application_id": "ganaderapp"},
            "dev_eui": "70B3D57ED003ABCD",
        },
        "uplink_message": {
            "f_port": 1,
            "decoded_payload": {"temperatura": 25.0, "humedad": 60.0, "ith": 70.0},
        },
    }
