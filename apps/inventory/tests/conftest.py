# apps/inventory/tests/conftest.py
import os

# config читает .env/.env.test при импорте, поэтому ENV выставляется до импортов приложения
os.environ.setdefault("ENV", "test")

from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from erp_sdk.db import session as sdk_db_session_module

from apps.inventory.config import settings
from apps.inventory.main import app as fastapi_app
from apps.inventory.registry_config import (
    configure_inventory_registry,
    inventory_registry_configured,
)

TEST_DATABASE_URL = "sqlite+aiosqlite://"
API_PREFIX = settings.API_V1_STR


@pytest.fixture(autouse=True)
def inventory_registry():
    # Тесты SDK очищают общий реестр, поэтому ресурсы сервиса восстанавливаются перед каждым тестом
    if not inventory_registry_configured():
        configure_inventory_registry()


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(
    test_engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch
) -> async_sessionmaker[AsyncSession]:
    session_maker = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    monkeypatch.setattr(sdk_db_session_module, "_db_engine", test_engine)
    monkeypatch.setattr(sdk_db_session_module, "_db_session_maker", session_maker)
    return session_maker


@pytest_asyncio.fixture
async def async_client(test_db) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=fastapi_app), base_url="http://test"
    ) as client:
        yield client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def endpoint():
    def _endpoint(slug: str) -> str:
        return f"{API_PREFIX}/{slug}"

    return _endpoint


@pytest_asyncio.fixture
async def item_units(async_client: AsyncClient, endpoint) -> List[Dict]:
    payload = {
        "item_units": [
            {"code": "PC", "name": "Piece", "description": "Single piece"},
            {"code": "BOX", "name": "Box", "description": "Box of pieces"},
            {"code": "L", "name": "Liter"},
            {"code": "KG", "name": "Kilogram", "description": "Weight unit"},
            {"code": "PK", "name": "Pack"},
        ]
    }
    response = await async_client.post(endpoint("item-units"), json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]
