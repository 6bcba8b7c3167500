# erp_sdk/tests/conftest.py
import logging
import os
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from pydantic import Field as PydanticField
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import Field as SQLModelField, SQLModel

from erp_sdk.config import BaseAppSettings
from erp_sdk.crud.engine import BulkResourceEngine
from erp_sdk.data_access.local_manager import LocalDataAccessManager
from erp_sdk.data_access.manager_factory import DataAccessManagerFactory
from erp_sdk.db import session as sdk_db_session_module
from erp_sdk.db.base_model import BaseModelWithMeta
from erp_sdk.registry import ResourceInfo, ResourceRegistry
from erp_sdk.schemas.base import BaseSchema, BaseWriteSchema

logger = logging.getLogger("erp_sdk.tests.conftest")

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# --- Модели и схемы для тестов SDK ---


class Widget(BaseModelWithMeta, table=True):
    __tablename__ = "sdk_test_widgets"
    __table_args__ = {"extend_existing": True}

    code: str = SQLModelField(index=True)
    name: str
    description: Optional[str] = None
    quantity: Optional[int] = None


class WidgetCreate(BaseWriteSchema):
    code: str = PydanticField(min_length=1, max_length=50)
    name: str = PydanticField(min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: Optional[int] = PydanticField(default=None, ge=0)


class WidgetUpdate(BaseWriteSchema):
    code: Optional[str] = PydanticField(default=None, max_length=50)
    name: Optional[str] = PydanticField(default=None, max_length=255)
    description: Optional[str] = None
    quantity: Optional[int] = PydanticField(default=None, ge=0)


class WidgetRead(BaseSchema):
    code: str
    name: str
    description: Optional[str] = None
    quantity: Optional[int] = None


class SdkTestSettings(BaseAppSettings):
    PROJECT_NAME: str = "SDKTestProject"
    DATABASE_URL: str = TEST_DATABASE_URL
    ENV: str = "test"
    BACKEND_CORS_ORIGINS: List[str] = ["http://test-origin.com"]


@pytest.fixture(scope="session", autouse=True)
def set_sdk_test_environment(request: pytest.FixtureRequest):
    original_env_value = os.environ.get("ENV")
    os.environ["ENV"] = "test"

    def finalizer():
        if original_env_value is None:
            os.environ.pop("ENV", None)
        else:
            os.environ["ENV"] = original_env_value

    request.addfinalizer(finalizer)


@pytest.fixture(autouse=True)
def widget_resource() -> ResourceInfo:
    ResourceRegistry.clear()
    info = ResourceRegistry.register(
        Widget,
        WidgetRead,
        WidgetCreate,
        WidgetUpdate,
        display_fields=["name", "code"],
        searchable_fields=["name", "code", "description"],
        title_field="name",
    )
    yield info
    ResourceRegistry.clear()


@pytest.fixture
def sdk_settings() -> SdkTestSettings:
    return SdkTestSettings()


@pytest_asyncio.fixture
async def sdk_test_engine() -> AsyncGenerator[AsyncEngine, None]:
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
async def sdk_db(
    sdk_test_engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch
) -> async_sessionmaker[AsyncSession]:
    """Подменяет глобальный движок SDK тестовым in-memory SQLite."""
    session_maker = async_sessionmaker(
        bind=sdk_test_engine, class_=AsyncSession, expire_on_commit=False
    )
    monkeypatch.setattr(sdk_db_session_module, "_db_engine", sdk_test_engine)
    monkeypatch.setattr(sdk_db_session_module, "_db_session_maker", session_maker)
    return session_maker


@pytest_asyncio.fixture
async def db_session(
    sdk_db: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with sdk_db() as session:
        yield session


@pytest.fixture
def widget_manager(db_session: AsyncSession) -> LocalDataAccessManager:
    factory = DataAccessManagerFactory(registry=ResourceRegistry, session=db_session)
    manager = factory.get_manager("widget")
    assert isinstance(manager, LocalDataAccessManager)
    return manager


@pytest.fixture
def widget_engine(
    widget_resource: ResourceInfo, widget_manager: LocalDataAccessManager
) -> BulkResourceEngine:
    return BulkResourceEngine(widget_resource, widget_manager, include_hints=True)


@pytest_asyncio.fixture
async def sample_widgets(widget_manager: LocalDataAccessManager) -> List[Widget]:
    rows = [
        {"code": "BOLT", "name": "Bolt", "description": "Steel bolt", "quantity": 10},
        {"code": "NUT", "name": "Nut", "description": "Hex nut", "quantity": 20},
        {"code": "WASHER", "name": "Washer", "description": "Flat steel ring", "quantity": 15},
        {"code": "SCREW", "name": "Screw", "description": None, "quantity": 20},
        {"code": "RIVET", "name": "Rivet", "description": "Blind rivet", "quantity": 5},
    ]
    return [await widget_manager.create(row) for row in rows]
