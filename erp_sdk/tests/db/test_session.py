# erp_sdk/tests/db/test_session.py
import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import erp_sdk.db.session as sdk_db_session_module
from erp_sdk.db.session import (
    _mask_url,
    close_db,
    create_db_and_tables,
    get_current_session,
    get_engine,
    get_session_dependency,
    init_db,
    managed_session,
)

pytestmark = pytest.mark.asyncio

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest.fixture
def pristine_db_module_state(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(sdk_db_session_module, "_db_engine", None)
    monkeypatch.setattr(sdk_db_session_module, "_db_session_maker", None)
    yield


async def test_init_db_and_close(pristine_db_module_state):
    init_db(TEST_DB_URL, engine_options={"pool_size": 5, "max_overflow": 2}, echo=False)

    engine = get_engine()
    assert isinstance(engine, AsyncEngine)
    assert isinstance(sdk_db_session_module._db_session_maker, async_sessionmaker)

    # Повторная инициализация игнорируется
    init_db("sqlite+aiosqlite:///other.db")
    assert get_engine() is engine

    await close_db()
    assert sdk_db_session_module._db_engine is None
    assert sdk_db_session_module._db_session_maker is None


async def test_get_engine_before_init(pristine_db_module_state):
    with pytest.raises(RuntimeError, match="not initialized"):
        get_engine()


async def test_managed_session_without_init(pristine_db_module_state):
    with pytest.raises(RuntimeError, match="Session maker not initialized"):
        async with managed_session():
            pass


async def test_create_db_and_tables(pristine_db_module_state):
    init_db(TEST_DB_URL)
    try:
        await create_db_and_tables()
        async with managed_session() as session:
            result = await session.execute(
                text("SELECT name FROM sqlite_master WHERE type='table' AND name='sdk_test_widgets'")
            )
            assert result.scalar_one() == "sdk_test_widgets"
    finally:
        await close_db()


async def test_managed_session_sets_and_resets_context(sdk_db):
    with pytest.raises(RuntimeError, match="No active session"):
        get_current_session()

    async with managed_session() as session:
        assert isinstance(session, AsyncSession)
        assert get_current_session() is session
        async with managed_session() as nested:
            assert nested is session

    with pytest.raises(RuntimeError):
        get_current_session()


async def test_managed_session_reraises_and_resets(sdk_db):
    with pytest.raises(ValueError, match="boom"):
        async with managed_session():
            raise ValueError("boom")
    with pytest.raises(RuntimeError):
        get_current_session()


async def test_get_session_dependency(sdk_db):
    generator = get_session_dependency()
    session = await generator.__anext__()
    assert get_current_session() is session
    with pytest.raises(StopAsyncIteration):
        await generator.__anext__()


async def test_mask_url_hides_password():
    masked = _mask_url("postgresql+asyncpg://user:s3cret@db:5432/erp")
    assert "s3cret" not in masked
    assert masked == "postgresql+asyncpg://user:***@db:5432/erp"
    assert _mask_url("sqlite+aiosqlite:///./erp.db") == "sqlite+aiosqlite:///./erp.db"
