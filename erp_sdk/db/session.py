# erp_sdk/db/session.py
import contextlib
import contextvars
import logging
from typing import AsyncGenerator, Optional, Dict, Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool, NullPool
from sqlmodel import SQLModel

logger = logging.getLogger("erp_sdk.db.session")

_db_engine: Optional[AsyncEngine] = None
_db_session_maker: Optional[async_sessionmaker[AsyncSession]] = None

# Сессия текущего запроса. Устанавливается DBSessionMiddleware / managed_session.
_current_session: contextvars.ContextVar[Optional[AsyncSession]] = (
    contextvars.ContextVar("current_session", default=None)
)


def _mask_url(database_url: str) -> str:
    return make_url(database_url).render_as_string(hide_password=True)


def init_db(
    database_url: str,
    engine_options: Optional[Dict[str, Any]] = None,
    echo: bool = False,
) -> None:
    global _db_engine, _db_session_maker
    if _db_engine:
        logger.warning(
            "Database engine already initialized. Skipping re-initialization."
        )
        return

    logger.info(f"Initializing database engine for URL: {_mask_url(database_url)}")

    options_to_pass = dict(engine_options or {})
    # SQLite (StaticPool/NullPool) не принимает параметры размера пула
    pool_class = options_to_pass.get("poolclass")
    if pool_class in (StaticPool, NullPool) or database_url.startswith("sqlite"):
        options_to_pass.pop("pool_size", None)
        options_to_pass.pop("max_overflow", None)

    try:
        _db_engine = create_async_engine(database_url, echo=echo, **options_to_pass)
        _db_session_maker = async_sessionmaker(
            bind=_db_engine, class_=AsyncSession, expire_on_commit=False
        )
    except Exception as e:
        logger.critical("Failed to initialize database engine.", exc_info=True)
        raise RuntimeError("Failed to initialize database infrastructure") from e
    logger.info("Database engine and session maker initialized successfully.")


def get_engine() -> AsyncEngine:
    if _db_engine is None:
        raise RuntimeError("Database engine not initialized. Call init_db() first.")
    return _db_engine


async def close_db() -> None:
    global _db_engine, _db_session_maker
    if not _db_engine:
        logger.info("Database engine was not initialized or already disposed.")
        return
    logger.info("Disposing database engine...")
    try:
        await _db_engine.dispose()
    except Exception:
        logger.error("Error during database engine disposal.", exc_info=True)
    finally:
        _db_engine = None
        _db_session_maker = None


@contextlib.asynccontextmanager
async def managed_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Открывает сессию и кладет ее в contextvar на время блока.
    Вложенные вызовы переиспользуют уже открытую сессию.
    При исключении делает rollback и пробрасывает ошибку дальше.
    """
    if _db_session_maker is None:
        raise RuntimeError("Session maker not initialized. Call init_db() first.")

    existing_session = _current_session.get()
    if existing_session is not None:
        yield existing_session
        return

    session = _db_session_maker()
    token = _current_session.set(session)
    session_id_for_log = id(session)
    logger.debug(f"managed_session: opened session {session_id_for_log}.")

    try:
        yield session
    except Exception:
        logger.debug(
            f"managed_session: exception inside session {session_id_for_log}. Rolling back."
        )
        try:
            await session.rollback()
        except Exception as rb_exc:
            logger.error(
                f"managed_session: rollback of session {session_id_for_log} failed.",
                exc_info=rb_exc,
            )
        raise
    finally:
        try:
            await session.close()
        except Exception as close_exc:
            logger.error(
                f"managed_session: error closing session {session_id_for_log}.",
                exc_info=close_exc,
            )
        _current_session.reset(token)
        logger.debug(f"managed_session: closed session {session_id_for_log}.")


def get_current_session() -> AsyncSession:
    session = _current_session.get()
    if session is None:
        raise RuntimeError(
            "No active session found in context. Ensure this code is called within an 'async with managed_session():' block."
        )
    return session


async def get_session_dependency() -> AsyncGenerator[AsyncSession, None]:
    async with managed_session() as session:
        yield session


async def create_db_and_tables() -> None:
    engine = get_engine()
    logger.info("Creating database tables based on SQLModel.metadata...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
    except Exception:
        logger.critical("Failed to create database tables.", exc_info=True)
        raise
    logger.info("Database tables checked/created successfully.")
