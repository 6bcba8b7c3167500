# erp_sdk/app_setup.py
import logging
from contextlib import asynccontextmanager, AsyncExitStack
from typing import Callable, Optional, Sequence, Awaitable

from fastapi import FastAPI, APIRouter, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from sqlalchemy import text

from erp_sdk.config import BaseAppSettings
from erp_sdk.data_access.common import app_http_client_lifespan
from erp_sdk.db.session import init_db, close_db, create_db_and_tables, managed_session
from erp_sdk.exceptions import ResourceError
from erp_sdk.middleware.middleware import DBSessionMiddleware
from erp_sdk.registry import ResourceRegistry

logger = logging.getLogger("erp_sdk.app_setup")


@asynccontextmanager
async def sdk_lifespan_manager(
    app: FastAPI,
    settings: BaseAppSettings,
    rebuild_models: bool = True,
    manage_http_client: bool = True,
    after_startup_hook: Optional[Callable[[], Awaitable[None]]] = None,
    before_shutdown_hook: Optional[Callable[[], Awaitable[None]]] = None,
):
    """
    Управляет общими ресурсами SDK в рамках жизненного цикла FastAPI приложения:
    HTTP клиент, движок БД (и создание таблиц для dev/SQLite), пересборка моделей.
    """
    logger.info("SDK Lifespan: Starting up...")

    async with AsyncExitStack() as stack:
        if manage_http_client:
            await stack.enter_async_context(app_http_client_lifespan(app))

        logger.info("SDK Lifespan: Initializing Database...")
        try:
            init_db(
                str(settings.DATABASE_URL),
                engine_options={
                    "pool_size": settings.DB_POOL_SIZE,
                    "max_overflow": settings.DB_MAX_OVERFLOW,
                    "pool_recycle": 300,
                },
                echo=settings.LOGGING_LEVEL.upper() == "DEBUG",
            )
            stack.push_async_callback(close_db)
        except Exception as e:
            logger.critical("SDK Lifespan: Database initialization failed.", exc_info=True)
            raise RuntimeError("Database initialization failed.") from e

        if settings.CREATE_TABLES_ON_STARTUP:
            await create_db_and_tables()

        if rebuild_models:
            ResourceRegistry.rebuild_models(force=True)

        if after_startup_hook:
            logger.info("SDK Lifespan: Running after_startup_hook...")
            await after_startup_hook()

        logger.info("SDK Lifespan: Startup sequence complete. Application running...")
        yield
        logger.info("SDK Lifespan: Starting shutdown sequence...")

        if before_shutdown_hook:
            logger.info("SDK Lifespan: Running before_shutdown_hook...")
            await before_shutdown_hook()

    logger.info("SDK Lifespan: Shutdown sequence complete.")


def register_exception_handlers(app: FastAPI, settings: BaseAppSettings) -> None:
    """
    ResourceError -> JSON {message, metadata, ...} со своим статусом.
    Прочие исключения -> 500; тип исключения виден только вне production.
    """
    include_hints = not settings.is_production

    @app.exception_handler(ResourceError)
    async def resource_error_handler(request: Request, exc: ResourceError):
        logger.warning(
            f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
        )
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_body(include_hints=include_hints)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"{request.method} {request.url.path} -> 422: request validation failed")
        return JSONResponse(
            status_code=422,
            content={
                "message": "Invalid request.",
                "errors": jsonable_encoder(exc.errors()),
                "metadata": {},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        metadata = {}
        if include_hints:
            metadata["exception"] = type(exc).__name__
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error.", "metadata": metadata},
        )


def create_app_with_sdk_setup(
    settings: BaseAppSettings,
    api_routers: Sequence[APIRouter],
    rebuild_models: bool = True,
    manage_http_client: bool = True,
    after_startup_hook: Optional[Callable[[], Awaitable[None]]] = None,
    before_shutdown_hook: Optional[Callable[[], Awaitable[None]]] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    version: Optional[str] = "0.1.0",
    include_health_check: bool = True,
) -> FastAPI:
    """
    Создает и конфигурирует экземпляр FastAPI приложения со стандартной обвязкой SDK:
    lifespan, DBSessionMiddleware, CORS, обработчики ошибок, роутеры под API_V1_STR, /health.
    """
    effective_title = title or settings.PROJECT_NAME
    logger.info(f"Creating FastAPI app '{effective_title}' with SDK setup...")

    @asynccontextmanager
    async def app_lifespan_wrapper(app: FastAPI):
        async with sdk_lifespan_manager(
            app=app,
            settings=settings,
            rebuild_models=rebuild_models,
            manage_http_client=manage_http_client,
            after_startup_hook=after_startup_hook,
            before_shutdown_hook=before_shutdown_hook,
        ):
            yield

    app = FastAPI(
        title=effective_title,
        description=description or f"{settings.PROJECT_NAME} application.",
        version=version,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=app_lifespan_wrapper,
    )

    app.add_middleware(DBSessionMiddleware)

    cors_origins = [str(origin).strip() for origin in settings.BACKEND_CORS_ORIGINS if str(origin).strip()]
    if cors_origins:
        allow_all = "*" in cors_origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if allow_all else cors_origins,
            allow_credentials=not allow_all,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS middleware enabled for origins: {'*' if allow_all else cors_origins}")
    else:
        logger.warning("CORS middleware is disabled (BACKEND_CORS_ORIGINS not set in settings).")

    register_exception_handlers(app, settings)

    main_api_router = APIRouter(prefix=settings.API_V1_STR)
    for router_instance in api_routers:
        main_api_router.include_router(router_instance)
        logger.debug(f"Included API router with prefix: {router_instance.prefix}")
    app.include_router(main_api_router)

    if include_health_check:

        @app.get(
            "/health",
            tags=["Health"],
            summary="Perform Health Check",
            description="Проверяет статус сервиса и подключение к базе данных.",
        )
        async def health_check():
            db_ok = True
            try:
                async with managed_session() as session:
                    await session.execute(text("SELECT 1"))
            except Exception as e:
                logger.error(f"Health check: Database connection failed: {type(e).__name__}")
                db_ok = False
            body = {"status": "ok" if db_ok else "unhealthy", "project": settings.PROJECT_NAME, "db_connection": db_ok}
            return JSONResponse(
                status_code=status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
                content=body,
            )

    logger.info(f"FastAPI app '{app.title}' setup complete.")
    return app
