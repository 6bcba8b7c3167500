# erp_sdk/tests/test_app_setup.py
from contextlib import asynccontextmanager

import pytest
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

import erp_sdk.app_setup as app_setup_module
import erp_sdk.db.session as sdk_db_session_module
from erp_sdk.app_setup import create_app_with_sdk_setup, sdk_lifespan_manager
from erp_sdk.exceptions import ResourceNotFoundError
from erp_sdk.middleware.middleware import DBSessionMiddleware
from erp_sdk.tests.conftest import SdkTestSettings

BASE_URL = "http://test"


def _probe_router() -> APIRouter:
    router = APIRouter(prefix="/probe")

    @router.get("/ok")
    async def ok():
        return {"ok": True}

    @router.get("/missing")
    async def missing():
        raise ResourceNotFoundError("No record found.")

    @router.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    @router.get("/typed")
    async def typed(limit: int):
        return {"limit": limit}

    return router


def test_create_app_basic_properties(sdk_settings: SdkTestSettings):
    app = create_app_with_sdk_setup(settings=sdk_settings, api_routers=[_probe_router()])
    assert isinstance(app, FastAPI)
    assert app.title == sdk_settings.PROJECT_NAME
    assert app.openapi_url == f"{sdk_settings.API_V1_STR}/openapi.json"
    paths = {route.path for route in app.routes}
    assert f"{sdk_settings.API_V1_STR}/probe/ok" in paths
    assert "/health" in paths


def test_create_app_registers_middlewares(sdk_settings: SdkTestSettings):
    app = create_app_with_sdk_setup(settings=sdk_settings, api_routers=[])
    names = {mw.cls.__name__ for mw in app.user_middleware}
    assert DBSessionMiddleware.__name__ in names
    assert "CORSMiddleware" in names


def test_create_app_without_cors_and_health(sdk_settings: SdkTestSettings):
    settings = sdk_settings.model_copy(update={"BACKEND_CORS_ORIGINS": []})
    app = create_app_with_sdk_setup(settings=settings, api_routers=[], include_health_check=False)
    names = {mw.cls.__name__ for mw in app.user_middleware}
    assert "CORSMiddleware" not in names
    assert "/health" not in {route.path for route in app.routes}


@pytest.mark.asyncio
async def test_health_check_ok(sdk_db, sdk_settings: SdkTestSettings):
    app = create_app_with_sdk_setup(settings=sdk_settings, api_routers=[])
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "project": sdk_settings.PROJECT_NAME,
        "db_connection": True,
    }


@pytest.mark.asyncio
async def test_health_check_without_database(sdk_db, sdk_settings: SdkTestSettings, monkeypatch):
    @asynccontextmanager
    async def broken_session():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))
        yield

    monkeypatch.setattr(app_setup_module, "managed_session", broken_session)
    app = create_app_with_sdk_setup(settings=sdk_settings, api_routers=[])
    async with AsyncClient(transport=ASGITransport(app=app), base_url=BASE_URL) as client:
        response = await client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_exception_handlers(sdk_db, sdk_settings: SdkTestSettings):
    app = create_app_with_sdk_setup(settings=sdk_settings, api_routers=[_probe_router()])
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    prefix = f"{sdk_settings.API_V1_STR}/probe"
    async with AsyncClient(transport=transport, base_url=BASE_URL) as client:
        missing = await client.get(f"{prefix}/missing")
        crash = await client.get(f"{prefix}/crash")
        typed = await client.get(f"{prefix}/typed", params={"limit": "many"})

    assert missing.status_code == 404
    assert missing.json() == {"message": "No record found.", "metadata": {}}

    assert crash.status_code == 500
    assert crash.json() == {
        "message": "Internal server error.",
        "metadata": {"exception": "RuntimeError"},
    }

    assert typed.status_code == 422
    assert typed.json()["message"] == "Invalid request."
    assert typed.json()["errors"][0]["loc"] == ["query", "limit"]


@pytest.mark.asyncio
async def test_unhandled_error_hides_type_in_production(sdk_db, sdk_settings: SdkTestSettings):
    settings = sdk_settings.model_copy(update={"ENV": "production"})
    app = create_app_with_sdk_setup(settings=settings, api_routers=[_probe_router()])
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as client:
        response = await client.get(f"{settings.API_V1_STR}/probe/crash")
    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error.", "metadata": {}}


@pytest.mark.asyncio
async def test_sdk_lifespan_manager_initializes_and_closes_db(
    sdk_settings: SdkTestSettings, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(sdk_db_session_module, "_db_engine", None)
    monkeypatch.setattr(sdk_db_session_module, "_db_session_maker", None)
    settings = sdk_settings.model_copy(update={"CREATE_TABLES_ON_STARTUP": True})
    app = FastAPI()
    calls = []

    async def after_startup():
        calls.append("startup")

    async def before_shutdown():
        calls.append("shutdown")

    async with sdk_lifespan_manager(
        app,
        settings,
        after_startup_hook=after_startup,
        before_shutdown_hook=before_shutdown,
    ):
        assert sdk_db_session_module._db_engine is not None
        assert app.state.http_client is not None
        assert calls == ["startup"]

    assert calls == ["startup", "shutdown"]
    assert sdk_db_session_module._db_engine is None
