# apps/inventory/tests/api/test_umis.py
import logging

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from respx import MockRouter

from apps.inventory.main import app as fastapi_app
from apps.inventory.services.umis_service import UMISService, get_umis_service

UMIS_URL = "http://umis.test/api"
UMIS_KEY = "umis-test-key-123"

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def umis_service():
    service = UMISService(base_url=UMIS_URL, api_key=UMIS_KEY, timeout=5.0)
    yield service
    await service.close()


@pytest_asyncio.fixture
async def umis_client(async_client: AsyncClient, umis_service: UMISService) -> AsyncClient:
    fastapi_app.dependency_overrides[get_umis_service] = lambda: umis_service
    return async_client


async def test_areas_passthrough(umis_client: AsyncClient, endpoint, respx_mock: MockRouter):
    areas = [{"id": 1, "name": "Hospital Operations"}, {"id": 2, "name": "Finance"}]
    route = respx_mock.get(f"{UMIS_URL}/erp-data-areas").mock(
        return_value=httpx.Response(200, json=areas)
    )

    response = await umis_client.get(endpoint("umis/areas"))

    assert response.status_code == 200
    assert response.json() == areas
    sent = route.calls.last.request
    assert sent.headers["UMIS-Api-Key"] == UMIS_KEY
    assert sent.headers["X-ERP-System"] == "ZCMC-ERP"
    assert sent.headers["Accept"] == "application/json"


async def test_single_area(umis_client: AsyncClient, endpoint, respx_mock: MockRouter):
    respx_mock.get(f"{UMIS_URL}/assign-area/7").mock(
        return_value=httpx.Response(200, json={"id": 7, "name": "Pharmacy"})
    )
    response = await umis_client.get(endpoint("umis/areas/7"))
    assert response.status_code == 200
    assert response.json()["name"] == "Pharmacy"


@pytest.mark.parametrize(
    "path, upstream_path",
    [
        ("umis/organization-structure", "erp-data-areas"),
        ("umis/designations", "erp-data-designations"),
        ("umis/users", "erp-data-users"),
        ("umis/assigned-areas", "erp-data-assigned-areas"),
    ],
)
async def test_other_resources(
    umis_client: AsyncClient, endpoint, respx_mock: MockRouter, path, upstream_path
):
    respx_mock.get(f"{UMIS_URL}/{upstream_path}").mock(
        return_value=httpx.Response(200, json={"data": [{"id": 1}]})
    )
    response = await umis_client.get(endpoint(path))
    assert response.status_code == 200
    assert response.json() == {"data": [{"id": 1}]}


async def test_upstream_error_becomes_502(
    umis_client: AsyncClient, endpoint, respx_mock: MockRouter, caplog: pytest.LogCaptureFixture
):
    respx_mock.get(f"{UMIS_URL}/erp-data-areas").mock(return_value=httpx.Response(500))

    with caplog.at_level(logging.INFO, logger="erp_sdk.clients.base"):
        response = await umis_client.get(endpoint("umis/areas"))

    assert response.status_code == 502
    assert response.json() == {"message": "Failed to fetch areas from UMIS.", "metadata": {}}
    assert "Failed to fetch areas" in caplog.text
    assert UMIS_KEY not in caplog.text
    assert "umis-..." in caplog.text


async def test_upstream_unreachable_becomes_502(
    umis_client: AsyncClient, endpoint, respx_mock: MockRouter
):
    respx_mock.get(f"{UMIS_URL}/erp-data-users").mock(side_effect=httpx.ConnectError("refused"))
    response = await umis_client.get(endpoint("umis/users"))
    assert response.status_code == 502
    assert response.json()["message"] == "Failed to fetch users from UMIS."


async def test_service_without_key_omits_header(respx_mock: MockRouter):
    service = UMISService(base_url=UMIS_URL, api_key=None)
    route = respx_mock.get(f"{UMIS_URL}/erp-data-designations").mock(
        return_value=httpx.Response(200, json=[])
    )
    try:
        assert await service.get_designations() == []
    finally:
        await service.close()
    assert "UMIS-Api-Key" not in route.calls.last.request.headers


async def test_service_from_settings():
    from apps.inventory.config import Settings

    settings = Settings(
        UMIS_API_URL="http://umis.example/api/",
        UMIS_API_KEY="abc",
        UMIS_TIMEOUT=3.0,
    )
    service = UMISService.from_settings(settings)
    try:
        assert service.base_url_str == "http://umis.example/api"
        assert service.default_headers["UMIS-Api-Key"] == "abc"
    finally:
        await service.close()


async def test_dependency_requires_lifespan(test_db, endpoint):
    # Без lifespan клиент UMIS не создан
    transport = httpx.ASGITransport(app=fastapi_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(endpoint("umis/areas"))
    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error."


@pytest.mark.parametrize("verify_ssl", [True, False])
async def test_lifespan_hooks_manage_umis_client(monkeypatch: pytest.MonkeyPatch, verify_ssl):
    from apps.inventory import main as main_module

    monkeypatch.setattr(main_module.settings, "UMIS_VERIFY_SSL", verify_ssl)
    shared = httpx.AsyncClient()
    fastapi_app.state.http_client = shared
    try:
        await main_module.inventory_after_startup()
        service = fastapi_app.state.umis_service
        assert (service._http_client is shared) is verify_ssl

        await main_module.inventory_before_shutdown()
        # Общий клиент закрывает lifespan SDK, а не UMIS
        assert shared.is_closed is False
        assert service._http_client.is_closed is not verify_ssl
    finally:
        del fastapi_app.state.umis_service
        fastapi_app.state.http_client = None
        await shared.aclose()
