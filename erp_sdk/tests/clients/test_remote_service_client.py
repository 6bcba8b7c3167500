# erp_sdk/tests/clients/test_remote_service_client.py
import logging

import httpx
import pytest
import pytest_asyncio
from respx import MockRouter

from erp_sdk.clients.base import RemoteServiceClient, mask_secret
from erp_sdk.exceptions import ServiceCommunicationError

pytestmark = pytest.mark.asyncio

SERVICE_URL_STR = "http://fake-service.io/api"
SECRET = "secret-key-123456"


@pytest_asyncio.fixture
async def http_client() -> httpx.AsyncClient:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def service_client(http_client: httpx.AsyncClient) -> RemoteServiceClient:
    return RemoteServiceClient(
        base_url=SERVICE_URL_STR + "/",
        headers={"Accept": "application/json", "X-Api-Key": SECRET},
        secret_headers=["X-Api-Key"],
        http_client=http_client,
    )


def test_mask_secret():
    assert mask_secret(SECRET) == "secre..."
    assert mask_secret("") == "<empty>"
    assert mask_secret(None) == "<empty>"


async def test_get_json_sends_default_headers(service_client: RemoteServiceClient, respx_mock: MockRouter):
    route = respx_mock.get(f"{SERVICE_URL_STR}/things").mock(
        return_value=httpx.Response(200, json={"data": [1, 2]})
    )
    data = await service_client.get_json("/things", params={"page": 1})

    assert data == {"data": [1, 2]}
    request = route.calls.last.request
    assert request.headers["X-Api-Key"] == SECRET
    assert request.headers["Accept"] == "application/json"
    assert request.url.params["page"] == "1"


async def test_get_json_error_status_raises(service_client: RemoteServiceClient, respx_mock: MockRouter):
    respx_mock.get(f"{SERVICE_URL_STR}/things").mock(
        return_value=httpx.Response(500, text="boom")
    )
    with pytest.raises(ServiceCommunicationError) as exc_info:
        await service_client.get_json("things")
    assert exc_info.value.status_code == 500
    assert exc_info.value.url == f"{SERVICE_URL_STR}/things"


async def test_get_json_network_error_raises(service_client: RemoteServiceClient, respx_mock: MockRouter):
    respx_mock.get(f"{SERVICE_URL_STR}/things").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(ServiceCommunicationError, match="Network error"):
        await service_client.get_json("things")


async def test_get_json_timeout_raises(service_client: RemoteServiceClient, respx_mock: MockRouter):
    respx_mock.get(f"{SERVICE_URL_STR}/things").mock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(ServiceCommunicationError, match="Timeout error"):
        await service_client.get_json("things")


async def test_get_json_invalid_body_raises(service_client: RemoteServiceClient, respx_mock: MockRouter):
    respx_mock.get(f"{SERVICE_URL_STR}/things").mock(
        return_value=httpx.Response(200, text="<html>")
    )
    with pytest.raises(ServiceCommunicationError, match="invalid JSON"):
        await service_client.get_json("things")


async def test_fetch_resource_returns_none_on_failure(
    service_client: RemoteServiceClient, respx_mock: MockRouter, caplog: pytest.LogCaptureFixture
):
    respx_mock.get(f"{SERVICE_URL_STR}/things").mock(return_value=httpx.Response(404))
    with caplog.at_level(logging.INFO, logger="erp_sdk.clients.base"):
        assert await service_client.fetch_resource("things", "things") is None
    assert "Failed to fetch things" in caplog.text
    assert SECRET not in caplog.text
    assert "secre..." in caplog.text


async def test_fetch_resource_success(service_client: RemoteServiceClient, respx_mock: MockRouter):
    respx_mock.get(f"{SERVICE_URL_STR}/things/7").mock(
        return_value=httpx.Response(200, json={"id": 7})
    )
    assert await service_client.fetch_resource("things/7", "thing") == {"id": 7}


async def test_close_keeps_external_client_open(http_client: httpx.AsyncClient):
    client = RemoteServiceClient(base_url=SERVICE_URL_STR, http_client=http_client)
    await client.close()
    assert http_client.is_closed is False


async def test_close_owned_client():
    client = RemoteServiceClient(base_url=SERVICE_URL_STR)
    await client.close()
    assert client._http_client.is_closed is True
