# erp_sdk/clients/base.py
import logging
import httpx
from typing import Any, Collection, Dict, List, Mapping, Optional

from erp_sdk.exceptions import ServiceCommunicationError

logger = logging.getLogger("erp_sdk.clients.base")


def mask_secret(value: Optional[str], visible: int = 5) -> str:
    if not value:
        return "<empty>"
    return f"{value[:visible]}..."


class RemoteServiceClient:
    """
    Базовый HTTP-клиент для чтения JSON из внешних сервисов.

    `_request` бросает ServiceCommunicationError; `fetch_resource` - обертка
    для интеграций, которым при сбое достаточно None и записи в лог.
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Mapping[str, str]] = None,
        secret_headers: Collection[str] = (),
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        verify: bool = True,
    ):
        self.base_url_str = str(base_url).rstrip("/")
        self.default_headers: Dict[str, str] = dict(headers or {})
        self.secret_headers = {h.lower() for h in secret_headers}
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout, verify=verify)
        self._owns_client = http_client is None
        logger.debug(
            f"RemoteServiceClient initialized for {self.base_url_str}. Owns client: {self._owns_client}"
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url_str}/{path.lstrip('/')}"

    def _loggable_headers(self, headers: Mapping[str, str]) -> Dict[str, str]:
        return {
            key: mask_secret(value) if key.lower() in self.secret_headers else value
            for key, value in headers.items()
        }

    async def _request(
        self,
        method: str,
        path: str,
        allowed_statuses: Optional[List[int]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = self._url(path)
        headers = dict(self.default_headers)
        headers.update(kwargs.pop("headers", {}))
        logger.debug(
            f"Executing remote call: {method} {url}, Params: {kwargs.get('params')}, Headers: {self._loggable_headers(headers)}"
        )
        try:
            response = await self._http_client.request(method, url, headers=headers, **kwargs)
            effective_allowed_statuses = allowed_statuses if allowed_statuses is not None else [200, 201, 204]
            if response.status_code not in effective_allowed_statuses:
                logger.warning(
                    f"Remote call to {url} returned unexpected status: {response.status_code}. Response text: {response.text[:500]}"
                )
                response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise ServiceCommunicationError(f"Timeout error accessing {url}: {e!s}", url=url) from e
        except httpx.RequestError as e:
            raise ServiceCommunicationError(f"Network error accessing {url}: {e!s}", url=url) from e
        except httpx.HTTPStatusError as e:
            raise ServiceCommunicationError(
                message=f"Service responded with error: {e.response.text[:500]}",
                status_code=e.response.status_code,
                url=url,
            ) from e

    async def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self._request("GET", path, params=params, allowed_statuses=[200])
        try:
            return response.json()
        except ValueError as e:
            raise ServiceCommunicationError(
                "Service returned invalid JSON", status_code=response.status_code, url=str(response.url)
            ) from e

    async def fetch_resource(
        self, path: str, resource: str, params: Optional[Mapping[str, Any]] = None
    ) -> Optional[Any]:
        """GET path -> разобранный JSON, либо None (с записью в лог) при любой ошибке связи."""
        logger.info(
            f"Fetching {resource} from {self._url(path)} (headers: {self._loggable_headers(self.default_headers)})"
        )
        try:
            data = await self.get_json(path, params=params)
        except ServiceCommunicationError as e:
            logger.error(f"Failed to fetch {resource}: {e}")
            return None
        logger.info(f"Fetched {resource} from {self._url(path)}")
        return data

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
