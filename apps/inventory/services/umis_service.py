# apps/inventory/services/umis_service.py
import logging
from typing import Any, Optional

import httpx
from fastapi import Request

from erp_sdk.clients.base import RemoteServiceClient

from ..config import Settings

logger = logging.getLogger("app.services.umis")

UMIS_API_KEY_HEADER = "UMIS-Api-Key"
ERP_SYSTEM_HEADER = "X-ERP-System"
ERP_SYSTEM_NAME = "ZCMC-ERP"


class UMISService(RemoteServiceClient):
    """
    Клиент UMIS (структура организации, должности, пользователи).
    Все методы возвращают разобранный JSON или None, если UMIS недоступен
    или ответил ошибкой; причина пишется в лог.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        timeout: float = 30.0,
        verify_ssl: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json", ERP_SYSTEM_HEADER: ERP_SYSTEM_NAME}
        if api_key:
            headers[UMIS_API_KEY_HEADER] = api_key
        else:
            logger.warning("UMIS API key is not configured; requests will be sent without it.")
        super().__init__(
            base_url=base_url,
            headers=headers,
            secret_headers=[UMIS_API_KEY_HEADER],
            http_client=http_client,
            timeout=timeout,
            verify=verify_ssl,
        )

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "UMISService":
        return cls(
            base_url=settings.UMIS_API_URL,
            api_key=settings.UMIS_API_KEY,
            timeout=settings.UMIS_TIMEOUT,
            verify_ssl=settings.UMIS_VERIFY_SSL,
            http_client=http_client,
        )

    async def get_areas(self) -> Optional[Any]:
        return await self.fetch_resource("/erp-data-areas", "areas")

    async def get_area(self, area_id: int) -> Optional[Any]:
        return await self.fetch_resource(f"/assign-area/{area_id}", f"area {area_id}")

    async def get_organization_structure(self) -> Optional[Any]:
        # Отдельного эндпоинта у UMIS нет, структура строится по тем же областям
        return await self.fetch_resource("/erp-data-areas", "organization structure")

    async def get_designations(self) -> Optional[Any]:
        return await self.fetch_resource("/erp-data-designations", "designations")

    async def get_users(self) -> Optional[Any]:
        return await self.fetch_resource("/erp-data-users", "users")

    async def get_assigned_areas(self) -> Optional[Any]:
        return await self.fetch_resource("/erp-data-assigned-areas", "assigned areas")


def get_umis_service(request: Request) -> UMISService:
    """FastAPI dependency: клиент, созданный в lifespan сервиса."""
    service = getattr(request.app.state, "umis_service", None)
    if service is None:
        raise RuntimeError("UMISService is not initialized. Check the application lifespan hooks.")
    return service
