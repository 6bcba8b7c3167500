# erp_sdk/crud/factory.py
import json
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from erp_sdk.config import BaseAppSettings
from erp_sdk.crud.engine import BulkResourceEngine, ReadParams
from erp_sdk.data_access import DataAccessManagerFactory, get_dam_factory
from erp_sdk.exceptions import ConfigurationError, ResourceValidationError
from erp_sdk.registry import ResourceInfo, ResourceRegistry
from erp_sdk.schemas.results import ResourceResult

logger = logging.getLogger("erp_sdk.crud.factory")

# Параметры, которые не переносятся в ссылки навигации страниц
_NON_PAGE_PARAMS = {"page", "per_page", "id", "id[]", "query", "mode"}


def _collect_ids(id_values: Optional[List[str]], id_array: Optional[List[str]]) -> Optional[List[str]]:
    # ?id=1,2&id[]=3 -> ["1,2", "3"]; разбор и проверку делает resolver.parse_ids
    values = list(id_values or []) + list(id_array or [])
    return values or None


async def _read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ResourceValidationError("The request body must be valid JSON.")


def _render(result: ResourceResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.to_body())


class CRUDRouterFactory:
    """
    Строит APIRouter с четырьмя маршрутами на корне ресурса:
    GET (чтение/страница/выборка), POST (создание, bulk), PUT (частичное
    обновление, bulk), DELETE (мягкое удаление по id или query).
    Ошибки ResourceError рендерит обработчик из app_setup.
    """

    resource_name: str
    resource_info: ResourceInfo
    router: APIRouter

    def __init__(
        self,
        resource_name: str,
        prefix: str,
        settings: Optional[BaseAppSettings] = None,
        read_deps: Optional[List[Depends]] = None,
        create_deps: Optional[List[Depends]] = None,
        update_deps: Optional[List[Depends]] = None,
        delete_deps: Optional[List[Depends]] = None,
        tags: Optional[List[str]] = None,
    ):
        self.resource_name = resource_name
        try:
            self.resource_info = ResourceRegistry.get_resource_info(resource_name)
        except ConfigurationError as e:
            logger.error(
                f"CRUDRouterFactory: Failed to get ResourceInfo for '{resource_name}': {e}"
            )
            raise
        self.settings = settings

        self.router = APIRouter(prefix=prefix, tags=tags or [self.resource_info.label])

        # None означает, что маршрут не создается
        if read_deps is not None:
            self._add_read_route(dependencies=read_deps)
        if create_deps is not None:
            self._add_create_route(dependencies=create_deps)
        if update_deps is not None:
            self._add_update_route(dependencies=update_deps)
        if delete_deps is not None:
            self._add_delete_route(dependencies=delete_deps)

        logger.info(
            f"CRUDRouter for '{self.resource_name}' initialized with prefix '{prefix}'."
        )

    def _engine(self, dam_factory: DataAccessManagerFactory) -> BulkResourceEngine:
        manager = dam_factory.get_manager(self.resource_name)
        settings = self.settings
        if settings is None:
            return BulkResourceEngine(self.resource_info, manager)
        return BulkResourceEngine(
            self.resource_info,
            manager,
            default_per_page=settings.DEFAULT_PER_PAGE,
            max_per_page=settings.MAX_PER_PAGE,
            on_each_side=settings.PAGINATION_ON_EACH_SIDE,
            include_hints=not settings.is_production,
        )

    def _add_read_route(self, dependencies: List[Depends]):
        label_plural = self.resource_info.label_plural

        async def read_endpoint(
            request: Request,
            id: Optional[List[str]] = Query(
                None, description="Record ID, comma separated IDs or repeated id keys"
            ),
            id_array: Optional[List[str]] = Query(
                None, alias="id[]", description="Array-style IDs: id[]=1&id[]=2"
            ),
            page: Optional[str] = Query(None, description="Page number (>= 1), requires per_page"),
            per_page: Optional[str] = Query(None, description="Page size (1..100), requires page"),
            mode: Optional[str] = Query(None, description="'pagination' (default) or 'selection'"),
            search: Optional[str] = Query(None, description="Case-insensitive substring search"),
            query: Optional[str] = Query(None, description="JSON object of exact field matches"),
            order_by: Optional[str] = Query(None, description="Comma separated fields, '-' for descending"),
            dam_factory: DataAccessManagerFactory = Depends(get_dam_factory),
        ):
            params = ReadParams(
                ids=_collect_ids(id, id_array),
                page=page,
                per_page=per_page,
                mode=mode,
                search=search,
                query=query,
                order_by=order_by,
                path=str(request.url.replace(query="")),
                query_params={
                    key: value
                    for key, value in request.query_params.items()
                    if key not in _NON_PAGE_PARAMS
                },
            )
            result = await self._engine(dam_factory).read(params)
            return _render(result)

        self.router.add_api_route(
            path="",
            endpoint=read_endpoint,
            methods=["GET"],
            summary=f"Read {label_plural}",
            description=f"Single record by id, several records by ids or query, a page of {label_plural} or the selection list.",
            dependencies=dependencies,
        )

    def _add_create_route(self, dependencies: List[Depends]):
        key = self.resource_info.bulk_key

        async def create_endpoint(
            request: Request,
            dam_factory: DataAccessManagerFactory = Depends(get_dam_factory),
        ):
            body = await _read_json_body(request)
            result = await self._engine(dam_factory).create(body)
            return _render(result)

        self.router.add_api_route(
            path="",
            endpoint=create_endpoint,
            methods=["POST"],
            summary=f"Create {self.resource_info.label_plural}",
            description=f"Body is a single object or {{'{key}': [objects]}} for bulk insert.",
            dependencies=dependencies,
        )

    def _add_update_route(self, dependencies: List[Depends]):
        key = self.resource_info.bulk_key

        async def update_endpoint(
            request: Request,
            id: Optional[List[str]] = Query(None, description="Record ID(s) to update"),
            id_array: Optional[List[str]] = Query(None, alias="id[]"),
            dam_factory: DataAccessManagerFactory = Depends(get_dam_factory),
        ):
            body = await _read_json_body(request)
            result = await self._engine(dam_factory).update(_collect_ids(id, id_array), body)
            return _render(result)

        self.router.add_api_route(
            path="",
            endpoint=update_endpoint,
            methods=["PUT"],
            summary=f"Update {self.resource_info.label_plural}",
            description=f"Partial update. Several ids require {{'{key}': [partial objects]}} aligned by position.",
            dependencies=dependencies,
        )

    def _add_delete_route(self, dependencies: List[Depends]):
        async def delete_endpoint(
            id: Optional[List[str]] = Query(None, description="Record ID(s) to soft-delete"),
            id_array: Optional[List[str]] = Query(None, alias="id[]"),
            query: Optional[str] = Query(
                None, description="JSON object that must match exactly one active record"
            ),
            dam_factory: DataAccessManagerFactory = Depends(get_dam_factory),
        ):
            result = await self._engine(dam_factory).delete(_collect_ids(id, id_array), query)
            return _render(result)

        self.router.add_api_route(
            path="",
            endpoint=delete_endpoint,
            methods=["DELETE"],
            summary=f"Soft-delete {self.resource_info.label_plural}",
            dependencies=dependencies,
        )
