# erp_sdk/crud/engine.py
import functools
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from erp_sdk.crud import formatter
from erp_sdk.crud.resolver import (
    RawIds,
    normalize_search,
    parse_ids,
    parse_query,
    resolve_ids,
    resolve_query,
    resolve_single_for_delete,
)
from erp_sdk.data_access.base_manager import BaseDataAccessManager
from erp_sdk.exceptions import (
    CountMismatchError,
    EmptyUpdateError,
    ResourceError,
    ResourceNotFoundError,
    ResourceValidationError,
)
from erp_sdk.registry import ResourceInfo
from erp_sdk.schemas.results import (
    CollectionResult,
    DeleteResult,
    MutationResult,
    ResourceResult,
    SingleResult,
)

logger = logging.getLogger("erp_sdk.crud.engine")

READ_MODES = ("pagination", "selection")


class ReadParams(BaseModel):
    """Разобранные параметры GET запроса. Значения page/per_page - как пришли."""

    ids: RawIds = None
    page: Optional[Union[int, str]] = None
    per_page: Optional[Union[int, str]] = None
    mode: Optional[str] = None
    search: Optional[str] = None
    query: Optional[Union[str, Dict[str, Any]]] = None
    order_by: Optional[str] = None
    path: str = ""
    query_params: Dict[str, Any] = Field(default_factory=dict)


def _with_request_hints(operation: str):
    """Дополняет ResourceError методами ресурса и подсказками по параметрам."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self: "BulkResourceEngine", *args: Any, **kwargs: Any):
            try:
                return await func(self, *args, **kwargs)
            except ResourceError as e:
                e.methods = e.methods or self.resource.methods
                if not e.hints:
                    e.hints = self.request_hints(operation)
                logger.warning(
                    f"{operation.upper()} {self.resource.name} rejected with {e.status_code}: {e.message}"
                )
                raise

        return wrapper

    return decorator


class BulkResourceEngine:
    """
    Универсальный обработчик чтения, bulk создания, bulk частичного обновления
    и мягкого удаления для одного ресурса. Не зависит от HTTP: принимает
    разобранные параметры и тело, возвращает ResourceResult или бросает ResourceError.
    """

    def __init__(
        self,
        resource: ResourceInfo,
        manager: BaseDataAccessManager,
        *,
        default_per_page: int = 10,
        max_per_page: int = 100,
        on_each_side: int = 3,
        include_hints: bool = False,
    ):
        self.resource = resource
        self.manager = manager
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page
        self.on_each_side = on_each_side
        self.include_hints = include_hints

    # --- helpers ---

    @property
    def _label_lower(self) -> str:
        return self.resource.label.lower()

    def serialize(self, record: Any) -> Dict[str, Any]:
        return self.resource.read_schema_cls.model_validate(record).model_dump(mode="json")

    def _metadata(self, **extra: Any) -> Dict[str, Any]:
        return {"methods": self.resource.methods, **extra}

    def request_hints(self, operation: str) -> Dict[str, Any]:
        key = self.resource.bulk_key
        if operation == "read":
            return {
                "expected": {
                    "id": "integer, comma separated list or id[] array",
                    "page": "integer >= 1, together with per_page",
                    "per_page": f"integer 1..{self.max_per_page}, together with page",
                    "mode": "pagination | selection",
                    "search": "string",
                    "query": "JSON object of exact field matches",
                }
            }
        if operation == "create":
            return {"expected": {"body": f"object with fields or {{'{key}': [objects]}}"}}
        if operation == "update":
            return {
                "expected": {
                    "id": "required: integer, comma separated list or id[] array",
                    "body": f"partial object (single id) or {{'{key}': [partial objects]}} aligned with ids",
                }
            }
        return {
            "expected": {
                "id": "integer, comma separated list or id[] array",
                "query": f"JSON object matching exactly one record, fields: {self.resource.query_fields}",
            }
        }

    @staticmethod
    def _validation_errors(error: ValidationError) -> List[Dict[str, Any]]:
        return error.errors(include_url=False, include_context=False)

    @staticmethod
    def _has_value(raw: Any) -> bool:
        if raw is None:
            return False
        if isinstance(raw, (list, tuple)):
            return len(raw) > 0
        return True

    # --- read ---

    def _page_params(self, params: ReadParams) -> Tuple[int, int]:
        if params.page is None and params.per_page is None:
            return 1, self.default_per_page
        if params.page is None or params.per_page is None:
            raise ResourceValidationError(
                "Invalid request.",
                errors=["The page and per_page parameters must be provided together."],
            )
        try:
            page = int(params.page)
            per_page = int(params.per_page)
        except (TypeError, ValueError):
            raise ResourceValidationError(
                "Invalid request.", errors=["page and per_page must be integers."]
            )
        if page < 1:
            raise ResourceValidationError(
                "Invalid request.", errors=["page must be at least 1."]
            )
        if not 1 <= per_page <= self.max_per_page:
            raise ResourceValidationError(
                "Invalid request.",
                errors=[f"per_page must be between 1 and {self.max_per_page}."],
            )
        return page, per_page

    @_with_request_hints("read")
    async def read(self, params: ReadParams) -> ResourceResult:
        mode = params.mode or "pagination"
        if mode not in READ_MODES:
            raise ResourceValidationError(
                "Invalid request.", errors=[f"Unknown mode '{mode}'. Allowed: {', '.join(READ_MODES)}."]
            )
        hints = formatter.read_hints(params.path) if self.include_hints else None

        if self._has_value(params.ids):
            ids = parse_ids(params.ids)
            if len(ids) == 1:
                record = await self.manager.get(ids[0])
                if record is None:
                    raise ResourceNotFoundError("No record found.")
                return SingleResult(
                    data=self.serialize(record),
                    message="Successfully retrieve record.",
                    metadata=formatter.build_metadata(self.resource.methods, hints),
                )
            records = await resolve_ids(self.manager, ids)
            if not records:
                raise ResourceNotFoundError("No record found.")
            return CollectionResult(
                data=[self.serialize(r) for r in records],
                message=formatter.READ_MESSAGE,
                metadata=formatter.build_metadata(self.resource.methods, hints),
            )

        if params.query is not None:
            criteria = parse_query(params.query, self.resource.query_fields)
            records = await resolve_query(self.manager, criteria)
            if not records:
                raise ResourceNotFoundError("No record found.")
            return CollectionResult(
                data=[self.serialize(r) for r in records],
                message=formatter.READ_MESSAGE,
                metadata=formatter.build_metadata(self.resource.methods, hints),
            )

        filters: Dict[str, Any] = {}
        search = normalize_search(params.search)
        if search:
            filters["search"] = search
        if params.order_by:
            filters["order_by"] = params.order_by

        if mode == "selection":
            records = await self.manager.list_all(filters or None)
            return formatter.build_selection_result(
                records, self.resource.display_fields, self.resource.methods
            )

        page, per_page = self._page_params(params)
        result = await self.manager.list(page=page, per_page=per_page, filters=filters or None)
        return formatter.build_page_result(
            [self.serialize(r) for r in result["items"]],
            total=result["total"],
            page=page,
            per_page=per_page,
            path=params.path,
            methods=self.resource.methods,
            query_params=params.query_params,
            on_each_side=self.on_each_side,
            hints=hints,
        )

    # --- create ---

    async def _duplicate_fields(
        self, obj: BaseModel, seen: Dict[str, set]
    ) -> List[str]:
        """Уникальные поля obj, которые уже заняты активной записью или ранее в пакете."""
        duplicates = []
        for field in self.resource.unique_fields:
            value = getattr(obj, field, None)
            if value is None:
                continue
            if value in seen.setdefault(field, set()):
                duplicates.append(field)
                continue
            if await self.manager.find_by({field: value}):
                duplicates.append(field)
        return duplicates

    @staticmethod
    def _remember(obj: BaseModel, fields: List[str], seen: Dict[str, set]) -> None:
        for field in fields:
            value = getattr(obj, field, None)
            if value is not None:
                seen.setdefault(field, set()).add(value)

    @_with_request_hints("create")
    async def create(self, body: Any) -> MutationResult:
        if not isinstance(body, Mapping):
            raise ResourceValidationError("The request body must be a JSON object.")
        if self.resource.bulk_key in body:
            return await self._create_bulk(body[self.resource.bulk_key])

        try:
            obj = self.resource.create_schema_cls.model_validate(body)
        except ValidationError as ve:
            raise ResourceValidationError(
                "Validation error.", errors=self._validation_errors(ve)
            ) from ve
        duplicates = await self._duplicate_fields(obj, {})
        if duplicates:
            raise ResourceValidationError(
                "Validation error.",
                errors=[
                    f"The {field} '{getattr(obj, field)}' has already been taken."
                    for field in duplicates
                ],
            )
        record = await self.manager.create(obj)
        logger.info(f"Created {self.resource.name} ID {record.id}")
        return MutationResult(
            data=self.serialize(record),
            message=f"Successfully created {self._label_lower} record.",
            status_code=201,
            metadata=self._metadata(),
        )

    async def _create_bulk(self, items: Any) -> MutationResult:
        key = self.resource.bulk_key
        if not isinstance(items, list) or not items:
            raise ResourceValidationError(f"The {key} field must be a non-empty array.")

        validated: List[Tuple[int, Any, BaseModel]] = []
        errors: List[Dict[str, Any]] = []
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                errors.append({"index": index, "item": item, "errors": ["Item must be an object."]})
                continue
            try:
                validated.append(
                    (index, item, self.resource.create_schema_cls.model_validate(item))
                )
            except ValidationError as ve:
                errors.append(
                    {"index": index, "item": item, "errors": self._validation_errors(ve)}
                )

        created: List[Dict[str, Any]] = []
        duplicate_items: List[Dict[str, Any]] = []
        seen: Dict[str, set] = {}
        for index, item, obj in validated:
            duplicates = await self._duplicate_fields(obj, seen)
            if duplicates:
                duplicate_items.append({"index": index, "item": item, "fields": duplicates})
                continue
            try:
                record = await self.manager.create(obj)
            except ResourceError as e:
                errors.append({"index": index, "item": item, "errors": [e.message]})
                continue
            # Сериализуем сразу: rollback следующей неудачной вставки экспирирует объекты сессии
            created.append(self.serialize(record))
            self._remember(obj, self.resource.unique_fields, seen)

        logger.info(
            f"Bulk create {self.resource.name}: {len(created)} created, {len(errors)} invalid, {len(duplicate_items)} duplicate(s) out of {len(items)}"
        )
        metadata = self._metadata(duplicate_items=duplicate_items)
        if len(created) == len(items):
            return MutationResult(
                data=created,
                message=f"Successfully created {self.resource.label_plural} record",
                status_code=201,
                metadata=metadata,
            )
        if created:
            return MutationResult(
                data=created,
                message=f"Partially created {self.resource.label_plural} records.",
                status_code=207,
                status="partial_success",
                errors=errors,
                metadata=metadata,
            )
        return MutationResult(
            data=[],
            message=f"No {self.resource.label_plural} were created.",
            status_code=422,
            status="failure",
            errors=errors,
            metadata=metadata,
        )

    # --- update ---

    def _update_fields(self, body: Any, index: Optional[int] = None) -> Dict[str, Any]:
        where = f" at index {index}" if index is not None else ""
        if not isinstance(body, Mapping):
            raise ResourceValidationError(f"Update data{where} must be an object.")
        try:
            obj = self.resource.update_schema_cls.model_validate(body)
        except ValidationError as ve:
            raise ResourceValidationError(
                f"Validation error{where}.", errors=self._validation_errors(ve)
            ) from ve
        fields = {
            name: value
            for name, value in obj.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        if not fields:
            raise EmptyUpdateError(f"No valid fields provided for update{where}.")
        return fields

    @_with_request_hints("update")
    async def update(self, raw_ids: RawIds, body: Any) -> MutationResult:
        if not self._has_value(raw_ids):
            raise ResourceValidationError("The id parameter is required.")
        ids = parse_ids(raw_ids)
        if not isinstance(body, Mapping):
            raise ResourceValidationError("The request body must be a JSON object.")

        key = self.resource.bulk_key
        if key not in body:
            if len(ids) > 1:
                raise ResourceValidationError(
                    f"Multiple IDs provided but no {self.resource.label_plural} array."
                )
            fields = self._update_fields(body)
            try:
                record = await self.manager.update(ids[0], fields)
            except ResourceNotFoundError:
                raise ResourceNotFoundError(f"{self.resource.label} with ID {ids[0]} not found.")
            logger.info(f"Updated {self.resource.name} ID {ids[0]}: {list(fields)}")
            return MutationResult(
                data=self.serialize(record),
                message=f"{self.resource.label} updated successfully.",
                metadata=self._metadata(fields=list(fields)),
            )

        bodies = body[key]
        if not isinstance(bodies, list) or not bodies:
            raise ResourceValidationError(f"The {key} field must be a non-empty array.")
        if len(ids) != len(bodies):
            raise CountMismatchError(
                f"Number of IDs does not match number of {self.resource.label_plural} provided",
                extra={"ids_count": len(ids), "items_count": len(bodies)},
            )
        # Все объекты проверяются до первой записи в базу
        planned = [
            (item_id, self._update_fields(item, index))
            for index, (item_id, item) in enumerate(zip(ids, bodies))
        ]

        updated: List[Dict[str, Any]] = []
        errors: List[str] = []
        not_found = 0
        for item_id, fields in planned:
            try:
                record = await self.manager.update(item_id, fields)
            except ResourceNotFoundError:
                not_found += 1
                errors.append(f"{self.resource.label} with ID {item_id} not found.")
                continue
            except ResourceError as e:
                # Ошибка хранилища по одному id не прерывает остальные обновления
                errors.append(f"{self.resource.label} with ID {item_id}: {e.message}")
                continue
            updated.append(self.serialize(record))

        logger.info(
            f"Bulk update {self.resource.name}: {len(updated)} updated, {len(errors)} failed"
        )
        if not errors:
            return MutationResult(
                data=updated,
                message=f"Successfully updated {len(updated)} {self.resource.label_plural}.",
                metadata=self._metadata(),
            )
        if updated:
            return MutationResult(
                data=updated,
                message="Partial update completed with errors.",
                status_code=207,
                status="partial_success",
                errors=errors,
                metadata=self._metadata(),
            )
        return MutationResult(
            data=[],
            message=f"No {self.resource.label_plural} were updated.",
            status_code=404 if not_found == len(errors) else 422,
            status="failure",
            errors=errors,
            metadata=self._metadata(),
        )

    # --- delete ---

    @_with_request_hints("delete")
    async def delete(self, raw_ids: RawIds, raw_query: Any) -> DeleteResult:
        has_ids = self._has_value(raw_ids)
        has_query = raw_query is not None
        if has_ids == has_query:
            raise ResourceValidationError(
                "Provide either the id or the query parameter, but not both."
            )

        if has_ids:
            ids = parse_ids(raw_ids)
            deleted_ids = await self.manager.soft_delete(ids)
            if not deleted_ids:
                raise ResourceNotFoundError(
                    f"No active {self.resource.label_plural} found for the provided IDs."
                )
            remaining = await self.manager.count_active()
            logger.info(f"Soft-deleted {self.resource.name} IDs {deleted_ids}")
            return DeleteResult(
                message=f"Successfully deleted {len(deleted_ids)} {self._label_lower}(s).",
                deleted_ids=deleted_ids,
                count=len(deleted_ids),
                remaining_active=remaining,
                metadata=self._metadata(),
            )

        criteria = parse_query(raw_query, self.resource.query_fields)
        record = await resolve_single_for_delete(
            self.manager, criteria, self.resource.label_plural
        )
        record_id = record.id
        display_name = getattr(record, self.resource.title_field, None)
        await self.manager.soft_delete([record_id])
        remaining = await self.manager.count_active()
        logger.info(f"Soft-deleted {self.resource.name} ID {record_id} by query {criteria}")
        return DeleteResult(
            message=f"Successfully deleted {self._label_lower}.",
            deleted_id=record_id,
            display_name=None if display_name is None else str(display_name),
            remaining_active=remaining,
            metadata=self._metadata(),
        )
