# erp_sdk/crud/resolver.py
"""
Разбор параметров запроса и выборка активных записей.

Все формы id (число, CSV строка, повторяющиеся ключи `id=` и `id[]=`)
приводятся к одному упорядоченному списку уникальных положительных int,
поэтому одно и то же множество id всегда дает одну и ту же выборку.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from erp_sdk.data_access.base_manager import BaseDataAccessManager
from erp_sdk.exceptions import (
    AmbiguousMatchError,
    InvalidIdFormatError,
    ResourceNotFoundError,
    ResourceValidationError,
)

logger = logging.getLogger("erp_sdk.crud.resolver")

RawIds = Union[int, str, Sequence[Union[int, str]], None]
SCALAR_TYPES = (str, int, float, bool)


def _iter_tokens(raw: Any) -> Iterable[Any]:
    if isinstance(raw, (list, tuple)):
        for entry in raw:
            yield from _iter_tokens(entry)
    elif isinstance(raw, str):
        yield from raw.split(",")
    else:
        yield raw


def parse_ids(raw: RawIds) -> List[int]:
    """
    >>> parse_ids("3, 1,3")
    [3, 1]
    >>> parse_ids(["1,2", "5"])
    [1, 2, 5]
    """
    if raw is None:
        raise ResourceValidationError("The id parameter is required.")

    ids: List[int] = []
    seen = set()
    for token in _iter_tokens(raw):
        if isinstance(token, bool):
            raise InvalidIdFormatError("Invalid ID format provided.")
        if isinstance(token, int):
            value = token
        else:
            text = str(token).strip()
            if not text:
                continue
            # isdigit() пропускает не-ASCII цифры ("²", "٣"), int() их не разбирает
            if not (text.isascii() and text.isdigit()):
                raise InvalidIdFormatError(
                    "Invalid ID format provided.", extra={"invalid_id": text}
                )
            value = int(text)
        if value < 1:
            raise InvalidIdFormatError(
                "Invalid ID format provided.", extra={"invalid_id": value}
            )
        if value not in seen:
            seen.add(value)
            ids.append(value)

    if not ids:
        raise ResourceValidationError("No valid IDs provided.")
    return ids


def parse_query(
    raw: Union[str, Mapping[str, Any], None], allowed_fields: Sequence[str]
) -> Dict[str, Any]:
    """Разбирает `query` (JSON объект) в словарь поле -> значение для точного сравнения."""
    if raw is None:
        raise ResourceValidationError("The query parameter is required.")
    if isinstance(raw, str):
        try:
            criteria = json.loads(raw)
        except json.JSONDecodeError:
            raise ResourceValidationError("The query parameter must be a valid JSON object.")
    else:
        criteria = raw

    if not isinstance(criteria, Mapping):
        raise ResourceValidationError("The query parameter must be a JSON object.")
    if not criteria:
        raise ResourceValidationError("The query parameter must not be empty.")

    unknown = [field for field in criteria if field not in allowed_fields]
    if unknown:
        raise ResourceValidationError(
            f"Unknown query field(s): {', '.join(unknown)}.",
            extra={"allowed_fields": list(allowed_fields)},
        )
    for field, value in criteria.items():
        if value is not None and not isinstance(value, SCALAR_TYPES):
            raise ResourceValidationError(
                f"Query field '{field}' must be a scalar value."
            )
    return dict(criteria)


def normalize_search(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    term = raw.strip()
    return term or None


async def resolve_ids(manager: BaseDataAccessManager, ids: Sequence[int]) -> List[Any]:
    records = await manager.get_many(ids)
    logger.debug(
        f"Resolved {len(records)} active {manager.model_name} record(s) out of {len(ids)} id(s)."
    )
    return records


async def resolve_query(
    manager: BaseDataAccessManager, criteria: Mapping[str, Any]
) -> List[Any]:
    records = await manager.find_by(criteria)
    logger.debug(
        f"Query {dict(criteria)} matched {len(records)} active {manager.model_name} record(s)."
    )
    return records


async def resolve_single_for_delete(
    manager: BaseDataAccessManager,
    criteria: Mapping[str, Any],
    label_plural: str,
) -> Any:
    """Ровно одна активная запись по query. Иначе NotFound / AmbiguousMatch."""
    records = await resolve_query(manager, criteria)
    if not records:
        raise ResourceNotFoundError(
            f"No active {label_plural} found matching the query."
        )
    if len(records) > 1:
        candidates = [
            manager.read_schema_cls.model_validate(record).model_dump(mode="json")
            for record in records
        ]
        raise AmbiguousMatchError(
            "Query matches multiple records. Please refine your query to match exactly one record.",
            candidates=candidates,
        )
    return records[0]
