# erp_sdk/filters/base.py

import logging
from typing import ClassVar, Optional, List, Sequence, Type
from datetime import datetime

from pydantic import Field
from fastapi_filter.contrib.sqlalchemy import Filter as BaseFilter
from sqlalchemy import or_
from sqlmodel import SQLModel

logger = logging.getLogger("erp_sdk.filters.base")

LIKE_ESCAPE = "/"


def escape_like(term: str) -> str:
    """Экранирует спецсимволы LIKE, чтобы поиск был буквальным: '100%' ищет именно '100%'."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


class DefaultFilter(BaseFilter):
    """
    Базовый фильтр ресурсов: поиск, сортировка и фильтрация по общим полям
    BaseModelWithMeta (ID, даты создания/обновления).

    Фильтрация по deleted_at здесь не предусмотрена: менеджер данных всегда
    ограничивает выборку активными записями.
    Фактическая логика выполняется методами `.filter()` и `.sort()`
    базового класса `fastapi_filter.contrib.sqlalchemy.Filter`;
    `search` - буквальный ILIKE по `Constants.search_model_fields` (метод `filter` ниже).
    """

    id__in: Optional[List[int]] = Field(
        default=None,
        title="Filter by ID list",
        description="Filter by a list of exact IDs.",
    )
    created_at__gte: Optional[datetime] = Field(
        default=None,
        title="Created at From",
        description="Filter by creation date (greater than or equal to).",
    )
    created_at__lt: Optional[datetime] = Field(
        default=None,
        title="Created at To",
        description="Filter by creation date (less than).",
    )
    updated_at__gte: Optional[datetime] = Field(
        default=None,
        title="Updated at From",
        description="Filter by update date (greater than or equal to).",
    )
    updated_at__lt: Optional[datetime] = Field(
        default=None,
        title="Updated at To",
        description="Filter by update date (less than).",
    )

    order_by: Optional[List[str]] = Field(
        default=None,
        title="Order by fields",
        description="Fields to order by. Prefix with '-' for descending order (e.g., 'code,-created_at').",
    )
    search: Optional[str] = Field(
        default=None,
        title="Search term",
        description="Case-insensitive substring search across the resource's searchable fields.",
    )

    class Constants(BaseFilter.Constants):
        model: Type[SQLModel]

    def filter(self, query):
        # Базовый класс строит ILIKE '%term%' без экранирования, '%' и '_' совпали бы со всем
        search_fields = getattr(self.Constants, "search_model_fields", None)
        if not self.search or not search_fields:
            return super().filter(query)
        query = super(DefaultFilter, self.model_copy(update={"search": None})).filter(query)
        pattern = f"%{escape_like(self.search)}%"
        return query.filter(
            or_(
                *[
                    getattr(self.Constants.model, field).ilike(pattern, escape=LIKE_ESCAPE)
                    for field in search_fields
                ]
            )
        )


def build_resource_filter(
    model_cls: Type[SQLModel],
    search_fields: Sequence[str],
    base_filter_cls: Type[DefaultFilter] = DefaultFilter,
) -> Type[DefaultFilter]:
    """
    Создает подкласс фильтра с Constants, привязанными к модели ресурса.
    Используется реестром, когда для ресурса не зарегистрирован свой фильтр.
    """
    filter_name = f"{model_cls.__name__}Filter"
    constants_name = f"{model_cls.__name__}FilterConstants"
    constants_cls = type(
        constants_name,
        (base_filter_cls.Constants,),
        {
            "model": model_cls,
            "search_model_fields": list(search_fields),
            "__module__": base_filter_cls.__module__,
            "__qualname__": f"{filter_name}.Constants",
        },
    )
    attrs = {
        "Constants": constants_cls,
        "__module__": base_filter_cls.__module__,
        "__qualname__": filter_name,
        "__annotations__": {"Constants": ClassVar[Type[constants_cls]]},
    }
    filter_cls = type(filter_name, (base_filter_cls,), attrs)
    filter_cls.model_rebuild(force=True)
    logger.debug(
        f"Built filter {filter_name} for {model_cls.__name__} (search fields: {list(search_fields)})"
    )
    return filter_cls
