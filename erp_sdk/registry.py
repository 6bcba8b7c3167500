# erp_sdk/registry.py
import logging
import re
from typing import (
    Type,
    Dict,
    List,
    Optional,
    Any,
)

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from sqlmodel import SQLModel

from erp_sdk.exceptions import ConfigurationError
from erp_sdk.filters.base import build_resource_filter
from fastapi_filter.contrib.sqlalchemy import (
    Filter as BaseSQLAlchemyFilter,
)

logger = logging.getLogger("erp_sdk.registry")

DEFAULT_METHODS = "[GET, POST, PUT, DELETE]"
# Поля, которые клиент не может ни задать при создании, ни использовать в query
SERVER_MANAGED_FIELDS = ("id", "created_at", "updated_at", "deleted_at")


def _humanize(name: str) -> str:
    # ItemUnit -> "Item unit"
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", name).lower()
    return words[:1].upper() + words[1:]


class ResourceInfo(PydanticBaseModel):
    """
    Описание ресурса для универсального движка CRUD.
    Это конфигурация, а не базовый класс: один движок обслуживает все ресурсы.
    """

    name: str
    slug: str
    model_cls: Type[SQLModel]
    read_schema_cls: Type[PydanticBaseModel]
    create_schema_cls: Type[PydanticBaseModel]
    update_schema_cls: Type[PydanticBaseModel]
    manager_cls: Type[Any]
    filter_cls: Type[BaseSQLAlchemyFilter]

    label: str = Field(description="Название в единственном числе, напр. 'Item unit'")
    label_plural: str = Field(description="Название во множественном числе, напр. 'item units'")
    bulk_key: str = Field(description="Ключ массива в теле bulk запроса, напр. 'item_units'")

    display_fields: List[str]
    searchable_fields: List[str]
    unique_fields: List[str] = Field(default_factory=lambda: ["code"])
    query_fields: List[str]
    title_field: str
    methods: str = DEFAULT_METHODS

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ResourceRegistry:
    _registry: Dict[str, ResourceInfo] = {}
    _is_configured: bool = False

    @classmethod
    def register(
        cls,
        model_cls: Type[SQLModel],
        read_schema_cls: Type[PydanticBaseModel],
        create_schema_cls: Type[PydanticBaseModel],
        update_schema_cls: Type[PydanticBaseModel],
        *,
        display_fields: List[str],
        searchable_fields: Optional[List[str]] = None,
        unique_fields: Optional[List[str]] = None,
        title_field: Optional[str] = None,
        query_fields: Optional[List[str]] = None,
        label: Optional[str] = None,
        label_plural: Optional[str] = None,
        bulk_key: Optional[str] = None,
        slug: Optional[str] = None,
        name: Optional[str] = None,
        manager_cls: Optional[Type[Any]] = None,
        filter_cls: Optional[Type[BaseSQLAlchemyFilter]] = None,
    ) -> ResourceInfo:
        """
        Регистрирует ресурс. Незаданные названия выводятся из имени модели:
        ItemUnit -> name 'itemunit', label 'Item unit', label_plural 'item units',
        bulk_key 'item_units', slug 'item-units'.
        """
        from erp_sdk.data_access.local_manager import LocalDataAccessManager

        if not issubclass(model_cls, SQLModel):
            raise TypeError(
                f"Resource registration requires model_cls to be a SQLModel, got {type(model_cls)}"
            )
        for schema in (read_schema_cls, create_schema_cls, update_schema_cls):
            if not issubclass(schema, PydanticBaseModel):
                raise TypeError(
                    f"Schemas for '{model_cls.__name__}' must be Pydantic models, got {schema}"
                )
        if filter_cls and not issubclass(filter_cls, BaseSQLAlchemyFilter):
            raise TypeError(
                f"filter_cls for '{model_cls.__name__}' must be a subclass of fastapi_filter.contrib.sqlalchemy.Filter, got {type(filter_cls)}"
            )

        model_fields = list(model_cls.model_fields.keys())
        for field_name in display_fields:
            if field_name not in model_fields:
                raise ConfigurationError(
                    f"Display field '{field_name}' is not a field of {model_cls.__name__}"
                )

        human = _humanize(model_cls.__name__)
        label = label or human
        label_plural = label_plural or f"{human.lower()}s"
        bulk_key = bulk_key or label_plural.replace(" ", "_")
        slug = slug or label_plural.replace(" ", "-")
        resource_name = (name or model_cls.__name__).lower()

        if searchable_fields is None:
            searchable_fields = list(display_fields)
        if query_fields is None:
            query_fields = [f for f in model_fields if f not in SERVER_MANAGED_FIELDS]
            query_fields.insert(0, "id")
        effective_filter_cls = filter_cls or build_resource_filter(
            model_cls, searchable_fields
        )

        info = ResourceInfo(
            name=resource_name,
            slug=slug,
            model_cls=model_cls,
            read_schema_cls=read_schema_cls,
            create_schema_cls=create_schema_cls,
            update_schema_cls=update_schema_cls,
            manager_cls=manager_cls or LocalDataAccessManager,
            filter_cls=effective_filter_cls,
            label=label,
            label_plural=label_plural,
            bulk_key=bulk_key,
            display_fields=list(display_fields),
            searchable_fields=list(searchable_fields),
            unique_fields=list(unique_fields) if unique_fields is not None else ["code"],
            query_fields=query_fields,
            title_field=title_field or display_fields[0],
        )

        if resource_name in cls._registry:
            logger.warning(
                f"Resource '{resource_name}' is already registered. Overwriting previous configuration."
            )
        cls._registry[resource_name] = info
        cls._is_configured = True
        logger.info(
            f"Registry: Registered '{resource_name}' (Model: {model_cls.__name__}, slug: {slug}, bulk key: {bulk_key}, Filter: {effective_filter_cls.__name__})"
        )
        return info

    @classmethod
    def get_resource_info(
        cls, name: str, raise_error: bool = True
    ) -> Optional[ResourceInfo]:
        if not cls._is_configured:
            if raise_error:
                raise ConfigurationError(
                    "ResourceRegistry has not been configured. Ensure registration methods are called."
                )
            return None
        info = cls._registry.get(name.lower())
        if info is None and raise_error:
            raise ConfigurationError(
                f"Resource '{name}' not found in registry. Available resources: {list(cls._registry.keys())}"
            )
        return info

    @classmethod
    def all_resources(cls) -> List[ResourceInfo]:
        return list(cls._registry.values())

    @classmethod
    def rebuild_models(cls, force: bool = True) -> None:
        if not cls._is_configured:
            logger.warning("Cannot rebuild models: ResourceRegistry is not configured.")
            return
        rebuilt_classes = set()
        for info in cls._registry.values():
            for pydantic_class in (
                info.model_cls,
                info.read_schema_cls,
                info.create_schema_cls,
                info.update_schema_cls,
                info.filter_cls,
            ):
                if pydantic_class in rebuilt_classes:
                    continue
                try:
                    pydantic_class.model_rebuild(force=force)
                    rebuilt_classes.add(pydantic_class)
                except Exception as e:
                    logger.error(
                        f"  ERROR rebuilding {pydantic_class.__name__}: {e}", exc_info=True
                    )
        logger.info(
            f"Model rebuild finished. Processed {len(rebuilt_classes)} unique Pydantic classes."
        )

    @classmethod
    def clear(cls) -> None:
        logger.info("Clearing ResourceRegistry.")
        cls._registry = {}
        cls._is_configured = False

    @classmethod
    def is_configured(cls) -> bool:
        return cls._is_configured
