# erp_sdk/data_access/base_manager.py
import logging
from abc import ABC, abstractmethod
from typing import (
    Type,
    Optional,
    Any,
    Mapping,
    Dict,
    List,
    Sequence,
    TypeVar,
    Generic,
    Union,
)
from pydantic import BaseModel as PydanticBaseModel
from sqlmodel import SQLModel

from fastapi_filter.contrib.sqlalchemy import Filter as BaseSQLAlchemyFilter

logger = logging.getLogger("erp_sdk.data_access.base_manager")

DM_SQLModelType = TypeVar("DM_SQLModelType", bound=SQLModel)
DM_ReadSchemaType = TypeVar("DM_ReadSchemaType", bound=PydanticBaseModel)
DM_CreateSchemaType = TypeVar("DM_CreateSchemaType", bound=PydanticBaseModel)
DM_UpdateSchemaType = TypeVar("DM_UpdateSchemaType", bound=PydanticBaseModel)

FiltersType = Optional[Union[BaseSQLAlchemyFilter, Mapping[str, Any]]]


class BaseDataAccessManager(
    Generic[DM_SQLModelType, DM_CreateSchemaType, DM_UpdateSchemaType, DM_ReadSchemaType],
    ABC,
):
    """
    Интерфейс доступа к хранилищу ресурса.
    Все методы чтения видят только активные записи (deleted_at IS NULL).
    """

    model_cls: Type[DM_SQLModelType]
    create_schema_cls: Optional[Type[DM_CreateSchemaType]]
    update_schema_cls: Optional[Type[DM_UpdateSchemaType]]
    read_schema_cls: Type[DM_ReadSchemaType]
    filter_cls: Optional[Type[BaseSQLAlchemyFilter]]

    model_name: str

    def __init__(
        self,
        model_name: str,
        model_cls: Type[DM_SQLModelType],
        read_schema_cls: Type[DM_ReadSchemaType],
        create_schema_cls: Optional[Type[DM_CreateSchemaType]] = None,
        update_schema_cls: Optional[Type[DM_UpdateSchemaType]] = None,
        filter_cls: Optional[Type[BaseSQLAlchemyFilter]] = None,
    ):
        self.model_name = model_name
        self.model_cls = model_cls
        self.read_schema_cls = read_schema_cls
        self.create_schema_cls = create_schema_cls
        self.update_schema_cls = update_schema_cls
        self.filter_cls = filter_cls
        logger.debug(
            f"{self.__class__.__name__} initialized for model '{model_name}' ({model_cls.__name__})"
        )

    @abstractmethod
    async def list(
        self,
        *,
        page: int = 1,
        per_page: int = 10,
        filters: FiltersType = None,
    ) -> Dict[str, Any]:
        """
        Страница активных записей.
        Возвращает словарь {'items': List[DM_SQLModelType], 'total': int}.
        """
        pass

    @abstractmethod
    async def list_all(self, filters: FiltersType = None) -> List[DM_SQLModelType]:
        """Все активные записи (с учетом фильтров), упорядоченные по id."""
        pass

    @abstractmethod
    async def get(self, item_id: int) -> Optional[DM_SQLModelType]:
        pass

    @abstractmethod
    async def get_many(self, item_ids: Sequence[int]) -> List[DM_SQLModelType]:
        """Активные записи среди item_ids в порядке item_ids."""
        pass

    @abstractmethod
    async def find_by(self, criteria: Mapping[str, Any]) -> List[DM_SQLModelType]:
        """Активные записи, поля которых точно равны criteria."""
        pass

    @abstractmethod
    async def count_active(self) -> int:
        pass

    @abstractmethod
    async def create(
        self, data: Union[DM_CreateSchemaType, Dict[str, Any]]
    ) -> DM_SQLModelType:
        pass

    @abstractmethod
    async def update(
        self, item_id: int, data: Union[DM_UpdateSchemaType, Dict[str, Any]]
    ) -> DM_SQLModelType:
        pass

    @abstractmethod
    async def soft_delete(self, item_ids: Sequence[int]) -> List[int]:
        """Помечает активные записи среди item_ids удаленными. Возвращает их id."""
        pass

    async def delete(self, item_id: int) -> bool:
        return bool(await self.soft_delete([item_id]))
