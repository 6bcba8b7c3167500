# erp_sdk/data_access/local_manager.py
import logging
import re
import uuid
from typing import (
    Type,
    List,
    Optional,
    Any,
    Mapping,
    Dict,
    Sequence,
    Union,
)

from pydantic import BaseModel as PydanticBaseModel, ValidationError
from sqlalchemy import BigInteger, Integer, func, select as sa_select, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select as sqlmodel_select
from fastapi_filter.contrib.sqlalchemy import Filter as BaseSQLAlchemyFilter

from erp_sdk.db.base_model import utcnow
from erp_sdk.db.session import get_current_session
from erp_sdk.exceptions import (
    ConfigurationError,
    ResourceConflictError,
    ResourceNotFoundError,
    ResourceValidationError,
)
from .base_manager import (
    BaseDataAccessManager,
    DM_CreateSchemaType,
    DM_ReadSchemaType,
    DM_SQLModelType,
    DM_UpdateSchemaType,
    FiltersType,
)

logger = logging.getLogger("erp_sdk.data_access.local_manager")

# SQLSTATE коды PostgreSQL (asyncpg кладет их в orig.sqlstate)
PG_UNIQUE_VIOLATION = "23505"
PG_NOT_NULL_VIOLATION = "23502"
PG_FOREIGN_KEY_VIOLATION = "23503"

# Границы целочисленных колонок: INTEGER в PostgreSQL и 64-битное целое SQLite/BIGINT.
# Значение вне границы не может храниться в колонке, драйвер падает при его передаче.
MAX_INT32 = 2**31 - 1
MAX_INT64 = 2**63 - 1


class LocalDataAccessManager(
    BaseDataAccessManager[
        DM_SQLModelType, DM_CreateSchemaType, DM_UpdateSchemaType, DM_ReadSchemaType
    ]
):
    def __init__(self, *args: Any, session: Optional[AsyncSession] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        # Явная сессия - для работы вне запроса (скрипты, сидеры); иначе сессия запроса
        self._session = session

    @property
    def session(self) -> AsyncSession:
        if self._session is not None:
            return self._session
        return get_current_session()

    def _active_statement(self):
        return sqlmodel_select(self.model_cls).where(
            col(self.model_cls.deleted_at).is_(None)
        )

    def _build_filter(self, filters: FiltersType) -> Optional[BaseSQLAlchemyFilter]:
        if filters is None:
            return None
        if isinstance(filters, BaseSQLAlchemyFilter):
            return filters
        if not isinstance(filters, Mapping):
            raise TypeError(f"Unsupported filter type: {type(filters)}.")
        if self.filter_cls is None:
            raise ConfigurationError(
                f"Filter class not configured for {self.model_name}, cannot apply filters."
            )
        try:
            return self.filter_cls(**filters)
        except ValidationError as ve:
            raise ResourceValidationError(
                "Invalid filter parameters.",
                errors=ve.errors(include_url=False, include_context=False),
            ) from ve

    def _filtered_statement(self, filters: FiltersType):
        statement = self._active_statement()
        filter_obj = self._build_filter(filters)
        if filter_obj is not None:
            statement = filter_obj.filter(statement)
            statement = filter_obj.sort(statement)
        # id - последний ключ сортировки, чтобы страницы были стабильны
        return statement.order_by(col(self.model_cls.id).asc())

    def _int_bound(self, field_name: str) -> int:
        column = self.model_cls.__table__.columns.get(field_name)  # type: ignore[attr-defined]
        if column is not None and isinstance(column.type, Integer) and not isinstance(
            column.type, BigInteger
        ):
            return MAX_INT32
        return MAX_INT64

    def _storable(self, field_name: str, value: Any) -> bool:
        """False для целых, которые не помещаются в колонку: такая запись не может существовать."""
        if isinstance(value, bool) or not isinstance(value, int):
            return True
        return -self._int_bound(field_name) - 1 <= value <= self._int_bound(field_name)

    def _storable_ids(self, item_ids: Sequence[int]) -> List[int]:
        storable = [item_id for item_id in item_ids if self._storable("id", item_id)]
        if len(storable) != len(item_ids):
            logger.debug(
                f"Local DAM: skipped {len(item_ids) - len(storable)} {self.model_name} ID(s) outside the storage range."
            )
        return storable

    def _coerce(self, field_name: str, value: Any) -> Any:
        column = self.model_cls.__table__.columns.get(field_name)  # type: ignore[attr-defined]
        if column is None or value is None:
            return value
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value
        if python_type in (int, float, uuid.UUID) and isinstance(value, str):
            try:
                return python_type(value)
            except ValueError:
                expected = "a UUID" if python_type is uuid.UUID else "a number"
                raise ResourceValidationError(
                    f"Invalid value for '{field_name}': expected {expected}."
                )
        return value

    async def list(
        self,
        *,
        page: int = 1,
        per_page: int = 10,
        filters: FiltersType = None,
    ) -> Dict[str, Any]:
        logger.debug(
            f"Local DAM LIST: {self.model_name}, page: {page}, per_page: {per_page}, filters: {type(filters).__name__}"
        )
        statement = self._filtered_statement(filters)
        count_statement = sa_select(func.count()).select_from(
            statement.order_by(None).subquery()
        )
        session = self.session
        total = (await session.execute(count_statement)).scalar_one()
        page_statement = statement.offset((page - 1) * per_page).limit(per_page)
        result = await session.execute(page_statement)
        items = list(result.scalars().all())
        return {"items": items, "total": int(total)}

    async def list_all(self, filters: FiltersType = None) -> List[DM_SQLModelType]:
        result = await self.session.execute(self._filtered_statement(filters))
        return list(result.scalars().all())

    async def get(self, item_id: int) -> Optional[DM_SQLModelType]:
        logger.debug(f"Local DAM GET: {self.model_name} ID: {item_id}")
        if not self._storable_ids([item_id]):
            return None
        statement = self._active_statement().where(col(self.model_cls.id) == item_id)
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_many(self, item_ids: Sequence[int]) -> List[DM_SQLModelType]:
        item_ids = self._storable_ids(item_ids)
        if not item_ids:
            return []
        statement = self._active_statement().where(
            col(self.model_cls.id).in_(list(item_ids))
        )
        result = await self.session.execute(statement)
        by_id = {item.id: item for item in result.scalars().all()}
        return [by_id[item_id] for item_id in item_ids if item_id in by_id]

    async def find_by(self, criteria: Mapping[str, Any]) -> List[DM_SQLModelType]:
        logger.debug(f"Local DAM FIND_BY: {self.model_name} criteria: {dict(criteria)}")
        statement = self._active_statement()
        for field_name, value in criteria.items():
            if field_name not in self.model_cls.model_fields:
                raise ResourceValidationError(
                    f"Unknown field '{field_name}' for {self.model_name}."
                )
            column = getattr(self.model_cls, field_name)
            coerced = self._coerce(field_name, value)
            if not self._storable(field_name, coerced):
                return []
            if coerced is None:
                statement = statement.where(col(column).is_(None))
            else:
                statement = statement.where(col(column) == coerced)
        statement = statement.order_by(col(self.model_cls.id).asc())
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count_active(self) -> int:
        statement = (
            sa_select(func.count())
            .select_from(self.model_cls)
            .where(col(self.model_cls.deleted_at).is_(None))
        )
        return int((await self.session.execute(statement)).scalar_one())

    async def create(
        self, data: Union[DM_CreateSchemaType, Dict[str, Any]]
    ) -> DM_SQLModelType:
        logger.debug(f"Local DAM CREATE: {self.model_name}")
        if isinstance(data, dict):
            if self.create_schema_cls is None:
                raise ConfigurationError(
                    f"CreateSchema not defined for {self.model_cls.__name__}, cannot validate dict."
                )
            try:
                data = self.create_schema_cls.model_validate(data)
            except ValidationError as ve:
                raise ResourceValidationError(
                    "Validation failed.",
                    errors=ve.errors(include_url=False, include_context=False),
                ) from ve
        if not isinstance(data, PydanticBaseModel):
            raise TypeError(
                f"Unsupported data type for creating {self.model_cls.__name__}: {type(data)}."
            )

        now = utcnow()
        db_item = self.model_cls(**data.model_dump())
        db_item.created_at = now
        db_item.updated_at = now
        session = self.session
        session.add(db_item)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            self._handle_integrity_error(e, context="create")
        await session.refresh(db_item)
        logger.info(f"Successfully created {self.model_name} with ID {db_item.id}")
        return db_item

    async def update(
        self, item_id: int, data: Union[DM_UpdateSchemaType, Dict[str, Any]]
    ) -> DM_SQLModelType:
        logger.debug(f"Local DAM UPDATE: {self.model_name} ID: {item_id}")
        db_item = await self.get(item_id)
        if db_item is None:
            raise ResourceNotFoundError(f"{self.model_name} with ID {item_id} not found.")
        if isinstance(data, PydanticBaseModel):
            update_payload = data.model_dump(exclude_unset=True)
        else:
            update_payload = dict(data)

        for key, value in update_payload.items():
            if key not in self.model_cls.model_fields:
                logger.warning(
                    f"Attribute '{key}' not found on model {self.model_cls.__name__} during update."
                )
                continue
            setattr(db_item, key, value)
        db_item.updated_at = utcnow()

        session = self.session
        session.add(db_item)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            self._handle_integrity_error(e, context="update")
        await session.refresh(db_item)
        logger.info(f"Successfully updated {self.model_name} {item_id}")
        return db_item

    async def soft_delete(self, item_ids: Sequence[int]) -> List[int]:
        active = await self.get_many(item_ids)
        active_ids = [item.id for item in active]
        if not active_ids:
            return []
        now = utcnow()
        statement = (
            sa_update(self.model_cls)
            .where(col(self.model_cls.id).in_(active_ids))
            .where(col(self.model_cls.deleted_at).is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        session = self.session
        await session.execute(statement)
        await session.commit()
        logger.info(f"Soft-deleted {self.model_name} IDs {active_ids}")
        return active_ids

    def _handle_integrity_error(self, error: IntegrityError, context: str) -> None:
        orig_exc = getattr(error, "orig", None)
        sqlstate = getattr(orig_exc, "sqlstate", None) or getattr(
            getattr(orig_exc, "__cause__", None), "sqlstate", None
        )
        text = str(error).lower()
        logger.warning(
            f"IntegrityError during {context} for {self.model_name}: {type(orig_exc).__name__ if orig_exc else 'Unknown'}"
        )
        if sqlstate == PG_UNIQUE_VIOLATION or "unique constraint" in text or "duplicate key" in text:
            field_name = "unknown field"
            match = re.search(r"unique constraint failed: \w+\.(\w+)", text) or re.search(
                r"key \((\w+)\)", text
            )
            if match:
                field_name = match.group(1)
            raise ResourceConflictError(
                f"Conflict: Value for '{field_name}' already exists."
            ) from error
        if sqlstate == PG_NOT_NULL_VIOLATION or "not null constraint" in text or "not-null constraint" in text:
            raise ResourceValidationError(
                "A required field cannot be null."
            ) from error
        if sqlstate == PG_FOREIGN_KEY_VIOLATION or "foreign key constraint" in text:
            raise ResourceValidationError(
                "Related record not found."
            ) from error
        logger.error(
            f"Unhandled IntegrityError for {self.model_name} during {context}.", exc_info=True
        )
        raise ResourceConflictError(
            f"Database integrity error during {context}."
        ) from error
