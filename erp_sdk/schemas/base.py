# erp_sdk/schemas/base.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Наибольший id, который помещается в колонку INTEGER первичного ключа
MAX_RECORD_ID = 2**31 - 1


class BaseSchema(BaseModel):
    """
    Базовая Pydantic схема чтения, зеркалирующая общие поля BaseModelWithMeta.
    deleted_at не публикуется: клиенту отдаются только активные записи.
    """

    id: Optional[int] = Field(default=None, description="Уникальный идентификатор записи")

    created_at: Optional[datetime] = Field(
        default=None, description="Дата и время создания записи (UTC)"
    )

    updated_at: Optional[datetime] = Field(
        default=None, description="Дата и время последнего обновления записи (UTC)"
    )

    model_config = ConfigDict(from_attributes=True)


class BaseWriteSchema(BaseModel):
    """
    Основа схем создания/обновления. Лишние ключи (id, временные метки и т.п.)
    молча отбрасываются, их выставляет сервер.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)
