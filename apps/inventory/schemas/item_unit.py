# apps/inventory/schemas/item_unit.py
from typing import Optional

from pydantic import Field

from erp_sdk.schemas.base import BaseSchema, BaseWriteSchema


class ItemUnitCreate(BaseWriteSchema):
    code: str = Field(min_length=1, max_length=50, description="Короткий код единицы.")
    name: str = Field(min_length=1, max_length=255, description="Название единицы.")
    description: Optional[str] = Field(default=None, description="Описание единицы.")


class ItemUnitUpdate(BaseWriteSchema):
    code: Optional[str] = Field(default=None, max_length=50)
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)


class ItemUnitRead(BaseSchema):
    code: str
    name: str
    description: Optional[str] = None
