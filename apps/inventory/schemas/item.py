# apps/inventory/schemas/item.py
from typing import Optional

from pydantic import Field

from erp_sdk.schemas.base import MAX_RECORD_ID, BaseSchema, BaseWriteSchema


class ItemCreate(BaseWriteSchema):
    code: str = Field(min_length=1, max_length=50, description="Код товара.")
    name: str = Field(min_length=1, max_length=255, description="Название товара.")
    estimated_budget: float = Field(default=0, ge=0, description="Оценочный бюджет.")
    item_unit_id: Optional[int] = Field(default=None, ge=1, le=MAX_RECORD_ID, description="ID единицы измерения.")


class ItemUpdate(BaseWriteSchema):
    code: Optional[str] = Field(default=None, max_length=50)
    name: Optional[str] = Field(default=None, max_length=255)
    estimated_budget: Optional[float] = Field(default=None, ge=0)
    item_unit_id: Optional[int] = Field(default=None, ge=1, le=MAX_RECORD_ID)


class ItemRead(BaseSchema):
    code: str
    name: str
    estimated_budget: float = 0
    item_unit_id: Optional[int] = None
