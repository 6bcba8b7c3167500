# apps/inventory/schemas/purchase_type.py
from typing import Optional

from pydantic import Field

from erp_sdk.schemas.base import BaseSchema, BaseWriteSchema


class PurchaseTypeCreate(BaseWriteSchema):
    code: str = Field(min_length=1, max_length=50, description="Код типа закупки.")
    description: Optional[str] = Field(default=None, description="Описание типа закупки.")


class PurchaseTypeUpdate(BaseWriteSchema):
    code: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None)


class PurchaseTypeRead(BaseSchema):
    code: str
    description: Optional[str] = None
