# apps/inventory/models/purchase_type.py
from typing import Optional

from sqlmodel import Field

from erp_sdk.db import BaseModelWithMeta


class PurchaseType(BaseModelWithMeta, table=True):
    __tablename__ = "purchase_types"

    code: str = Field(index=True, max_length=50, description="Код типа закупки.")
    description: Optional[str] = Field(default=None, description="Описание типа закупки.")
