# apps/inventory/models/item_unit.py
from typing import Optional

from sqlmodel import Field

from erp_sdk.db import BaseModelWithMeta


class ItemUnit(BaseModelWithMeta, table=True):
    """Единица измерения товара (штука, коробка, литр)."""

    __tablename__ = "item_units"

    code: str = Field(index=True, max_length=50, description="Короткий код единицы.")
    name: str = Field(max_length=255, description="Название единицы.")
    description: Optional[str] = Field(default=None, description="Описание единицы.")
