# apps/inventory/models/item.py
from typing import Optional

from sqlmodel import Field

from erp_sdk.db import BaseModelWithMeta


class Item(BaseModelWithMeta, table=True):
    """Товар каталога с оценочным бюджетом."""

    __tablename__ = "items"

    code: str = Field(index=True, max_length=50, description="Код товара.")
    name: str = Field(max_length=255, description="Название товара.")
    estimated_budget: float = Field(default=0, ge=0, description="Оценочный бюджет.")
    item_unit_id: Optional[int] = Field(
        default=None,
        foreign_key="item_units.id",
        index=True,
        description="Единица измерения (item_units.id).",
    )
