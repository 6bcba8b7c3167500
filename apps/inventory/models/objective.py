# apps/inventory/models/objective.py
import uuid
from typing import Optional

from sqlmodel import Field

from erp_sdk.db import BaseModelWithMeta


class Objective(BaseModelWithMeta, table=True):
    """
    Цель закупочного плана. objective_uuid генерируется при создании
    и не меняется через API (его нет в схемах записи).
    """

    __tablename__ = "objectives"

    objective_uuid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        index=True,
        nullable=False,
        description="Внешний идентификатор цели.",
    )
    code: str = Field(index=True, max_length=50, description="Код цели.")
    description: Optional[str] = Field(default=None, description="Описание цели.")
