# apps/inventory/schemas/objective.py
import uuid
from typing import Optional

from pydantic import Field

from erp_sdk.schemas.base import BaseSchema, BaseWriteSchema


# objective_uuid отсутствует в схемах записи: его генерирует модель
class ObjectiveCreate(BaseWriteSchema):
    code: str = Field(min_length=1, max_length=50, description="Код цели.")
    description: Optional[str] = Field(default=None, description="Описание цели.")


class ObjectiveUpdate(BaseWriteSchema):
    code: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None)


class ObjectiveRead(BaseSchema):
    objective_uuid: uuid.UUID
    code: str
    description: Optional[str] = None
