# erp_sdk/db/base_model.py
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModelWithMeta(SQLModel):
    """
    Общие колонки всех ресурсов.
    Временные метки выставляются менеджером данных (не базой), чтобы одинаково
    работать на SQLite и PostgreSQL. Запись с deleted_at != NULL считается удаленной.
    """

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        index=True,
        sa_column_kwargs={
            "autoincrement": True,
            "comment": "Уникальный идентификатор записи (генерируется базой данных)",
        },
        description="Уникальный идентификатор записи",
    )

    created_at: Optional[datetime] = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"comment": "Дата и время создания записи (UTC)"},
        description="Дата и время создания записи (UTC)",
    )

    updated_at: Optional[datetime] = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"comment": "Дата и время последнего обновления записи (UTC)"},
        description="Дата и время последнего обновления записи (UTC)",
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        nullable=True,
        index=True,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"comment": "Дата и время мягкого удаления (NULL - запись активна)"},
        description="Дата и время мягкого удаления",
    )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None
