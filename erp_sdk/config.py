# erp_sdk/config.py
import os

from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)
from pydantic import Field
from typing import List

PRODUCTION_ENVS = {"prod", "production"}


class BaseAppSettings(BaseSettings):
    PROJECT_NAME: str = "BaseService"
    API_V1_STR: str = "/api"
    LOGGING_LEVEL: str = Field(
        "INFO",
        json_schema_extra={"examples": ["DEBUG", "INFO", "WARNING", "ERROR"]}
    )
    BACKEND_CORS_ORIGINS: List[str] = []
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    ENV: str = os.getenv("ENV", "PROD")
    DATABASE_URL: str
    CREATE_TABLES_ON_STARTUP: bool = Field(
        False, description="Создавать таблицы по SQLModel.metadata при старте (dev/SQLite)."
    )

    # Пагинация для GET эндпоинтов ресурсов
    DEFAULT_PER_PAGE: int = Field(10, ge=1, le=100)
    MAX_PER_PAGE: int = Field(100, ge=1)
    PAGINATION_ON_EACH_SIDE: int = Field(
        3, ge=0, description="Сколько страниц показывать по обе стороны от текущей в meta.links."
    )

    model_config = SettingsConfigDict(
        extra='ignore',
    )

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() in PRODUCTION_ENVS
