# apps/inventory/config.py
import os
import logging
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator

from erp_sdk.config import BaseAppSettings, SettingsConfigDict

logger = logging.getLogger("app.config")
CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(CONFIG_DIR, "..", ".."))  # корень репозитория
ENV_FILE_PATH = os.path.join(PROJECT_ROOT, ".env")
ENV_TEST_FILE_PATH = os.path.join(PROJECT_ROOT, ".env.test")

_CURRENT_ENV_VAR_LOCAL = os.getenv("ENV", "prod").lower()
_EFFECTIVE_ENV_FILE_PATH_VAR_LOCAL = ENV_TEST_FILE_PATH if _CURRENT_ENV_VAR_LOCAL == "test" else ENV_FILE_PATH
logger.info("Current environment (ENV): %s for InventoryService", _CURRENT_ENV_VAR_LOCAL)
logger.info("Effective .env file path for InventoryService: %s", _EFFECTIVE_ENV_FILE_PATH_VAR_LOCAL)
load_dotenv(_EFFECTIVE_ENV_FILE_PATH_VAR_LOCAL)


class Settings(BaseAppSettings):
    PROJECT_NAME: str = "InventoryService"
    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./inventory.db",
        description="URL базы данных (aiosqlite локально, postgresql+asyncpg в проде).",
    )
    CREATE_TABLES_ON_STARTUP: bool = Field(
        True, description="Миграций нет, поэтому таблицы создаются при старте."
    )

    # Внешняя система UMIS (структура организации, пользователи)
    UMIS_API_URL: str = Field("http://localhost:8080/api", description="Базовый URL UMIS API.")
    UMIS_API_KEY: Optional[str] = Field(None, description="Ключ, передаваемый в заголовке UMIS-Api-Key.")
    UMIS_TIMEOUT: float = Field(30.0, gt=0, description="Таймаут запросов к UMIS в секундах.")
    UMIS_VERIFY_SSL: bool = Field(False, description="Проверять ли SSL сертификат UMIS.")

    ENV: str = Field(_CURRENT_ENV_VAR_LOCAL, description="Текущее окружение.")
    PORT_INVENTORY: int = Field(8003, description="Порт, на котором будет работать сервис Inventory.")

    model_config = SettingsConfigDict(
        env_file=_EFFECTIVE_ENV_FILE_PATH_VAR_LOCAL, env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Optional[Union[str, List[str]]]) -> List[str]:
        if isinstance(v, str) and v:
            return [o.strip() for o in v.split(",") if o.strip()]
        if isinstance(v, list):
            return [str(o).strip() for o in v if str(o).strip()]
        return []


try:
    settings = Settings()
    logger.info(f"Settings loaded successfully for ENV='{settings.ENV}'.")
    logger.info(f"Project Name: {settings.PROJECT_NAME}")
except Exception as e:
    raise RuntimeError(f"Could not load application settings: {e}") from e
