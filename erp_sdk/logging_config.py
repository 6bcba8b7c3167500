# erp_sdk/logging_config.py
import logging
import sys
from typing import Iterable, Union

# Имя базового логгера для всего SDK
SDK_LOGGER_NAME = "erp_sdk"

# httpx пишет каждый запрос на INFO вместе с полным URL; для интеграций достаточно логов клиента SDK
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_sdk_logging(
    level: Union[int, str] = logging.INFO,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> logging.Logger:
    """
    Настраивает логгер `erp_sdk`: stdout обработчик и уровень.
    Повторный вызов ничего не меняет. Логгеры из quiet_loggers
    поднимаются до WARNING.
    """
    logger = logging.getLogger(SDK_LOGGER_NAME)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Предотвращаем дублирование обработчиков, если функция вызывается несколько раз
    if logger.handlers:
        logger.debug(f"Logger '{SDK_LOGGER_NAME}' already has handlers. Skipping setup.")
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(handler)

    logger.info(
        f"SDK Logging setup complete for '{SDK_LOGGER_NAME}' at level {logging.getLevelName(level)}"
    )
    return logger
