# erp_sdk/exceptions.py
from typing import Any, Dict, List, Optional


class CoreSDKError(Exception):
    """
    Базовый класс для всех пользовательских исключений, возникающих в erp_sdk.
    Это позволяет ловить все ошибки SDK одним блоком except CoreSDKError, если нужно.
    """

    pass


class ConfigurationError(CoreSDKError):
    """
    Исключение, возникающее при ошибках конфигурации SDK.
    Например, если ResourceRegistry не настроен, или в нем не найден ресурс.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"Configuration Error: {self.message}"


class ServiceCommunicationError(CoreSDKError):
    """
    Исключение, возникающее при ошибках связи с удаленным сервисом через HTTP-клиент.
    Включает информацию об URL, статус-коде (если есть) и деталях ошибки.
    """

    def __init__(
        self, message: str, status_code: int | None = None, url: str | None = None
    ):
        self.message = message
        self.status_code = status_code
        self.url = url
        full_message = "Service Communication Error"
        if self.url:
            full_message += f" accessing {self.url}"
        if self.status_code:
            full_message += f" (Status Code: {self.status_code})"
        full_message += f": {self.message}"
        super().__init__(full_message)


# --- Ошибки обработки запросов к ресурсам ---


class ResourceError(CoreSDKError):
    """
    Базовая ошибка запроса к ресурсу. Несет HTTP статус и дополнительные поля,
    которые обработчик в app_setup кладет в тело ответа рядом с `message`.
    `hints` попадают в `metadata` только вне production.
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        extra: Optional[Dict[str, Any]] = None,
        hints: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.extra = extra or {}
        self.hints = hints or {}
        self.methods: Optional[str] = None
        super().__init__(message)

    def to_body(self, include_hints: bool = False) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        if self.methods:
            metadata["methods"] = self.methods
        if include_hints:
            metadata.update(self.hints)
        return {"message": self.message, **self.extra, "metadata": metadata}


class ResourceValidationError(ResourceError):
    """Некорректные или отсутствующие параметры запроса (422)."""

    status_code = 422

    def __init__(
        self,
        message: str = "Invalid request.",
        *,
        errors: Optional[List[Any]] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if errors:
            self.extra.setdefault("errors", errors)


class CountMismatchError(ResourceValidationError):
    """Число id не совпадает с числом объектов в bulk update (422)."""


class EmptyUpdateError(ResourceValidationError):
    """В объекте обновления нет ни одного непустого изменяемого поля (422)."""


class InvalidIdFormatError(ResourceError):
    """id содержит нечисловой токен (400)."""

    status_code = 400


class ResourceNotFoundError(ResourceError):
    """Нет подходящей активной записи (404)."""

    status_code = 404


class ResourceConflictError(ResourceError):
    """Конфликт с текущим состоянием хранилища (409)."""

    status_code = 409


class AmbiguousMatchError(ResourceConflictError):
    """
    Запрос должен был найти одну запись, а нашел несколько.
    Кандидаты возвращаются клиенту в `data`, чтобы он мог уточнить запрос.
    """

    def __init__(self, message: str, candidates: List[Dict[str, Any]], **kwargs: Any):
        self.candidates = candidates
        super().__init__(message, **kwargs)
        self.extra["data"] = candidates


class UpstreamServiceError(ResourceError):
    """Внешний сервис не ответил или ответил ошибкой (502)."""

    status_code = 502
