# erp_sdk/schemas/results.py
from typing import Any, ClassVar, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, Field

from .pagination import PageLinks, PageMeta

ResultStatus = Literal["success", "partial_success", "failure"]


class ResourceResult(BaseModel):
    """
    Результат операции движка, независимый от HTTP.
    CRUDRouterFactory превращает его в JSONResponse(status_code, to_body()).
    """

    message: str
    status_code: int = 200
    status: ResultStatus = "success"
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # Поля, которые не попадают в тело ответа
    body_exclude: ClassVar[Set[str]] = {"status_code", "status"}

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(
            mode="json", by_alias=True, exclude=self.body_exclude, exclude_none=True
        )


class SingleResult(ResourceResult):
    data: Dict[str, Any]


class CollectionResult(ResourceResult):
    data: List[Dict[str, Any]]


class PageResult(ResourceResult):
    data: List[Dict[str, Any]]
    links: PageLinks
    meta: PageMeta

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        # prev/next = null на границах должны оставаться в ответе
        body["links"] = self.links.model_dump(mode="json")
        body["meta"] = self.meta.model_dump(mode="json", by_alias=True)
        return body


class SelectionResult(ResourceResult):
    data: List[Dict[str, Any]]


class MutationResult(ResourceResult):
    """Результат create/update. data - запись (single) или список записей (bulk)."""

    data: Optional[Any] = None
    errors: Optional[List[Any]] = None

    body_exclude: ClassVar[Set[str]] = {"status_code"}


class DeleteResult(ResourceResult):
    deleted_ids: Optional[List[int]] = None
    count: Optional[int] = None
    deleted_id: Optional[int] = None
    display_name: Optional[str] = None
    remaining_active: int

    body_exclude: ClassVar[Set[str]] = {"status_code"}
