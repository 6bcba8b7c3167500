# erp_sdk/schemas/pagination.py

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PageLink(BaseModel):
    """Элемент навигации: номер страницы, '...' или стрелка Previous/Next."""

    url: Optional[str] = None
    label: str
    active: bool = False


class PageLinks(BaseModel):
    first: Optional[str] = None
    last: Optional[str] = None
    prev: Optional[str] = None
    next: Optional[str] = None


class PageMeta(BaseModel):
    current_page: int
    from_: Optional[int] = Field(
        None, alias="from", description="Порядковый номер первой записи на странице."
    )
    last_page: int
    links: List[PageLink] = Field(default_factory=list)
    path: str
    per_page: int
    to: Optional[int] = Field(
        None, description="Порядковый номер последней записи на странице."
    )
    total: int

    model_config = ConfigDict(populate_by_name=True)
