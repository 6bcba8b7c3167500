# erp_sdk/crud/formatter.py
"""
Построение ответов чтения: страница с навигацией, выборка для select-компонента.

Окно ссылок страниц (ON_EACH_SIDE = 3):
    last_page < 14                  -> все страницы
    current <= 7                    -> 1..10, ..., last-1, last
    current > last_page - 7         -> 1, 2, ..., last-9..last
    иначе                           -> 1, 2, ..., current-3..current+3, ..., last-1, last
"""
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlencode

from erp_sdk.schemas.pagination import PageLink, PageLinks, PageMeta
from erp_sdk.schemas.results import PageResult, SelectionResult

PREVIOUS_LABEL = "&laquo; Previous"
NEXT_LABEL = "Next &raquo;"
ELLIPSIS = "..."

READ_MESSAGE = "Successfully retrieve all records."
SELECTION_CONTENT = "This type of response is for selection component."


def build_link_window(current: int, last: int, on_each_side: int = 3) -> List[Optional[int]]:
    """Номера страниц для навигации; None обозначает '...'."""
    window = on_each_side + 4
    if last < on_each_side * 2 + 8:
        return list(range(1, last + 1))

    start = [1, 2]
    finish = [last - 1, last]
    if current <= window:
        return list(range(1, window + on_each_side + 1)) + [None] + finish
    if current > last - window:
        return start + [None] + list(range(last - (window + on_each_side - 1), last + 1))
    adjacent = list(range(current - on_each_side, current + on_each_side + 1))
    return start + [None] + adjacent + [None] + finish


def page_url(path: str, page: int, query_params: Optional[Mapping[str, Any]] = None) -> str:
    params = {k: v for k, v in (query_params or {}).items() if k != "page" and v is not None}
    params["page"] = page
    return f"{path}?{urlencode(params, doseq=True)}"


def build_metadata(methods: str, hints: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {"methods": methods}
    if hints:
        metadata.update(hints)
    return metadata


def read_hints(path: str) -> Dict[str, Any]:
    """Примеры запросов для metadata (только вне production)."""
    return {
        "urls": [
            f"{path}?id=1",
            f"{path}?id=1,2,3",
            f"{path}?page=1&per_page=10",
            f"{path}?mode=selection",
            f"{path}?search=value",
            f'{path}?query={{"code":"value"}}',
        ]
    }


def build_page_result(
    data: List[Dict[str, Any]],
    *,
    total: int,
    page: int,
    per_page: int,
    path: str,
    methods: str,
    query_params: Optional[Mapping[str, Any]] = None,
    on_each_side: int = 3,
    hints: Optional[Dict[str, Any]] = None,
) -> PageResult:
    last_page = max(math.ceil(total / per_page), 1)
    params = dict(query_params or {})
    params["per_page"] = per_page

    def url_for(number: int) -> str:
        return page_url(path, number, params)

    prev_url = url_for(page - 1) if page > 1 else None
    next_url = url_for(page + 1) if page < last_page else None

    links: List[PageLink] = [PageLink(url=prev_url, label=PREVIOUS_LABEL, active=False)]
    for number in build_link_window(page, last_page, on_each_side):
        if number is None:
            links.append(PageLink(url=None, label=ELLIPSIS, active=False))
        else:
            links.append(PageLink(url=url_for(number), label=str(number), active=number == page))
    links.append(PageLink(url=next_url, label=NEXT_LABEL, active=False))

    first_index = (page - 1) * per_page + 1
    meta = PageMeta(
        current_page=page,
        from_=first_index if data else None,
        last_page=last_page,
        links=links,
        path=path,
        per_page=per_page,
        to=first_index + len(data) - 1 if data else None,
        total=total,
    )
    return PageResult(
        data=data,
        links=PageLinks(first=url_for(1), last=url_for(last_page), prev=prev_url, next=next_url),
        meta=meta,
        message=READ_MESSAGE,
        metadata=build_metadata(methods, hints),
    )


def build_selection_result(
    records: Sequence[Any], display_fields: Sequence[str], methods: str
) -> SelectionResult:
    data = [
        {"id": record.id, **{field: getattr(record, field) for field in display_fields}}
        for record in records
    ]
    return SelectionResult(
        data=data,
        message=READ_MESSAGE,
        metadata={"methods": methods, "content": SELECTION_CONTENT, "mode": "selection"},
    )
