# erp_sdk/schemas/__init__.py

from .base import BaseSchema
from .pagination import PageLink, PageLinks, PageMeta
from .results import (
    CollectionResult,
    DeleteResult,
    MutationResult,
    PageResult,
    ResourceResult,
    SelectionResult,
    SingleResult,
)

__all__ = [
    "BaseSchema",
    "PageLink",
    "PageLinks",
    "PageMeta",
    "ResourceResult",
    "SingleResult",
    "CollectionResult",
    "PageResult",
    "SelectionResult",
    "MutationResult",
    "DeleteResult",
]
