# erp_sdk/crud/__init__.py
from .engine import BulkResourceEngine, ReadParams
from .factory import CRUDRouterFactory

__all__ = ["BulkResourceEngine", "ReadParams", "CRUDRouterFactory"]
