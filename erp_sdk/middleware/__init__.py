# erp_sdk/middleware/__init__.py
from .middleware import DBSessionMiddleware

__all__ = ["DBSessionMiddleware"]
