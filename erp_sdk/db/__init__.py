# erp_sdk/db/__init__.py
from .base_model import BaseModelWithMeta, utcnow

from .session import get_current_session, create_db_and_tables

__all__ = [
    "BaseModelWithMeta",
    "utcnow",
    "get_current_session",
    "create_db_and_tables",
]
