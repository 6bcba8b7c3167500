# erp_sdk/data_access/__init__.py
from .base_manager import BaseDataAccessManager
from .local_manager import LocalDataAccessManager
from .manager_factory import DataAccessManagerFactory, get_dam_factory
from .common import app_http_client_lifespan

__all__ = [
    "BaseDataAccessManager",
    "LocalDataAccessManager",
    "DataAccessManagerFactory",
    "get_dam_factory",
    "app_http_client_lifespan",
]
