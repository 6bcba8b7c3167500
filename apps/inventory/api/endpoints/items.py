# apps/inventory/api/endpoints/items.py
from erp_sdk.crud.factory import CRUDRouterFactory

from ... import registry_config  # noqa: F401  ресурсы должны быть зарегистрированы до фабрики
from ...config import settings

item_factory = CRUDRouterFactory(
    resource_name="item",
    prefix="/items",
    settings=settings,
    tags=["Items"],
    read_deps=[],
    create_deps=[],
    update_deps=[],
    delete_deps=[],
)
