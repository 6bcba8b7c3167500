# apps/inventory/api/endpoints/item_units.py
from erp_sdk.crud.factory import CRUDRouterFactory

from ... import registry_config  # noqa: F401  ресурсы должны быть зарегистрированы до фабрики
from ...config import settings

item_unit_factory = CRUDRouterFactory(
    resource_name="itemunit",
    prefix="/item-units",
    settings=settings,
    tags=["Item Units"],
    read_deps=[],
    create_deps=[],
    update_deps=[],
    delete_deps=[],
)
