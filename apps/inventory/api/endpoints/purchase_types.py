# apps/inventory/api/endpoints/purchase_types.py
from erp_sdk.crud.factory import CRUDRouterFactory

from ... import registry_config  # noqa: F401  ресурсы должны быть зарегистрированы до фабрики
from ...config import settings

purchase_type_factory = CRUDRouterFactory(
    resource_name="purchasetype",
    prefix="/purchase-types",
    settings=settings,
    tags=["Purchase Types"],
    read_deps=[],
    create_deps=[],
    update_deps=[],
    delete_deps=[],
)
