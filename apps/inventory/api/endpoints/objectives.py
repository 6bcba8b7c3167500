# apps/inventory/api/endpoints/objectives.py
from erp_sdk.crud.factory import CRUDRouterFactory

from ... import registry_config  # noqa: F401  ресурсы должны быть зарегистрированы до фабрики
from ...config import settings

objective_factory = CRUDRouterFactory(
    resource_name="objective",
    prefix="/objectives",
    settings=settings,
    tags=["Objectives"],
    read_deps=[],
    create_deps=[],
    update_deps=[],
    delete_deps=[],
)
