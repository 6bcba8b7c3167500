# apps/inventory/registry_config.py
import logging

from erp_sdk.registry import ResourceRegistry

from . import models
from . import schemas

logger = logging.getLogger("app.registry_config")
logger.debug("--- Executing apps.inventory.registry_config.py ---")

INVENTORY_RESOURCES = ("itemunit", "purchasetype", "objective", "item")


def configure_inventory_registry():
    """
    Регистрирует ресурсы сервиса Inventory в ResourceRegistry.
    Названия (label, bulk_key, slug) выводятся из имени модели:
    ItemUnit -> 'Item unit', 'item_units', 'item-units'.
    """
    logger.info("Configuring ResourceRegistry for Inventory service...")
    try:
        ResourceRegistry.register(
            models.item_unit.ItemUnit,
            read_schema_cls=schemas.item_unit.ItemUnitRead,
            create_schema_cls=schemas.item_unit.ItemUnitCreate,
            update_schema_cls=schemas.item_unit.ItemUnitUpdate,
            display_fields=["name", "code"],
            searchable_fields=["name", "code", "description"],
        )
        ResourceRegistry.register(
            models.purchase_type.PurchaseType,
            read_schema_cls=schemas.purchase_type.PurchaseTypeRead,
            create_schema_cls=schemas.purchase_type.PurchaseTypeCreate,
            update_schema_cls=schemas.purchase_type.PurchaseTypeUpdate,
            display_fields=["code", "description"],
        )
        ResourceRegistry.register(
            models.objective.Objective,
            read_schema_cls=schemas.objective.ObjectiveRead,
            create_schema_cls=schemas.objective.ObjectiveCreate,
            update_schema_cls=schemas.objective.ObjectiveUpdate,
            display_fields=["code", "description"],
        )
        ResourceRegistry.register(
            models.item.Item,
            read_schema_cls=schemas.item.ItemRead,
            create_schema_cls=schemas.item.ItemCreate,
            update_schema_cls=schemas.item.ItemUpdate,
            display_fields=["name", "code"],
        )
        logger.info("ResourceRegistry configuration complete for Inventory service.")
    except Exception as e:
        logger.critical("Failed to configure ResourceRegistry for Inventory service.", exc_info=True)
        raise RuntimeError("Inventory service ResourceRegistry configuration failed.") from e


def inventory_registry_configured() -> bool:
    return all(
        ResourceRegistry.get_resource_info(name, raise_error=False) is not None
        for name in INVENTORY_RESOURCES
    )


# Вызываем конфигурацию при импорте модуля, если ресурсы еще не зарегистрированы
if not inventory_registry_configured():
    configure_inventory_registry()
else:
    logger.info("Skipping configure_inventory_registry() call as inventory resources are already configured.")

logger.debug("--- Finished executing apps.inventory.registry_config.py ---")
