# apps/inventory/main.py
import logging
import os

from erp_sdk.app_setup import create_app_with_sdk_setup
from erp_sdk.logging_config import setup_sdk_logging

from .config import settings
from . import registry_config  # noqa: F401
from .services.umis_service import UMISService

from .api.endpoints import (
    item_units,
    purchase_types,
    objectives,
    items,
    umis,
)

logging.basicConfig(level=settings.LOGGING_LEVEL.upper())
setup_sdk_logging(level=settings.LOGGING_LEVEL)
logger = logging.getLogger("app.main")

logger.info("--- Starting Inventory Service Application Setup ---")

api_routers_to_include = [
    item_units.item_unit_factory.router,
    purchase_types.purchase_type_factory.router,
    objectives.objective_factory.router,
    items.item_factory.router,
    umis.router,
]


async def inventory_after_startup():
    # Общий клиент SDK проверяет SSL; без проверки UMIS получает собственный клиент
    shared_client = app.state.http_client if settings.UMIS_VERIFY_SSL else None
    app.state.umis_service = UMISService.from_settings(settings, http_client=shared_client)
    logger.info(f"UMIS client ready for {settings.UMIS_API_URL}")


async def inventory_before_shutdown():
    service = getattr(app.state, "umis_service", None)
    if service is not None:
        await service.close()
        logger.info("UMIS client closed.")


app = create_app_with_sdk_setup(
    settings=settings,
    api_routers=api_routers_to_include,
    rebuild_models=True,
    manage_http_client=True,
    after_startup_hook=inventory_after_startup,
    before_shutdown_hook=inventory_before_shutdown,
    title=settings.PROJECT_NAME,
    description="Inventory and procurement resources with bulk CRUD, plus UMIS passthrough.",
    version="0.1.0",
    include_health_check=True,
)

logger.info("--- Inventory Service Application Setup Complete ---")

if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = settings.PORT_INVENTORY
    log_level = settings.LOGGING_LEVEL.lower()

    logger.info(f"Starting Uvicorn development server on {host}:{port}...")
    uvicorn.run(
        "apps.inventory.main:app",
        host=host,
        port=port,
        log_level=log_level,
        reload=True,
    )
