# erp_sdk/data_access/manager_factory.py
import logging
from typing import Any, Dict, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from erp_sdk.data_access.base_manager import BaseDataAccessManager
from erp_sdk.exceptions import ConfigurationError

logger = logging.getLogger("erp_sdk.data_access.manager_factory")


class DataAccessManagerFactory:
    """
    Создает и кэширует менеджеры данных для зарегистрированных ресурсов.
    Без явной session менеджеры берут сессию из contextvar текущего запроса.
    """

    def __init__(self, registry: Optional[Any] = None, session: Optional[AsyncSession] = None):
        from erp_sdk.registry import ResourceRegistry as ActualResourceRegistry

        self.registry: Type[ActualResourceRegistry] = registry or ActualResourceRegistry
        if not self.registry.is_configured():
            raise ConfigurationError("ResourceRegistry has not been configured.")
        self.session = session
        self._manager_cache: Dict[str, BaseDataAccessManager[Any, Any, Any, Any]] = {}

    def get_manager(self, resource_name: str) -> BaseDataAccessManager[Any, Any, Any, Any]:
        normalized_name = resource_name.lower()
        cached_manager = self._manager_cache.get(normalized_name)
        if cached_manager is not None:
            return cached_manager

        info = self.registry.get_resource_info(resource_name)
        ManagerClass = info.manager_cls
        if not issubclass(ManagerClass, BaseDataAccessManager):
            raise TypeError(
                f"Registered manager_cls for '{resource_name}' ('{ManagerClass.__name__}') is not a subclass of BaseDataAccessManager."
            )

        logger.debug(
            f"Instantiating manager {ManagerClass.__name__} for resource '{resource_name}'."
        )
        manager_instance = ManagerClass(
            model_name=info.name,
            model_cls=info.model_cls,
            read_schema_cls=info.read_schema_cls,
            create_schema_cls=info.create_schema_cls,
            update_schema_cls=info.update_schema_cls,
            filter_cls=info.filter_cls,
            **({"session": self.session} if self.session is not None else {}),
        )
        self._manager_cache[normalized_name] = manager_instance
        return manager_instance


def get_dam_factory() -> DataAccessManagerFactory:
    """FastAPI dependency: фабрика менеджеров поверх глобального ResourceRegistry."""
    from erp_sdk.registry import ResourceRegistry

    return DataAccessManagerFactory(registry=ResourceRegistry)
