"""Adapter Registry — Manages registration, connection and retrieval of storage adapters.

The registry is a central place to register adapter classes and create
connected adapter instances from configuration. It supports health
monitoring and a single shutdown call for every connected backend.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from querybridge.adapters.base.adapter import AdapterHealth, StorageAdapter
from querybridge.adapters.base.exceptions import ConfigurationError

if TYPE_CHECKING:
    from querybridge.config.settings import Settings

logger = logging.getLogger(__name__)

# Maps adapter names to (module_path, class_name) for lazy import
BUILTIN_ADAPTERS: dict[str, tuple[str, str]] = {
    "elasticsearch": ("querybridge.adapters.elasticsearch.adapter", "ElasticsearchAdapter"),
    "opensearch": ("querybridge.adapters.opensearch.adapter", "OpenSearchAdapter"),
    "mongodb": ("querybridge.adapters.mongodb.adapter", "MongoAdapter"),
}


class AdapterNotFoundError(Exception):
    """Raised when a requested adapter is not registered."""


class AdapterRegistry:
    """Registry for managing storage adapter instances.

    The registry maintains both adapter class registrations and
    connected adapter instances. It supports:
      - Registering adapter classes by name
      - Creating and connecting adapter instances from kwargs or settings
      - Retrieving active adapters by name
      - Health checking all connected adapters

    Example:
        >>> registry = AdapterRegistry()
        >>> registry.register("mongodb", MongoAdapter)
        >>> await registry.connect_adapter("mongodb", hosts=["mongodb://localhost"], collection="users")
        >>> adapter = registry.get("mongodb")
    """

    def __init__(self) -> None:
        self._classes: dict[str, type[StorageAdapter]] = {}
        self._instances: dict[str, StorageAdapter] = {}

    def register(self, name: str, adapter_class: type[StorageAdapter]) -> None:
        """Register an adapter class.

        Args:
            name: Unique name for this adapter type.
            adapter_class: The adapter class to register.
        """
        if name in self._classes:
            logger.warning("Overwriting existing adapter registration: %s", name)
        self._classes[name] = adapter_class
        logger.info("Registered adapter: %s", name)

    def register_builtin(self, name: str) -> type[StorageAdapter]:
        """Import and register one of the built-in adapters by name.

        Raises:
            AdapterNotFoundError: If ``name`` is not a built-in adapter.
        """
        entry = BUILTIN_ADAPTERS.get(name)
        if entry is None:
            raise AdapterNotFoundError(
                f"No built-in adapter named '{name}'. "
                f"Available adapters: {list(BUILTIN_ADAPTERS.keys())}"
            )
        module_path, class_name = entry
        adapter_class = getattr(importlib.import_module(module_path), class_name)
        self.register(name, adapter_class)
        return adapter_class

    async def connect_adapter(self, name: str, **kwargs: Any) -> StorageAdapter:
        """Create and connect an adapter instance.

        Args:
            name: The registered adapter name.
            **kwargs: Configuration parameters passed to the adapter constructor.

        Returns:
            The connected adapter instance.

        Raises:
            AdapterNotFoundError: If no adapter is registered under this name.
            ConnectionError: If the backend cannot be reached.
        """
        if name not in self._classes:
            raise AdapterNotFoundError(
                f"No adapter registered with name '{name}'. "
                f"Available adapters: {list(self._classes.keys())}"
            )

        adapter = self._classes[name](**kwargs)
        await adapter.connect()
        self._instances[name] = adapter
        logger.info("Connected adapter: %s", name)
        return adapter

    async def connect_configured(self, settings: Settings, only: str | None = None) -> list[str]:
        """Register and connect the backends declared in settings.

        Disabled, unknown, misconfigured and unreachable backends are skipped
        with a warning.

        Args:
            settings: Application settings.
            only: Connect just this backend name.

        Returns:
            Names of the adapters that were connected.
        """
        connected: list[str] = []
        for name, backend in settings.backends.items():
            if only is not None and name != only:
                continue
            if not backend.enabled:
                logger.info("Backend '%s' is disabled, skipping", name)
                continue

            try:
                adapter_class = self._classes.get(name) or self.register_builtin(name)
            except (AdapterNotFoundError, ImportError, AttributeError) as e:
                logger.warning("Failed to load adapter '%s': %s", name, e)
                continue

            try:
                adapter = adapter_class.from_settings(backend, logger=logging.getLogger(f"querybridge.{name}"))
            except ConfigurationError as e:
                logger.warning("Invalid configuration for adapter '%s': %s", name, e)
                continue

            try:
                await adapter.connect()
            except Exception:
                logger.warning("Failed to connect adapter '%s'", name, exc_info=True)
                continue

            self._instances[name] = adapter
            connected.append(name)
            logger.info("Adapter '%s' registered and connected", name)
        return connected

    def get(self, name: str) -> StorageAdapter:
        """Get a connected adapter instance by name.

        Raises:
            AdapterNotFoundError: If the adapter is not connected.
        """
        if name not in self._instances:
            raise AdapterNotFoundError(
                f"Adapter '{name}' is not connected. "
                f"Call connect_adapter() first."
            )
        return self._instances[name]

    def get_default(self) -> StorageAdapter:
        """Get the first connected adapter (convenience method).

        Raises:
            AdapterNotFoundError: If no adapters are connected.
        """
        if not self._instances:
            raise AdapterNotFoundError("No adapters are connected.")
        return next(iter(self._instances.values()))

    async def health_check_all(self) -> dict[str, AdapterHealth]:
        """Run health checks on all connected adapters."""
        results: dict[str, AdapterHealth] = {}
        for name, adapter in self._instances.items():
            try:
                results[name] = await adapter.health_check()
            except Exception as e:
                results[name] = AdapterHealth(
                    status="unhealthy",
                    message=str(e),
                )
        return results

    async def disconnect_all(self) -> None:
        """Disconnect all connected adapters."""
        for name, adapter in self._instances.items():
            try:
                await adapter.disconnect()
                logger.info("Disconnected adapter: %s", name)
            except Exception:
                logger.warning("Error disconnecting adapter: %s", name, exc_info=True)
        self._instances.clear()

    @property
    def registered_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._classes.keys())

    @property
    def active_adapters(self) -> list[str]:
        """List all connected adapter names."""
        return list(self._instances.keys())
