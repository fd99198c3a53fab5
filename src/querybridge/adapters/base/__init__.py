"""Base adapter interface — Abstract classes for storage backend connectors."""

from querybridge.adapters.base.adapter import StorageAdapter
from querybridge.adapters.base.registry import AdapterRegistry

__all__ = ["AdapterRegistry", "StorageAdapter"]
