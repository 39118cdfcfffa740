"""Client registry and checklist state storage.

``build_store`` picks an implementation from settings; both satisfy the
``ClientStore`` contract so the HTTP layer never knows which one it has.
"""

from checklist.core.config import Settings
from checklist.store.base import ClientStore, clean_name, validate_state
from checklist.store.memory import MemoryClientStore
from checklist.store.sql import SqlClientStore


def build_store(settings: Settings) -> ClientStore:
    if settings.store_backend == "memory":
        return MemoryClientStore()
    return SqlClientStore.from_settings(settings)


__all__ = [
    "ClientStore",
    "MemoryClientStore",
    "SqlClientStore",
    "build_store",
    "clean_name",
    "validate_state",
]
