from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List

from checklist.core.errors import NotFoundError
from checklist.schemas import ClientRead
from checklist.slug import derive_id
from checklist.store.base import ClientStore, clean_name


LOGGER = logging.getLogger("checklist.store.memory")


class MemoryClientStore(ClientStore):
    """Process-local store. Everything is lost when the process exits."""

    def __init__(self) -> None:
        self._names: Dict[str, str] = {}
        self._states: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def list_clients(self) -> List[ClientRead]:
        with self._lock:
            items = list(self._names.items())
        items.sort(key=lambda item: item[1])
        return [ClientRead(id=client_id, name=name) for client_id, name in items]

    def upsert_client(self, name: str) -> ClientRead:
        name = clean_name(name)
        client_id = derive_id(name)
        with self._lock:
            self._names[client_id] = name
            self._states.setdefault(client_id, {})
        LOGGER.info("Created/updated client %s - %s", client_id, name)
        return ClientRead(id=client_id, name=name)

    def rename_client(self, client_id: str, name: str) -> ClientRead:
        name = clean_name(name)
        with self._lock:
            if client_id not in self._names:
                raise NotFoundError()
            self._names[client_id] = name
        LOGGER.info("Renamed client %s - %s", client_id, name)
        return ClientRead(id=client_id, name=name)

    def delete_client(self, client_id: str) -> None:
        with self._lock:
            if client_id not in self._names:
                raise NotFoundError()
            del self._names[client_id]
            self._states.pop(client_id, None)
        LOGGER.info("Deleted client %s", client_id)

    def get_state(self, client_id: str) -> Dict[str, Any]:
        with self._lock:
            state = self._states.get(client_id)
            return copy.deepcopy(state) if state else {}

    def ensure_client(self, client_id: str) -> None:
        with self._lock:
            self._names.setdefault(client_id, client_id)

    def write_state(self, client_id: str, state: Dict[str, Any]) -> None:
        with self._lock:
            self._states[client_id] = copy.deepcopy(state)
        LOGGER.info("Updated state for client %s", client_id)

    def reset_all(self) -> None:
        with self._lock:
            self._names.clear()
            self._states.clear()
        LOGGER.info("Deleted all clients and state")


__all__ = ["MemoryClientStore"]
