from __future__ import annotations

import abc
from typing import Any, Dict, List

from checklist.core.errors import ValidationError
from checklist.schemas import ClientRead


def clean_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    return name.strip()


def validate_state(state: Any) -> Dict[str, Any]:
    if not isinstance(state, dict):
        raise ValidationError("State must be an object")
    return state


class ClientStore(abc.ABC):
    """Storage contract shared by the SQL and in-memory backends."""

    def init_schema(self) -> None:
        """Prepare the backend before the first request. No-op by default."""

    @abc.abstractmethod
    def list_clients(self) -> List[ClientRead]:
        """All clients ordered by name."""

    @abc.abstractmethod
    def upsert_client(self, name: str) -> ClientRead:
        """Create the client for ``name``'s id, or overwrite its name.

        Also creates an empty state for the client if it has none yet.
        """

    @abc.abstractmethod
    def rename_client(self, client_id: str, name: str) -> ClientRead:
        """Raises NotFoundError for unknown ids."""

    @abc.abstractmethod
    def delete_client(self, client_id: str) -> None:
        """Delete a client and its state. Raises NotFoundError for unknown ids."""

    @abc.abstractmethod
    def get_state(self, client_id: str) -> Dict[str, Any]:
        """Stored state, or ``{}`` when the id or its state row is unknown."""

    @abc.abstractmethod
    def ensure_client(self, client_id: str) -> None:
        """Insert a client named after its id unless one already exists."""

    @abc.abstractmethod
    def write_state(self, client_id: str, state: Dict[str, Any]) -> None:
        """Replace the whole state object for an existing client."""

    @abc.abstractmethod
    def reset_all(self) -> None:
        """Delete every client and state."""

    def put_state(self, client_id: str, state: Any) -> None:
        # Two independent steps, not one transaction. Both are idempotent, so
        # concurrent first writes to the same id end with the last upsert.
        state = validate_state(state)
        self.ensure_client(client_id)
        self.write_state(client_id, state)

    def close(self) -> None:
        """Release backend resources."""


__all__ = ["ClientStore", "clean_name", "validate_state"]
