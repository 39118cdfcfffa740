from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from checklist.core.config import Settings
from checklist.core.errors import BackendError, NotFoundError
from checklist.db.base import Base
from checklist.db.session import make_engine, make_session_factory
from checklist.models.client import Client, ClientState
from checklist.schemas import ClientRead
from checklist.slug import derive_id
from checklist.store.base import ClientStore, clean_name


LOGGER = logging.getLogger("checklist.store.sql")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlClientStore(ClientStore):
    """Stores clients and their state in the ``clients``/``client_states`` tables."""

    def __init__(self, engine: Engine, session_factory: Optional[sessionmaker] = None) -> None:
        self.engine = engine
        self._session_factory = session_factory or make_session_factory(engine)
        self._insert = _UPSERT_DIALECTS.get(engine.dialect.name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlClientStore":
        return cls(make_engine(settings))

    @contextmanager
    def _session(self, message: str, operation: str, client_id: Optional[str] = None) -> Iterator[Session]:
        try:
            with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            raise BackendError(message, operation=operation, client_id=client_id) from exc

    def init_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise BackendError("Failed to initialize database", operation="init_schema") from exc
        LOGGER.info("Database initialized")

    def close(self) -> None:
        self.engine.dispose()

    # ---------- insert-or-update helpers ----------
    def _insert_if_absent(self, session: Session, model, values: Dict[str, Any], key: str) -> None:
        if self._insert is not None:
            stmt = self._insert(model).values(**values).on_conflict_do_nothing(index_elements=[key])
            session.execute(stmt)
        elif session.get(model, values[key]) is None:
            session.add(model(**values))

    def _upsert(self, session: Session, model, values: Dict[str, Any], key: str, column: str) -> None:
        if self._insert is not None:
            stmt = self._insert(model).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[key], set_={column: getattr(stmt.excluded, column)}
            )
            session.execute(stmt)
        else:
            session.merge(model(**values))

    # ---------- registry ----------
    def list_clients(self) -> List[ClientRead]:
        with self._session("Failed to fetch clients", "list_clients") as session:
            rows = session.execute(select(Client.id, Client.name).order_by(Client.name.asc())).all()
        return [ClientRead(id=row.id, name=row.name) for row in rows]

    def upsert_client(self, name: str) -> ClientRead:
        name = clean_name(name)
        client_id = derive_id(name)
        with self._session("Failed to create client", "upsert_client", client_id) as session:
            self._upsert(session, Client, {"id": client_id, "name": name}, "id", "name")
            self._insert_if_absent(
                session, ClientState, {"client_id": client_id, "state": {}}, "client_id"
            )
        LOGGER.info("Created/updated client %s - %s", client_id, name)
        return ClientRead(id=client_id, name=name)

    def rename_client(self, client_id: str, name: str) -> ClientRead:
        name = clean_name(name)
        with self._session("Failed to rename client", "rename_client", client_id) as session:
            # Some drivers count only changed rows, so look the client up first.
            found = session.get(Client, client_id) is not None
            if found:
                session.execute(
                    update(Client)
                    .where(Client.id == client_id)
                    .values(name=name)
                    .execution_options(synchronize_session=False)
                )
        if not found:
            raise NotFoundError()
        LOGGER.info("Renamed client %s - %s", client_id, name)
        return ClientRead(id=client_id, name=name)

    def delete_client(self, client_id: str) -> None:
        with self._session("Failed to delete client", "delete_client", client_id) as session:
            # The FK cascade removes the state row; SQLite needs foreign_keys=ON for that.
            result = session.execute(
                delete(Client)
                .where(Client.id == client_id)
                .execution_options(synchronize_session=False)
            )
            found = result.rowcount > 0
        if not found:
            raise NotFoundError()
        LOGGER.info("Deleted client %s", client_id)

    # ---------- state ----------
    def get_state(self, client_id: str) -> Dict[str, Any]:
        with self._session("Failed to fetch client state", "get_state", client_id) as session:
            state = session.execute(
                select(ClientState.state).where(ClientState.client_id == client_id)
            ).scalar_one_or_none()
        return state if isinstance(state, dict) else {}

    def ensure_client(self, client_id: str) -> None:
        with self._session("Failed to update client state", "ensure_client", client_id) as session:
            self._insert_if_absent(session, Client, {"id": client_id, "name": client_id}, "id")

    def write_state(self, client_id: str, state: Dict[str, Any]) -> None:
        with self._session("Failed to update client state", "write_state", client_id) as session:
            self._upsert(
                session, ClientState, {"client_id": client_id, "state": state}, "client_id", "state"
            )
        LOGGER.info("Updated state for client %s", client_id)

    def reset_all(self) -> None:
        with self._session("Failed to reset data", "reset_all") as session:
            session.execute(delete(ClientState).execution_options(synchronize_session=False))
            session.execute(delete(Client).execution_options(synchronize_session=False))
        LOGGER.info("Deleted all clients and state")


__all__ = ["SqlClientStore"]
