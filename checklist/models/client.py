from sqlalchemy import JSON, Column, ForeignKey, Text
from sqlalchemy.dialects.postgresql import JSONB

from checklist.db.base import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)


class ClientState(Base):
    __tablename__ = "client_states"

    client_id = Column(
        Text,
        ForeignKey("clients.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # JSONB on Postgres, plain JSON elsewhere (SQLite stores it as text).
    state = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict)


__all__ = ["Client", "ClientState"]
