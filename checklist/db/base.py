from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# Ensure models are imported so metadata.create_all and Alembic see both tables.
import checklist.models.client  # noqa: E402,F401

__all__ = ["Base"]
