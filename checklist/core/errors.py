from __future__ import annotations


class ChecklistError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ChecklistError):
    status_code = 400


class NotFoundError(ChecklistError):
    status_code = 404

    def __init__(self, message: str = "Client not found") -> None:
        super().__init__(message)


class BackendError(ChecklistError):
    """A persistence failure.

    ``message`` is safe to return to callers; ``operation`` and ``client_id``
    are for the server log only.
    """

    status_code = 500

    def __init__(self, message: str, *, operation: str, client_id: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.client_id = client_id


__all__ = ["ChecklistError", "ValidationError", "NotFoundError", "BackendError"]
