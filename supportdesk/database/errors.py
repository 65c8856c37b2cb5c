"""Backend failure types raised by the data access layer."""

from typing import Optional


class BackendError(Exception):
    """A request to the backend failed."""

    def __init__(self, message: str, code: Optional[str] = None, kind: str = "failure"):
        super().__init__(message)
        self.code = code
        self.kind = kind  # failure, conflict, not_found


class ConflictError(BackendError):
    """An insert collided with an existing row (unique violation)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code=code, kind="conflict")


class NotFoundError(BackendError):
    """A write targeted a row that does not exist."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code=code, kind="not_found")
