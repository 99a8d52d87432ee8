"""
Error taxonomy shared by the merge engine, the query compiler and the
repositories.

Every error carries a machine readable ``code`` (for validation errors a
dotted path such as ``bad_task.norms[1].attribute``) and a human message.
The API layer maps them onto HTTP responses shaped ``{code, message}``.
"""
from __future__ import annotations

from typing import Dict


class TaskManagerError(Exception):
    """Base class for errors raised by the task manager core."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(TaskManagerError):
    """A field or structural rule was violated."""


class NotFoundError(TaskManagerError):
    """A targeted find, update or delete matched no document."""


class ConflictError(TaskManagerError):
    """An update whose result equals the stored record."""


class StorageError(TaskManagerError):
    """The document store failed; the cause is chained, never exposed."""

    def __init__(self, message: str, code: str = "storage_error"):
        super().__init__(code, message)


class PeerServiceError(TaskManagerError):
    """A call to a peer service failed or answered unexpectedly."""

    def __init__(self, message: str, code: str = "peer_service_error"):
        super().__init__(code, message)
