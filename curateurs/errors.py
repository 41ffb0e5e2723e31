"""Service error taxonomy.

Write operations convert these into an :class:`~curateurs.schemas.ActionResult`
envelope; read helpers let them propagate to the HTTP exception handler.
"""


class ServiceError(Exception):
    status: int = 400

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ValidationError(ServiceError):
    """Missing or invalid input."""


class NotFoundError(ServiceError):
    status = 404


class ConflictError(ServiceError):
    """Requested transition conflicts with the current state."""


class PersistenceError(ServiceError):
    """The store call itself failed."""


__all__ = ["ServiceError", "ValidationError", "NotFoundError", "ConflictError", "PersistenceError"]
