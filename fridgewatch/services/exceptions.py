from __future__ import annotations

class ServiceError(RuntimeError):
    """Base class for service-layer errors."""

class RepoError(ServiceError):
    """Errors from repositories (I/O, parse, schema)."""

class NotifierError(ServiceError):
    """Errors from the notification center (schedule, cancel, authorization)."""
