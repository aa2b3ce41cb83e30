"""
Custom exceptions for the offline store.

The router itself adds no error kinds of its own beyond construction and
decoration failures; everything raised by a backing store propagates as is.
"""


class OfflineStoreError(Exception):
    """Base exception for all offline store errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StoreResolutionError(OfflineStoreError):
    """Raised when a collaborator required by the router cannot be resolved."""

    def __init__(self, collaborator: str, reason: str | None = None):
        details = {"collaborator": collaborator}
        if reason:
            details["reason"] = reason
        message = f"Could not resolve {collaborator}"
        if reason:
            message += f": {reason}"
        super().__init__(message, details)
        self.collaborator = collaborator
        self.reason = reason


class DecorationError(OfflineStoreError):
    """Raised when an operation, adapter or serializer cannot be decorated."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Cannot decorate {operation}: {reason}",
            {"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason


class RecordNotFoundError(OfflineStoreError):
    """Raised when a record is not found."""

    def __init__(self, model_name: str, record_id: str):
        super().__init__(
            f"Record not found: {model_name}:{record_id}",
            {"model_name": model_name, "record_id": record_id},
        )
        self.model_name = model_name
        self.record_id = record_id


class AdapterNotFoundError(OfflineStoreError):
    """Raised when no adapter or serializer is registered for a model."""

    def __init__(self, kind: str, model_name: str):
        super().__init__(
            f"No {kind} registered for model {model_name}",
            {"kind": kind, "model_name": model_name},
        )
        self.kind = kind
        self.model_name = model_name


class SyncError(OfflineStoreError):
    """Raised when synchronization bookkeeping fails."""

    def __init__(self, message: str, model_name: str | None = None, cause: Exception | None = None):
        details: dict = {}
        if model_name:
            details["model_name"] = model_name
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.model_name = model_name
        self.cause = cause
