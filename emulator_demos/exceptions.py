"""Errors raised by the emulator walkthroughs."""

from typing import Optional


class EmulatorDemoError(Exception):
    """Base class for failed emulator operations."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class StorageOperationError(EmulatorDemoError):
    """Raised when a Cloud Storage call against the emulator fails."""

    def __init__(
        self,
        operation: str,
        bucket_name: str,
        object_name: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.operation = operation
        self.bucket_name = bucket_name
        self.object_name = object_name
        target = f"gs://{bucket_name}/{object_name}" if object_name else f"gs://{bucket_name}"
        super().__init__(f"failed to {operation} ({target})", cause)


class PubSubOperationError(EmulatorDemoError):
    """Raised when a Pub/Sub call against the emulator fails."""

    def __init__(self, operation: str, resource: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.resource = resource
        super().__init__(f"failed to {operation} ({resource})", cause)
