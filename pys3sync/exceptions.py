"""Exceptions raised by pys3sync."""

from typing import Optional


class S3SyncError(Exception):
    """Base class for all pys3sync errors."""


class S3SyncConfigError(S3SyncError):
    """A sync target or the configuration document is invalid.

    Raised before any network activity takes place.
    """


class S3SyncCredentialsError(S3SyncError):
    """Credentials or region could not be resolved."""


class S3SyncTransferError(S3SyncError):
    """A list, upload or delete call against the object store failed."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.bucket = bucket
        self.key = key


class S3SyncAccessDeniedError(S3SyncTransferError):
    """The credentials are not allowed to perform the operation."""


class S3SyncBucketNotFoundError(S3SyncTransferError):
    """The bucket does not exist."""
