"""pys3sync - Synchronize local directories with S3 bucket prefixes."""

from .api import AwsCredentials, CredentialsProvider, S3Client, create_s3_client
from .exceptions import (
    S3SyncAccessDeniedError,
    S3SyncBucketNotFoundError,
    S3SyncConfigError,
    S3SyncCredentialsError,
    S3SyncError,
    S3SyncTransferError,
)
from .output import OutputFormatter
from .plugin import S3Sync

__all__ = [
    "AwsCredentials",
    "CredentialsProvider",
    "OutputFormatter",
    "S3Client",
    "S3Sync",
    "S3SyncAccessDeniedError",
    "S3SyncBucketNotFoundError",
    "S3SyncConfigError",
    "S3SyncCredentialsError",
    "S3SyncError",
    "S3SyncTransferError",
    "create_s3_client",
]
