"""S3 client wrapper used by the sync engines."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import S3Transfer, TransferConfig
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from .config import config
from .exceptions import (
    S3SyncAccessDeniedError,
    S3SyncBucketNotFoundError,
    S3SyncCredentialsError,
    S3SyncTransferError,
)
from .utils import DEFAULT_MULTIPART_CHUNKSIZE, DEFAULT_MULTIPART_THRESHOLD

logger = logging.getLogger(__name__)

# Parameter names that may be passed to an upload (ACL, ContentType, Metadata, ...)
ALLOWED_UPLOAD_PARAMS = frozenset(S3Transfer.ALLOWED_UPLOAD_ARGS)

_ACCESS_DENIED_CODES = {"AccessDenied", "AllAccessDisabled", "403"}
_NO_BUCKET_CODES = {"NoSuchBucket", "404"}


@dataclass(frozen=True)
class AwsCredentials:
    """Access key material and region for one client."""

    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    region: Optional[str] = None


class CredentialsProvider:
    """Resolves credentials through the standard boto3 credential chain.

    Environment variables, shared config/credentials files, SSO and
    instance metadata are all honoured; a named profile narrows the
    lookup to that profile.
    """

    def __init__(self, profile: Optional[str] = None, region: Optional[str] = None):
        self.profile = profile if profile is not None else config.profile
        self.region = region if region is not None else config.region

    def get_credentials(self) -> AwsCredentials:
        """Resolve credentials and region.

        Raises:
            S3SyncCredentialsError: If no credentials can be found
        """
        try:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
        except ProfileNotFound as e:
            raise S3SyncCredentialsError(str(e)) from e

        credentials = session.get_credentials()
        if credentials is None:
            raise S3SyncCredentialsError(
                "No AWS credentials found. Configure a profile or set "
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY."
            )
        frozen = credentials.get_frozen_credentials()
        return AwsCredentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
            region=session.region_name,
        )


def create_s3_client(
    credentials: AwsCredentials,
    endpoint_url: Optional[str] = None,
    max_pool_connections: int = 10,
) -> "S3Client":
    """Create an S3Client bound to the given credentials.

    Args:
        credentials: Resolved credentials and region
        endpoint_url: Custom endpoint for S3-compatible stores
        max_pool_connections: HTTP connection pool size

    Returns:
        S3Client instance
    """
    boto_config = BotoConfig(
        retries={"mode": "standard"},
        max_pool_connections=max_pool_connections,
    )
    # Clients are built from worker threads; the default session is not thread-safe
    session = boto3.Session()
    client = session.client(
        "s3",
        region_name=credentials.region,
        aws_access_key_id=credentials.access_key_id,
        aws_secret_access_key=credentials.secret_access_key,
        aws_session_token=credentials.session_token,
        endpoint_url=endpoint_url or config.endpoint_url,
        config=boto_config,
    )
    return S3Client(client)


class S3Client:
    """Capability wrapper around a boto3 S3 client.

    Exposes exactly what the sync engines need (list, upload, delete) and
    translates botocore failures into :class:`S3SyncTransferError`. No
    retries are added here; the boto3 client's own retry policy applies.
    """

    def __init__(
        self,
        client: Any,
        multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
        multipart_chunksize: int = DEFAULT_MULTIPART_CHUNKSIZE,
    ):
        """Initialize the client wrapper.

        Args:
            client: A boto3 S3 client (or anything with the same surface)
            multipart_threshold: Size at which uploads switch to multipart
            multipart_chunksize: Part size for multipart uploads
        """
        self._client = client
        self.multipart_threshold = multipart_threshold
        self.multipart_chunksize = multipart_chunksize
        # Concurrency is bounded by the engine's worker pool, so the
        # transfer manager must not start threads of its own.
        self.transfer_config = TransferConfig(
            multipart_threshold=multipart_threshold,
            multipart_chunksize=multipart_chunksize,
            use_threads=False,
        )

    def _translate_error(
        self,
        error: Exception,
        operation: str,
        bucket: str,
        key: Optional[str] = None,
    ) -> S3SyncTransferError:
        """Map a botocore/boto3 exception to a transfer error."""
        target = f"s3://{bucket}/{key}" if key else f"s3://{bucket}"

        if isinstance(error, ClientError):
            code = str(error.response.get("Error", {}).get("Code", ""))
            message = error.response.get("Error", {}).get("Message", "") or code
            if code in _ACCESS_DENIED_CODES:
                return S3SyncAccessDeniedError(
                    f"Access denied during {operation} on {target}",
                    operation=operation,
                    bucket=bucket,
                    key=key,
                )
            if code in _NO_BUCKET_CODES:
                return S3SyncBucketNotFoundError(
                    f"Bucket not found: {bucket}",
                    operation=operation,
                    bucket=bucket,
                    key=key,
                )
            return S3SyncTransferError(
                f"{operation} failed on {target}: {message}",
                operation=operation,
                bucket=bucket,
                key=key,
            )

        return S3SyncTransferError(
            f"{operation} failed on {target}: {error}",
            operation=operation,
            bucket=bucket,
            key=key,
        )

    def iter_objects(self, bucket: str, prefix: str = "") -> Iterator[dict[str, Any]]:
        """Iterate over every object under a prefix.

        Pagination is handled transparently.

        Args:
            bucket: Bucket name
            prefix: Key prefix ("" for the whole bucket)

        Yields:
            Raw object dicts with ``Key``, ``Size`` and ``ETag``

        Raises:
            S3SyncTransferError: If a listing page cannot be fetched
        """
        paginator = self._client.get_paginator("list_objects_v2")
        page_count = 0
        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                page_count += 1
                yield from page.get("Contents", [])
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "list", bucket, prefix or None) from e
        logger.debug(
            "Listed s3://%s/%s in %d page(s)", bucket, prefix, page_count
        )

    def upload_file(
        self,
        file_path: Path,
        bucket: str,
        key: str,
        extra_args: Optional[dict[str, Any]] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Upload a local file.

        Args:
            file_path: Local file to upload
            bucket: Bucket name
            key: Object key
            extra_args: Upload parameters (ACL, ContentType, Metadata, ...)
            progress_callback: Called with the number of bytes sent since the
                previous call

        Raises:
            S3SyncTransferError: If the upload fails
        """
        try:
            self._client.upload_file(
                str(file_path),
                bucket,
                key,
                ExtraArgs=extra_args or None,
                Callback=progress_callback,
                Config=self.transfer_config,
            )
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise self._translate_error(e, "upload", bucket, key) from e

    def delete_objects(self, bucket: str, keys: list[str]) -> list[str]:
        """Delete a batch of keys with a single request.

        Args:
            bucket: Bucket name
            keys: Up to 1000 keys

        Returns:
            Keys reported as deleted

        Raises:
            S3SyncTransferError: If the request fails or any key could not be
                deleted
        """
        if not keys:
            return []
        try:
            response = self._client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
            )
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "delete", bucket) from e

        errors = response.get("Errors", [])
        if errors:
            first = errors[0]
            raise S3SyncTransferError(
                f"delete failed on s3://{bucket}/{first.get('Key')}: "
                f"{first.get('Message') or first.get('Code')} "
                f"({len(errors)} of {len(keys)} key(s) not deleted)",
                operation="delete",
                bucket=bucket,
                key=first.get("Key"),
            )
        return [item["Key"] for item in response.get("Deleted", [])]
