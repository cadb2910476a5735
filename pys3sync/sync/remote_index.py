"""Listing and bulk deletion of the objects under a bucket prefix."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Callable, Optional

from ..protocols import ObjectStoreClient
from ..utils import DELETE_BATCH_SIZE
from .scanner import RemoteObject

logger = logging.getLogger(__name__)


def iter_batches(
    keys: list[str], batch_size: int = DELETE_BATCH_SIZE
) -> Iterator[list[str]]:
    """Split keys into DeleteObjects-sized batches."""
    for start in range(0, len(keys), batch_size):
        yield keys[start : start + batch_size]


class RemoteObjectIndex:
    """Fetches the current objects of a bucket prefix.

    Nothing is cached between calls; every sync works from a fresh listing.
    """

    def __init__(self, client: ObjectStoreClient):
        """Initialize the index.

        Args:
            client: Object store client
        """
        self.client = client

    def list(self, bucket: str, prefix: str = "") -> list[RemoteObject]:
        """List every object under a prefix.

        The object whose key equals the prefix itself (a "folder" marker)
        is left out.

        Args:
            bucket: Bucket name
            prefix: Key prefix

        Returns:
            List of RemoteObject entries

        Raises:
            S3SyncTransferError: If listing fails
        """
        objects = [
            RemoteObject.from_listing(entry, prefix)
            for entry in self.client.iter_objects(bucket, prefix)
            if entry["Key"] != prefix
        ]
        logger.debug(
            "Found %d object(s) under s3://%s/%s", len(objects), bucket, prefix
        )
        return objects

    def as_map(self, objects: list[RemoteObject]) -> dict[str, RemoteObject]:
        """Index objects by relative path."""
        return {obj.relative_path: obj for obj in objects}

    def delete_all(
        self,
        bucket: str,
        prefix: str = "",
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> int:
        """Delete every object under a prefix.

        Args:
            bucket: Bucket name
            prefix: Key prefix ("" empties the bucket)
            progress_callback: Called as ``callback(deleted_in_batch, total)``
                after each batch

        Returns:
            Number of deleted objects

        Raises:
            S3SyncTransferError: On the first listing or delete failure
        """
        keys = [entry["Key"] for entry in self.client.iter_objects(bucket, prefix)]
        total = len(keys)
        logger.debug("Deleting %d object(s) under s3://%s/%s", total, bucket, prefix)

        deleted = 0
        for batch in iter_batches(keys):
            self.client.delete_objects(bucket, batch)
            deleted += len(batch)
            if progress_callback is not None:
                progress_callback(len(batch), total)
        return deleted
