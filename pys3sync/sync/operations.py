"""Upload and delete operations for one sync target."""

import logging
import mimetypes
import time
from typing import Any, Callable, Optional

from ..protocols import ObjectStoreClient
from .scanner import LocalFile
from .target import SyncTarget

logger = logging.getLogger(__name__)


class SyncOperations:
    """Issues the object store calls for one target."""

    def __init__(self, client: ObjectStoreClient, target: SyncTarget):
        """Initialize sync operations.

        Args:
            client: Object store client
            target: Target the operations belong to
        """
        self.client = client
        self.target = target

    def build_upload_args(
        self, local_file: LocalFile, params: dict[str, Any]
    ) -> dict[str, Any]:
        """Combine the target's base ACL with the resolved file parameters.

        Content type precedence: resolved ``ContentType``, then the target's
        ``defaultContentType``, then a guess from the file extension. When
        none applies, the store's default is used.

        Args:
            local_file: File being uploaded
            params: Resolved parameters for the file

        Returns:
            Upload parameters
        """
        upload_args: dict[str, Any] = {"ACL": self.target.acl}
        upload_args.update(params)

        if not upload_args.get("ContentType"):
            content_type = self.target.default_content_type
            if not content_type:
                content_type, _ = mimetypes.guess_type(local_file.path.name)
            if content_type:
                upload_args["ContentType"] = content_type
            else:
                upload_args.pop("ContentType", None)

        return upload_args

    def upload_file(
        self,
        local_file: LocalFile,
        params: dict[str, Any],
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> str:
        """Upload a local file to its object key.

        Args:
            local_file: Local file to upload
            params: Resolved parameters for the file
            progress_callback: Called with bytes sent since the previous call

        Returns:
            Object key written
        """
        key = self.target.key_for(local_file.relative_path)
        upload_args = self.build_upload_args(local_file, params)

        start = time.time()
        self.client.upload_file(
            local_file.path,
            self.target.bucket_name,
            key,
            extra_args=upload_args,
            progress_callback=progress_callback,
        )
        logger.debug(
            "Upload of %s to s3://%s/%s took %.2fs",
            local_file.relative_path,
            self.target.bucket_name,
            key,
            time.time() - start,
        )
        return key

    def delete_remote(self, keys: list[str]) -> int:
        """Delete a batch of object keys.

        Returns:
            Number of keys deleted
        """
        start = time.time()
        self.client.delete_objects(self.target.bucket_name, keys)
        logger.debug(
            "Deleted %d object(s) from s3://%s in %.2fs",
            len(keys),
            self.target.bucket_name,
            time.time() - start,
        )
        return len(keys)
