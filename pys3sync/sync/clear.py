"""Removal of every object under a target's bucket prefix."""

import logging
import time
from typing import Optional

from ..output import OutputFormatter
from ..protocols import ConsoleProtocol, ObjectStoreClient
from .progress import ProgressReporter, SyncProgressTracker
from .remote_index import RemoteObjectIndex
from .target import SyncTarget

logger = logging.getLogger(__name__)


class ClearEngine:
    """Deletes all objects under a target's bucket and prefix.

    The local directory is never touched. Deletes are issued batch by
    batch; the first failing batch aborts the clear and batches already
    deleted stay deleted.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        output: Optional[ConsoleProtocol] = None,
    ):
        self.client = client
        self.output: ConsoleProtocol = output or OutputFormatter()
        self.index = RemoteObjectIndex(client)

    def _on_tick(self, decile: int) -> None:
        logger.debug("Progress: %d%%", decile)
        self.output.print_dot()

    def clear(self, target: SyncTarget) -> dict:
        """Delete every object under the target's prefix.

        Args:
            target: Target whose remote objects are removed

        Returns:
            Dictionary with ``deletes``

        Raises:
            S3SyncTransferError: On the first listing or delete failure
        """
        start_time = time.time()
        reporter = ProgressReporter(self._on_tick)
        tracker: Optional[SyncProgressTracker] = None

        def on_batch(deleted: int, total: int) -> None:
            nonlocal tracker
            if tracker is None:
                tracker = SyncProgressTracker(total, reporter)
            tracker.advance(deleted)

        deleted = self.index.delete_all(
            target.bucket_name, target.key_prefix, progress_callback=on_batch
        )
        logger.debug(
            "Cleared %d object(s) from s3://%s/%s in %.2fs",
            deleted,
            target.bucket_name,
            target.key_prefix,
            time.time() - start_time,
        )
        return {"deletes": deleted}
