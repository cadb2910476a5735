"""Core sync engine for executing sync operations."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Optional

from ..exceptions import S3SyncConfigError
from ..output import OutputFormatter
from ..protocols import ConsoleProtocol, ObjectStoreClient
from ..utils import (
    DEFAULT_MAX_ASYNC,
    DEFAULT_MULTIPART_CHUNKSIZE,
    DEFAULT_MULTIPART_THRESHOLD,
    format_size,
)
from .comparator import FileComparator, SyncAction, SyncDecision, SyncPlan
from .operations import SyncOperations
from .params import SKIP, ParamResolver
from .progress import ProgressReporter, SyncProgressTracker
from .remote_index import RemoteObjectIndex, iter_batches
from .scanner import DirectoryScanner, LocalFile
from .target import SyncTarget

logger = logging.getLogger(__name__)


class SyncEngine:
    """Core sync engine that synchronizes a local directory to a bucket prefix.

    The local walk, remote listing and comparison run in the calling thread.
    Uploads and deletions then run on a pool of ``max_async`` workers; the
    first failing transfer cancels the transfers that have not started yet
    and is re-raised to the caller.
    """

    def __init__(
        self,
        client: ObjectStoreClient,
        output: Optional[ConsoleProtocol] = None,
        active_env: Optional[str] = None,
        max_async: int = DEFAULT_MAX_ASYNC,
    ):
        """Initialize sync engine.

        Args:
            client: Object store client (one per target)
            output: Output formatter for progress dots and plan display
            active_env: Environment name for OnlyForEnv gating
            max_async: Maximum simultaneous transfers
        """
        self.client = client
        self.output: ConsoleProtocol = output or OutputFormatter()
        self.active_env = active_env
        self.max_async = max_async
        self.index = RemoteObjectIndex(client)

    def sync_target(self, target: SyncTarget, dry_run: bool = False) -> dict:
        """Sync a single target.

        Args:
            target: Target to synchronize
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics (``uploads``, ``deletes``,
            ``skips``, ``env_skipped``, ``bytes``)

        Raises:
            S3SyncConfigError: If the local directory is missing
            S3SyncTransferError: If listing, an upload or a delete fails

        Examples:
            >>> engine = SyncEngine(client)  # doctest: +SKIP
            >>> stats = engine.sync_target(target)  # doctest: +SKIP
            >>> print(f"Uploaded {stats['uploads']} files")  # doctest: +SKIP
        """
        if not target.local_dir.exists():
            raise S3SyncConfigError(
                f"Local directory does not exist: {target.local_dir}"
            )
        if not target.local_dir.is_dir():
            raise S3SyncConfigError(
                f"Local path is not a directory: {target.local_dir}"
            )

        start_time = time.time()

        # Step 1: Scan local files
        scanner = DirectoryScanner(follow_symlinks=target.follow_symlinks)
        local_files = scanner.scan_local(target.local_dir)
        logger.debug(
            "Local scan of %s found %d file(s)", target.local_dir, len(local_files)
        )

        # Step 2: List remote objects
        remote_objects = self.index.list(target.bucket_name, target.key_prefix)

        # Step 3: Compare and build the plan
        comparator = FileComparator(
            delete_removed=target.delete_removed,
            multipart_threshold=getattr(
                self.client, "multipart_threshold", DEFAULT_MULTIPART_THRESHOLD
            ),
            multipart_chunksize=getattr(
                self.client, "multipart_chunksize", DEFAULT_MULTIPART_CHUNKSIZE
            ),
        )
        decisions = comparator.compare_files(
            {f.relative_path: f for f in local_files},
            self.index.as_map(remote_objects),
        )
        plan = SyncPlan.from_decisions(decisions)
        resolver = ParamResolver(target.rules, target.local_dir, self.active_env)

        stats = self._create_empty_stats()
        stats["skips"] = plan.skipped

        # Step 4: Display or execute
        if dry_run:
            self._fill_dry_run_stats(plan, resolver, stats)
            self._display_sync_plan(target, stats, decisions)
        else:
            self._execute_plan(target, plan, resolver, stats)

        logger.debug(
            "Target %s finished in %.2fs: %s",
            target.display_name,
            time.time() - start_time,
            stats,
        )
        return stats

    def _create_empty_stats(self) -> dict:
        return {
            "uploads": 0,
            "deletes": 0,
            "skips": 0,
            "env_skipped": 0,
            "bytes": 0,
        }

    def _fill_dry_run_stats(
        self, plan: SyncPlan, resolver: ParamResolver, stats: dict
    ) -> None:
        for local_file in plan.to_upload:
            if resolver.resolve(local_file.path) is SKIP:
                stats["env_skipped"] += 1
            else:
                stats["uploads"] += 1
                stats["bytes"] += local_file.size
        stats["deletes"] = len(plan.to_delete)

    def _on_tick(self, decile: int) -> None:
        logger.debug("Progress: %d%%", decile)
        self.output.print_dot()

    def _execute_plan(
        self,
        target: SyncTarget,
        plan: SyncPlan,
        resolver: ParamResolver,
        stats: dict,
    ) -> None:
        """Run the uploads and deletions of a plan on the worker pool.

        Args:
            target: Target being synchronized
            plan: Uploads and deletions to perform
            resolver: Parameter resolver for the target
            stats: Statistics dictionary (modified in place)
        """
        if plan.is_empty:
            logger.debug("Nothing to do for %s", target.display_name)
            return

        operations = SyncOperations(self.client, target)
        tracker = SyncProgressTracker(
            total=plan.upload_bytes + len(plan.to_delete),
            reporter=ProgressReporter(self._on_tick),
        )

        def upload(local_file: LocalFile) -> bool:
            params = resolver.resolve(local_file.path)
            if params is SKIP:
                logger.debug(
                    "Skipping %s (OnlyForEnv does not match %r)",
                    local_file.relative_path,
                    self.active_env,
                )
                tracker.advance(local_file.size)
                return False
            operations.upload_file(
                local_file, params, progress_callback=tracker.advance
            )
            return True

        def delete(keys: list[str]) -> int:
            deleted = operations.delete_remote(keys)
            tracker.advance(deleted)
            return deleted

        logger.debug(
            "Executing %d upload(s) and %d deletion(s) with %d workers",
            len(plan.to_upload),
            len(plan.to_delete),
            self.max_async,
        )

        with ThreadPoolExecutor(max_workers=self.max_async) as executor:
            upload_futures: dict[Future, LocalFile] = {
                executor.submit(upload, local_file): local_file
                for local_file in plan.to_upload
            }
            delete_keys = [obj.key for obj in plan.to_delete]
            delete_futures: list[Future] = [
                executor.submit(delete, batch) for batch in iter_batches(delete_keys)
            ]
            futures = list(upload_futures) + delete_futures

            try:
                for future in as_completed(futures):
                    result = future.result()
                    if future in upload_futures:
                        if result:
                            stats["uploads"] += 1
                            stats["bytes"] += upload_futures[future].size
                        else:
                            stats["env_skipped"] += 1
                    else:
                        stats["deletes"] += result
            except BaseException:
                # Transfers already running finish; queued ones never start
                for future in futures:
                    future.cancel()
                raise

    def _display_sync_plan(
        self,
        target: SyncTarget,
        stats: dict,
        decisions: list[SyncDecision],
    ) -> None:
        """Display sync plan to user.

        Args:
            target: Target the plan belongs to
            stats: Statistics dictionary
            decisions: List of sync decisions
        """
        if self.output.quiet:
            return

        self.output.info(f"Sync plan for {target.display_name}:")
        if stats["uploads"] > 0:
            self.output.info(
                f"  ↑ Upload: {stats['uploads']} file(s), "
                f"{format_size(stats['bytes'])}"
            )
        if stats["env_skipped"] > 0:
            self.output.info(
                f"  - Not for this environment: {stats['env_skipped']} file(s)"
            )
        if stats["deletes"] > 0:
            self.output.info(f"  ✗ Delete remote: {stats['deletes']} object(s)")
        if stats["skips"] > 0:
            self.output.info(f"  = Skip: {stats['skips']} file(s)")

        for decision in decisions:
            if decision.action != SyncAction.SKIP:
                logger.info("%s: %s", decision.relative_path, decision.reason)

        self.output.print("")
