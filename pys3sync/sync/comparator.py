"""File comparison logic for sync operations."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..utils import (
    DEFAULT_MULTIPART_CHUNKSIZE,
    DEFAULT_MULTIPART_THRESHOLD,
    calculate_etag,
)
from .scanner import LocalFile, RemoteObject

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to the bucket"""

    DELETE_REMOTE = "delete_remote"
    """Delete orphaned remote object"""

    SKIP = "skip"
    """Skip file (no action needed)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    local_file: Optional[LocalFile]
    """Local file (if exists)"""

    remote_object: Optional[RemoteObject]
    """Remote object (if exists)"""

    relative_path: str
    """Relative path of the file"""


@dataclass
class SyncPlan:
    """Uploads and deletions computed for one target run."""

    to_upload: list[LocalFile] = field(default_factory=list)
    to_delete: list[RemoteObject] = field(default_factory=list)
    skipped: int = 0

    @classmethod
    def from_decisions(cls, decisions: list[SyncDecision]) -> "SyncPlan":
        plan = cls()
        for decision in decisions:
            if decision.action == SyncAction.UPLOAD and decision.local_file:
                plan.to_upload.append(decision.local_file)
            elif decision.action == SyncAction.DELETE_REMOTE and decision.remote_object:
                plan.to_delete.append(decision.remote_object)
            else:
                plan.skipped += 1
        return plan

    @property
    def upload_bytes(self) -> int:
        return sum(f.size for f in self.to_upload)

    @property
    def is_empty(self) -> bool:
        return not self.to_upload and not self.to_delete


class FileComparator:
    """Compares local files and remote objects to determine sync actions.

    Files present on both sides are compared by size first and by content
    checksum (local S3-style ETag against the remote ETag) when the sizes
    agree. Local files are only read when a checksum is needed.
    """

    def __init__(
        self,
        delete_removed: bool = True,
        multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
        multipart_chunksize: int = DEFAULT_MULTIPART_CHUNKSIZE,
    ):
        """Initialize file comparator.

        Args:
            delete_removed: Whether remote objects without a local file are
                deleted
            multipart_threshold: Multipart threshold used by the uploader
            multipart_chunksize: Part size used by the uploader
        """
        self.delete_removed = delete_removed
        self.multipart_threshold = multipart_threshold
        self.multipart_chunksize = multipart_chunksize

    def compare_files(
        self,
        local_files: dict[str, LocalFile],
        remote_objects: dict[str, RemoteObject],
    ) -> list[SyncDecision]:
        """Compare local files and remote objects and determine sync actions.

        Args:
            local_files: Dictionary mapping relative_path to LocalFile
            remote_objects: Dictionary mapping relative_path to RemoteObject

        Returns:
            List of SyncDecision objects, sorted by relative path
        """
        decisions: list[SyncDecision] = []

        all_paths = set(local_files.keys()) | set(remote_objects.keys())

        for path in sorted(all_paths):
            local_file = local_files.get(path)
            remote_object = remote_objects.get(path)

            decision = self._compare_single_file(path, local_file, remote_object)
            decisions.append(decision)

        return decisions

    def _compare_single_file(
        self,
        path: str,
        local_file: Optional[LocalFile],
        remote_object: Optional[RemoteObject],
    ) -> SyncDecision:
        if local_file and remote_object:
            return self._compare_existing_files(path, local_file, remote_object)

        if local_file:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local file",
                local_file=local_file,
                remote_object=None,
                relative_path=path,
            )

        return self._handle_remote_only(path, remote_object)

    def _compare_existing_files(
        self, path: str, local_file: LocalFile, remote_object: RemoteObject
    ) -> SyncDecision:
        """Compare files that exist in both locations."""
        if local_file.size != remote_object.size:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason=(
                    f"Size changed ({remote_object.size} -> {local_file.size} bytes)"
                ),
                local_file=local_file,
                remote_object=remote_object,
                relative_path=path,
            )

        try:
            local_etag = calculate_etag(
                local_file.path,
                local_file.size,
                self.multipart_threshold,
                self.multipart_chunksize,
            )
        except OSError as e:
            logger.warning(
                "Cannot read %s, leaving remote copy: %s", local_file.path, e
            )
            return SyncDecision(
                action=SyncAction.SKIP,
                reason=f"Unreadable local file: {e}",
                local_file=local_file,
                remote_object=remote_object,
                relative_path=path,
            )

        if local_etag == remote_object.etag:
            return SyncDecision(
                action=SyncAction.SKIP,
                reason="Files are identical",
                local_file=local_file,
                remote_object=remote_object,
                relative_path=path,
            )

        return SyncDecision(
            action=SyncAction.UPLOAD,
            reason="Content changed",
            local_file=local_file,
            remote_object=remote_object,
            relative_path=path,
        )

    def _handle_remote_only(
        self, path: str, remote_object: Optional[RemoteObject]
    ) -> SyncDecision:
        """Handle object that only exists remotely."""
        if self.delete_removed:
            return SyncDecision(
                action=SyncAction.DELETE_REMOTE,
                reason="File deleted locally",
                local_file=None,
                remote_object=remote_object,
                relative_path=path,
            )
        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Remote-only object kept (deleteRemoved is off)",
            local_file=None,
            remote_object=remote_object,
            relative_path=path,
        )
