"""Directory scanning utilities for sync operations."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..utils import normalize_etag

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local file with metadata."""

    path: Path
    """Absolute path to the file (the link path for followed symlinks)"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    is_symlink: bool = False
    """Whether the file was reached through a symbolic link"""

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Symlinks are stat'ed through to their target.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance
        """
        stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime=stat.st_mtime,
            is_symlink=file_path.is_symlink(),
        )


@dataclass
class RemoteObject:
    """Represents an object in the bucket."""

    key: str
    """Full object key"""

    relative_path: str
    """Key with the target's prefix removed"""

    size: int
    """Object size in bytes"""

    etag: str
    """Normalized ETag (MD5 for single-part uploads)"""

    @classmethod
    def from_listing(cls, entry: dict[str, Any], prefix: str) -> "RemoteObject":
        """Create RemoteObject from a ``list_objects_v2`` content entry.

        Args:
            entry: Content dict with ``Key``, ``Size`` and ``ETag``
            prefix: Prefix stripped from the key to get the relative path
        """
        key = entry["Key"]
        return cls(
            key=key,
            relative_path=key[len(prefix) :] if key.startswith(prefix) else key,
            size=int(entry.get("Size", 0)),
            etag=normalize_etag(entry.get("ETag", "")),
        )


class DirectoryScanner:
    """Scans directories and builds file lists.

    Regular files are always collected. Symbolic links are skipped unless
    ``follow_symlinks`` is set, in which case links to files are collected
    under the link's own path and links to directories are descended into.
    A link back to an ancestor directory is not descended into; every other
    path to a directory, including a second link to it, is walked.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/srv/site"))  # doctest: +SKIP
        >>> sorted(f.relative_path for f in files)  # doctest: +SKIP
        ['css/main.css', 'index.html']
    """

    def __init__(self, follow_symlinks: bool = False):
        """Initialize directory scanner.

        Args:
            follow_symlinks: Whether to include files reached through
                symbolic links
        """
        self.follow_symlinks = follow_symlinks
        self._active_dirs: set[str] = set()

    def scan_local(
        self, directory: Path, base_path: Optional[Path] = None
    ) -> list[LocalFile]:
        """Recursively scan a local directory.

        Args:
            directory: Directory to scan
            base_path: Base path for calculating relative paths (defaults to
                directory)

        Returns:
            List of LocalFile objects, sorted by relative path within each
            directory
        """
        if base_path is None:
            directory = Path(os.path.abspath(directory))
            base_path = directory
            self._active_dirs = set()

        # Cycle: the directory is already on the current path
        real_dir = os.path.realpath(directory)
        if real_dir in self._active_dirs:
            logger.debug("Skipping symlink cycle: %s", directory)
            return []
        self._active_dirs.add(real_dir)
        try:
            return self._scan_entries(directory, base_path)
        finally:
            self._active_dirs.discard(real_dir)

    def _scan_entries(self, directory: Path, base_path: Path) -> list[LocalFile]:
        files: list[LocalFile] = []

        try:
            items = sorted(directory.iterdir(), key=lambda p: p.name)
        except PermissionError as e:
            logger.warning("Permission denied: %s", e)
            return files

        for item in items:
            if item.is_symlink():
                if not self.follow_symlinks:
                    logger.debug("Skipping symlink: %s", item)
                    continue
                if not item.exists():
                    logger.warning("Skipping broken symlink: %s", item)
                    continue

            if item.is_file():
                try:
                    files.append(LocalFile.from_path(item, base_path))
                except OSError as e:
                    # Skip files we can't stat
                    logger.warning("Cannot read %s: %s", item, e)
            elif item.is_dir():
                files.extend(self.scan_local(item, base_path))

        return files
