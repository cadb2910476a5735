"""Interfaces of the collaborators the sync core calls into."""

from collections.abc import Iterator
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from .api import AwsCredentials


class ObjectStoreClient(Protocol):
    """List/put/delete capability of a remote object store."""

    def iter_objects(self, bucket: str, prefix: str = "") -> Iterator[dict[str, Any]]:
        ...

    def upload_file(
        self,
        file_path: Path,
        bucket: str,
        key: str,
        extra_args: Optional[dict[str, Any]] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        ...

    def delete_objects(self, bucket: str, keys: list[str]) -> list[str]:
        ...


class CredentialsProviderProtocol(Protocol):
    def get_credentials(self) -> AwsCredentials:
        ...


ClientFactory = Callable[[AwsCredentials], ObjectStoreClient]
"""Builds one client per target from resolved credentials."""


class ConsoleProtocol(Protocol):
    """Console sink accepting plain lines and progress dots."""

    quiet: bool

    def print(self, message: str = "") -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def status(self, message: str, color: str = "yellow") -> None:
        ...

    def warning(self, message: str) -> None:
        ...

    def print_dot(self) -> None:
        ...
