"""Host-facing entry point: sync or clear every configured target."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from .api import CredentialsProvider, create_s3_client
from .config import DEFAULT_CONFIG_KEY, config, load_sync_targets
from .output import OutputFormatter
from .protocols import (
    ClientFactory,
    ConsoleProtocol,
    CredentialsProviderProtocol,
    ObjectStoreClient,
)
from .sync.clear import ClearEngine
from .sync.engine import SyncEngine
from .sync.target import SyncTarget

logger = logging.getLogger(__name__)

T = TypeVar("T")


class S3Sync:
    """Synchronizes the configured directories with their S3 prefixes.

    All targets are validated up front; a single invalid target aborts the
    run before any client is created. Targets then run concurrently, each
    with its own client, and the first failing target's error is re-raised
    once the others have stopped.

    Examples:
        >>> s3sync = S3Sync.from_config_file(Path("serverless.yml"))  # doctest: +SKIP
        >>> s3sync.sync()  # doctest: +SKIP
    """

    def __init__(
        self,
        targets_config: Any,
        service_path: Optional[Path] = None,
        output: Optional[ConsoleProtocol] = None,
        env: Optional[str] = None,
        credentials_provider: Optional[CredentialsProviderProtocol] = None,
        client_factory: Optional[ClientFactory] = None,
        max_async: Optional[int] = None,
    ):
        """Initialize the runner.

        Args:
            targets_config: Raw list of target mappings (anything else means
                no configuration)
            service_path: Directory ``localDir`` values are relative to
                (defaults to the working directory)
            output: Console sink
            env: Active environment for OnlyForEnv gating
            credentials_provider: Resolves credentials and region
            client_factory: Builds a client from credentials
            max_async: Simultaneous transfers per target
        """
        self.targets_config = targets_config
        self.service_path = Path(service_path) if service_path else Path.cwd()
        self.output: ConsoleProtocol = output or OutputFormatter()
        self.env = env if env is not None else config.env
        self.credentials_provider = credentials_provider or CredentialsProvider()
        self.client_factory = client_factory or create_s3_client
        self.max_async = max_async if max_async is not None else config.max_async

    @classmethod
    def from_config_file(
        cls, path: Path, key: str = DEFAULT_CONFIG_KEY, **kwargs: Any
    ) -> "S3Sync":
        """Create a runner from a YAML/JSON configuration document.

        ``service_path`` defaults to the document's directory.
        """
        path = Path(path)
        kwargs.setdefault("service_path", path.resolve().parent)
        return cls(load_sync_targets(path, key), **kwargs)

    @property
    def has_configuration(self) -> bool:
        return isinstance(self.targets_config, list)

    def load_targets(self) -> list[SyncTarget]:
        """Validate every configured target.

        Raises:
            S3SyncConfigError: On the first invalid target
        """
        return [
            SyncTarget.from_dict(entry, self.service_path)
            for entry in self.targets_config
        ]

    def _client(self) -> ObjectStoreClient:
        """Create a fresh client; targets never share one."""
        return self.client_factory(self.credentials_provider.get_credentials())

    def _run_all(
        self, targets: list[SyncTarget], job: Callable[[SyncTarget], T]
    ) -> list[T]:
        """Run ``job`` for every target concurrently, failing on the first error.

        Returns:
            Job results in target order
        """
        results: dict[int, T] = {}
        with ThreadPoolExecutor(max_workers=max(1, len(targets))) as executor:
            futures: dict[Future, int] = {
                executor.submit(job, target): index
                for index, target in enumerate(targets)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return [results[index] for index in range(len(targets))]

    def _sync_target(self, target: SyncTarget, dry_run: bool) -> dict:
        engine = SyncEngine(
            self._client(),
            output=self.output,
            active_env=self.env,
            max_async=self.max_async,
        )
        return engine.sync_target(target, dry_run=dry_run)

    def _clear_target(self, target: SyncTarget) -> dict:
        return ClearEngine(self._client(), output=self.output).clear(target)

    def sync(self, dry_run: bool = False) -> list[dict]:
        """Synchronize every configured target.

        Args:
            dry_run: Only compute and display each target's plan

        Returns:
            Per-target statistics, in configuration order (empty when no
            configuration is present)

        Raises:
            S3SyncConfigError: If any target is invalid (nothing is synced)
            S3SyncTransferError: If any transfer fails
        """
        if not self.has_configuration:
            self.output.status("No configuration found", color="red")
            return []

        targets = self.load_targets()
        self.output.status("Syncing directories and S3 prefixes...")

        start_time = time.time()
        stats = self._run_all(
            targets, lambda target: self._sync_target(target, dry_run)
        )
        logger.debug(
            "Synced %d target(s) in %.2fs", len(targets), time.time() - start_time
        )

        self.output.print_dot()
        self.output.print("")
        self.output.status("Synced.")
        return stats

    def clear(self) -> list[dict]:
        """Delete every remote object of every configured target.

        Returns:
            Per-target statistics, in configuration order (empty when no
            configuration is present)

        Raises:
            S3SyncConfigError: If any target is invalid (nothing is deleted)
            S3SyncTransferError: If any delete fails
        """
        if not self.has_configuration:
            return []

        targets = self.load_targets()
        self.output.status("Removing S3 objects...")

        stats = self._run_all(targets, self._clear_target)

        self.output.print_dot()
        self.output.print("")
        self.output.status("Removed.")
        return stats
