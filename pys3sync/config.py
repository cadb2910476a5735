"""Runtime settings and configuration document loading."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import S3SyncConfigError
from .utils import DEFAULT_MAX_ASYNC

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_KEY = "custom.s3Sync"


class Settings:
    """Settings read from environment variables.

    Values passed explicitly to the engine or on the command line always
    take precedence over these.
    """

    @property
    def env(self) -> Optional[str]:
        """Active environment name used for ``OnlyForEnv`` gating."""
        return os.environ.get("PYS3SYNC_ENV") or None

    @property
    def max_async(self) -> int:
        """Simultaneous transfers per target."""
        value = os.environ.get("PYS3SYNC_MAX_ASYNC")
        if not value:
            return DEFAULT_MAX_ASYNC
        try:
            max_async = int(value)
        except ValueError as e:
            raise S3SyncConfigError(
                f"PYS3SYNC_MAX_ASYNC must be an integer, got {value!r}"
            ) from e
        if max_async < 1:
            raise S3SyncConfigError("PYS3SYNC_MAX_ASYNC must be at least 1")
        return max_async

    @property
    def region(self) -> Optional[str]:
        return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")

    @property
    def profile(self) -> Optional[str]:
        return os.environ.get("AWS_PROFILE") or None

    @property
    def endpoint_url(self) -> Optional[str]:
        """Endpoint for S3-compatible stores (MinIO, R2, ...)."""
        return os.environ.get("AWS_ENDPOINT_URL") or None


config = Settings()


def _read_document(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yml", ".yaml"):
                return yaml.safe_load(f)
            return json.load(f)
    except OSError as e:
        raise S3SyncConfigError(f"Cannot read configuration file {path}: {e}") from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise S3SyncConfigError(f"Invalid configuration file {path}: {e}") from e


def load_sync_targets(
    path: Path, key: str = DEFAULT_CONFIG_KEY
) -> Optional[list[Any]]:
    """Load the raw sync target list from a YAML or JSON document.

    The list is looked up under ``key``, a dotted path into the document
    (``custom.s3Sync`` for a serverless.yml style file).

    Args:
        path: Configuration file (``.yml``/``.yaml`` read as YAML, anything
            else as JSON)
        key: Dotted key of the target list

    Returns:
        The raw list of target mappings, or None when the key is missing or
        does not hold a list

    Raises:
        S3SyncConfigError: If the file cannot be read or parsed

    Examples:
        >>> targets = load_sync_targets(Path("serverless.yml"))  # doctest: +SKIP
        >>> targets[0]["bucketName"]  # doctest: +SKIP
        'my-static-site'
    """
    data = _read_document(path)

    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            logger.debug("Key %s not found in %s", key, path)
            return None
        node = node[part]

    if not isinstance(node, list):
        logger.debug("Key %s in %s is not a list", key, path)
        return None
    return node
