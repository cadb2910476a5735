"""Sync target configuration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from ..api import ALLOWED_UPLOAD_PARAMS
from ..exceptions import S3SyncConfigError

logger = logging.getLogger(__name__)

ONLY_FOR_ENV_KEY = "OnlyForEnv"
"""Reserved rule parameter that gates a file to one environment."""

DEFAULT_ACL = "private"

_KNOWN_KEYS = {
    "bucketName",
    "localDir",
    "bucketPrefix",
    "acl",
    "followSymlinks",
    "deleteRemoved",
    "defaultContentType",
    "params",
}


@dataclass(frozen=True)
class ParamRule:
    """A glob pattern mapped to the upload parameters it contributes."""

    glob: str
    """Glob pattern, relative to the target's local directory"""

    params: dict[str, Any] = field(default_factory=dict)
    """Upload parameters, without the OnlyForEnv directive"""

    only_for_env: Optional[str] = None
    """If set, matching files are only uploaded in this environment"""

    @classmethod
    def from_dict(cls, data: Any) -> "ParamRule":
        """Create a rule from a single-key ``{glob: {param: value}}`` mapping.

        Args:
            data: Raw params entry

        Returns:
            ParamRule instance

        Raises:
            S3SyncConfigError: If the entry is not a single-key mapping, the
                parameters are not a mapping, or a parameter name is not
                accepted by the upload call

        Examples:
            >>> rule = ParamRule.from_dict({"*.html": {"CacheControl": "no-cache"}})
            >>> rule.glob, rule.params
            ('*.html', {'CacheControl': 'no-cache'})
        """
        if not isinstance(data, dict) or len(data) != 1:
            raise S3SyncConfigError(
                "Invalid custom.s3Sync: each params entry must map exactly one "
                f"glob to its parameters, got {data!r}"
            )

        glob, params = next(iter(data.items()))
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise S3SyncConfigError(
                f"Invalid custom.s3Sync: parameters for {glob!r} must be a mapping"
            )

        params = dict(params)
        only_for_env = params.pop(ONLY_FOR_ENV_KEY, None) or None

        unknown = sorted(set(params) - ALLOWED_UPLOAD_PARAMS)
        if unknown:
            raise S3SyncConfigError(
                f"Invalid custom.s3Sync: unsupported parameter(s) for {glob!r}: "
                f"{', '.join(unknown)}"
            )

        return cls(
            glob=str(glob),
            params=params,
            only_for_env=str(only_for_env) if only_for_env is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        params = dict(self.params)
        if self.only_for_env is not None:
            params[ONLY_FOR_ENV_KEY] = self.only_for_env
        return {self.glob: params}


@dataclass(frozen=True)
class SyncTarget:
    """One local directory synchronized to one bucket prefix.

    Examples:
        >>> target = SyncTarget(bucket_name="site", local_dir="build")
        >>> target.key_for("css/main.css")
        'css/main.css'
        >>> SyncTarget("site", "build", bucket_prefix="v2").key_for("index.html")
        'v2/index.html'
    """

    bucket_name: str
    local_dir: Union[Path, str]
    bucket_prefix: str = ""
    acl: str = DEFAULT_ACL
    follow_symlinks: bool = False
    delete_removed: bool = True
    default_content_type: Optional[str] = None
    rules: tuple[ParamRule, ...] = ()

    def __post_init__(self) -> None:
        if not self.bucket_name:
            raise S3SyncConfigError("Invalid custom.s3Sync: bucketName is required")
        if not self.local_dir or not str(self.local_dir):
            raise S3SyncConfigError("Invalid custom.s3Sync: localDir is required")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "local_dir", Path(self.local_dir))
        object.__setattr__(self, "bucket_prefix", self.bucket_prefix or "")
        object.__setattr__(self, "rules", tuple(self.rules))

    @property
    def key_prefix(self) -> str:
        """Bucket prefix with a trailing slash ("" when unset)."""
        prefix = self.bucket_prefix
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        return prefix

    def key_for(self, relative_path: str) -> str:
        """Map a relative local path to its object key."""
        return f"{self.key_prefix}{relative_path}"

    @property
    def display_name(self) -> str:
        return f"{self.local_dir} -> s3://{self.bucket_name}/{self.key_prefix}"

    @classmethod
    def from_dict(
        cls, data: Any, service_path: Optional[Path] = None
    ) -> "SyncTarget":
        """Create a sync target from a configuration entry.

        Args:
            data: Mapping with ``bucketName``, ``localDir`` and optional
                ``bucketPrefix``, ``acl``, ``followSymlinks``,
                ``deleteRemoved``, ``defaultContentType`` and ``params``
            service_path: Directory ``localDir`` is relative to

        Returns:
            SyncTarget instance

        Raises:
            S3SyncConfigError: If required fields are missing or a field has
                the wrong type
        """
        if not isinstance(data, dict):
            raise S3SyncConfigError(
                f"Invalid custom.s3Sync: target must be a mapping, got {data!r}"
            )

        missing = [k for k in ("bucketName", "localDir") if not data.get(k)]
        if missing:
            raise S3SyncConfigError(
                "Invalid custom.s3Sync: missing required field(s): "
                f"{', '.join(missing)}"
            )

        unknown = sorted(set(data) - _KNOWN_KEYS)
        if unknown:
            logger.debug("Ignoring unknown target key(s): %s", ", ".join(unknown))

        for flag in ("followSymlinks", "deleteRemoved"):
            if flag in data and not isinstance(data[flag], bool):
                raise S3SyncConfigError(
                    f"Invalid custom.s3Sync: {flag} must be true or false"
                )

        for name in ("bucketName", "bucketPrefix", "acl", "defaultContentType"):
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise S3SyncConfigError(
                    f"Invalid custom.s3Sync: {name} must be a string"
                )

        raw_params = data.get("params")
        if raw_params is None:
            rules: tuple[ParamRule, ...] = ()
        elif isinstance(raw_params, list):
            rules = tuple(ParamRule.from_dict(entry) for entry in raw_params)
        else:
            raise S3SyncConfigError("Invalid custom.s3Sync: params must be a list")

        local_dir = Path(str(data["localDir"]))
        if service_path is not None:
            local_dir = Path(service_path) / local_dir

        return cls(
            bucket_name=data["bucketName"],
            local_dir=local_dir,
            bucket_prefix=data.get("bucketPrefix") or "",
            acl=data.get("acl") or DEFAULT_ACL,
            follow_symlinks=data.get("followSymlinks", False),
            delete_removed=data.get("deleteRemoved", True),
            default_content_type=data.get("defaultContentType"),
            rules=rules,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the configuration-entry shape."""
        result: dict[str, Any] = {
            "bucketName": self.bucket_name,
            "localDir": str(self.local_dir),
            "bucketPrefix": self.bucket_prefix,
            "acl": self.acl,
            "followSymlinks": self.follow_symlinks,
            "deleteRemoved": self.delete_removed,
        }
        if self.default_content_type is not None:
            result["defaultContentType"] = self.default_content_type
        if self.rules:
            result["params"] = [rule.to_dict() for rule in self.rules]
        return result
