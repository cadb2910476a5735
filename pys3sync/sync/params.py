"""Per-file upload parameter resolution."""

import enum
from collections.abc import Sequence
from typing import Any, Optional, Union

from .matcher import PathLike, PathMatcher
from .target import ONLY_FOR_ENV_KEY, ParamRule


class _Skip(enum.Enum):
    SKIP = "skip"

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip.SKIP
"""Returned instead of parameters when a file must not be uploaded."""

ResolvedParams = Union[dict[str, Any], _Skip]


def resolve_params(
    path: PathLike,
    rules: Sequence[ParamRule],
    active_env: Optional[str],
    matcher: Optional[PathMatcher] = None,
) -> ResolvedParams:
    """Merge the parameters of every rule matching ``path``.

    Rules are applied in order and later rules win on key collisions
    (shallow merge). The last matching rule that names an environment
    decides the gate: if it differs from ``active_env`` the file is
    skipped, regardless of the other parameters.

    Args:
        path: File path, absolute when ``matcher`` is anchored
        rules: Ordered parameter rules
        active_env: Current environment name
        matcher: Matcher anchoring the rule globs (unanchored if None)

    Returns:
        Merged parameters (without ``OnlyForEnv``), or SKIP

    Examples:
        >>> rules = [
        ...     ParamRule("*.html", {"ContentType": "text/html"}),
        ...     ParamRule("*.html", {"ContentType": "text/html; charset=utf-8"}),
        ... ]
        >>> resolve_params("index.html", rules, None)
        {'ContentType': 'text/html; charset=utf-8'}
        >>> resolve_params("index.html", [ParamRule("*", only_for_env="prod")], "dev")
        SKIP
    """
    matcher = matcher or PathMatcher()
    merged: dict[str, Any] = {}
    only_for_env: Optional[str] = None

    for rule in rules:
        if not matcher.matches(path, rule.glob):
            continue
        merged.update(rule.params)
        if rule.only_for_env:
            only_for_env = rule.only_for_env

    if only_for_env and only_for_env != active_env:
        return SKIP

    merged.pop(ONLY_FOR_ENV_KEY, None)
    return merged


class ParamResolver:
    """Resolves upload parameters for the files of one target."""

    def __init__(
        self,
        rules: Sequence[ParamRule],
        base_dir: PathLike,
        active_env: Optional[str] = None,
    ):
        """Initialize resolver.

        Args:
            rules: Ordered parameter rules of the target
            base_dir: Local directory the rule globs are relative to
            active_env: Current environment name for OnlyForEnv gating
        """
        self.rules = tuple(rules)
        self.active_env = active_env
        self.matcher = PathMatcher(base_dir)

    def resolve(self, path: PathLike) -> ResolvedParams:
        """Resolve parameters for an absolute local file path."""
        if not self.rules:
            return {}
        return resolve_params(path, self.rules, self.active_env, self.matcher)
