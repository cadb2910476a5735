"""Glob matching of local file paths against parameter rules."""

import os
from pathlib import PurePath
from typing import Optional, Union

from ..utils import escape_glob, glob_match

PathLike = Union[str, PurePath]


def _as_posix(path: PathLike) -> str:
    if isinstance(path, PurePath):
        return path.as_posix()
    return path.replace(os.sep, "/") if os.sep != "/" else path


def matches(path: PathLike, pattern: str) -> bool:
    """Check if a path matches a glob pattern in full.

    ``*`` stays within a path segment, ``**`` spans segments, ``?`` matches
    one character and ``[...]`` a character class.

    Examples:
        >>> matches("a/b/c.txt", "a/**/*.txt")
        True
        >>> matches("a/b/c.txt", "x/**/*.txt")
        False
        >>> matches("a/b/c.txt", "*.txt")
        False
    """
    return glob_match(pattern, _as_posix(path))


class PathMatcher:
    """Matches paths against patterns anchored at a base directory.

    Patterns are written relative to the base directory (``*.html``,
    ``assets/**``) and are joined to its absolute path before matching, so
    they are compared against absolute file paths. The base directory is
    escaped, so glob characters in folder names are taken literally.

    Examples:
        >>> matcher = PathMatcher("/srv/site")
        >>> matcher.matches("/srv/site/index.html", "*.html")
        True
        >>> matcher.matches("/srv/site/blog/post.html", "*.html")
        False
    """

    def __init__(self, base_dir: Optional[PathLike] = None):
        """Initialize path matcher.

        Args:
            base_dir: Directory patterns are relative to (None matches
                patterns as given)
        """
        if base_dir is None:
            self.base_dir: Optional[str] = None
        else:
            # abspath is purely lexical, no filesystem access
            self.base_dir = _as_posix(os.path.abspath(base_dir)).rstrip("/")

    def anchor(self, pattern: str) -> str:
        """Join a relative pattern to the escaped base directory."""
        if self.base_dir is None:
            return pattern
        return f"{escape_glob(self.base_dir)}/{pattern}"

    def matches(self, path: PathLike, pattern: str) -> bool:
        return matches(path, self.anchor(pattern))

