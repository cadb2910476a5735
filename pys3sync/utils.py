"""Utility functions for S3 directory sync."""

import hashlib
import re
from functools import lru_cache
from pathlib import Path

# =============================================================================
# Constants for transfer operations
# =============================================================================

# Simultaneous transfers per target
DEFAULT_MAX_ASYNC: int = 5

# Files at or above this size are uploaded in parts (8 MB, the boto3 default)
DEFAULT_MULTIPART_THRESHOLD: int = 8 * 1024 * 1024

# Part size for multipart uploads (8 MB, the boto3 default)
DEFAULT_MULTIPART_CHUNKSIZE: int = 8 * 1024 * 1024

# DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE: int = 1000

# Read buffer for local checksums (1 MB)
HASH_READ_CHUNK_SIZE: int = 1024 * 1024


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


# =============================================================================
# Glob pattern utilities
# =============================================================================

_GLOB_SPECIAL_CHARS = "*?[]{}\\"


def escape_glob(value: str) -> str:
    """Escape glob special characters so ``value`` only matches itself.

    Used for the directory part of an anchored pattern, where a folder
    named ``build[1]`` must not be read as a character class.
    """
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL_CHARS else ch for ch in value)


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives in a glob pattern.

    Nested braces are expanded recursively. Unbalanced braces and braces
    without a comma are kept literally.

    Examples:
        >>> expand_braces("*.{js,css}")
        ['*.js', '*.css']
        >>> expand_braces("{a,b}/{c,d}")
        ['a/c', 'a/d', 'b/c', 'b/d']
    """
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth = 0
            part_start = i + 1
            alternatives: list[str] = []
            j = i
            while j < len(pattern):
                c = pattern[j]
                if c == "\\":
                    j += 2
                    continue
                if c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                    if depth == 0:
                        alternatives.append(pattern[part_start:j])
                        break
                elif c == "," and depth == 1:
                    alternatives.append(pattern[part_start:j])
                    part_start = j + 1
                j += 1
            else:
                # No closing brace, nothing left to expand
                return [pattern]

            if len(alternatives) < 2:
                i += 1
                continue

            head, tail = pattern[:i], pattern[j + 1 :]
            expanded: list[str] = []
            for alternative in alternatives:
                expanded.extend(expand_braces(head + alternative + tail))
            return expanded
        i += 1
    return [pattern]


def _translate_segment(segment: str) -> str:
    """Translate a single path segment (no slashes) to a regex."""
    out: list[str] = []
    i, n = 0, len(segment)
    while i < n:
        ch = segment[i]
        if ch == "*":
            while i + 1 < n and segment[i + 1] == "*":
                i += 1
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            j = i + 1
            if j < n and segment[j] in "!^":
                j += 1
            if j < n and segment[j] == "]":
                j += 1
            while j < n and segment[j] != "]":
                j += 1
            if j >= n:
                # Unterminated class is a literal bracket
                out.append(re.escape(ch))
            else:
                body = segment[i + 1 : j]
                negate = body[:1] in ("!", "^")
                if negate:
                    body = body[1:]
                body = (
                    body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
                )
                out.append(f"[^/{body}]" if negate else f"[{body}]")
                i = j
        elif ch == "\\" and i + 1 < n:
            i += 1
            out.append(re.escape(segment[i]))
        else:
            out.append(re.escape(ch))
        i += 1

    regex = "".join(out)
    # Wildcards never match the leading dot of a segment
    if segment[:1] in ("*", "?", "["):
        regex = r"(?!\.)" + regex
    return regex


def _translate_path(pattern: str) -> str:
    segments = pattern.split("/")
    last = len(segments) - 1
    parts: list[str] = []
    for index, segment in enumerate(segments):
        if segment == "**":
            if index == last:
                parts.append(r"(?!\.)[^/]+(?:/(?!\.)[^/]+)*")
            else:
                # Zero or more whole segments, each with its trailing slash
                parts.append(r"(?:(?!\.)[^/]+/)*")
            continue
        parts.append(_translate_segment(segment))
        if index != last:
            parts.append("/")
    return "".join(parts)


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a glob pattern to a regular expression.

    Supports ``*`` (within a segment), ``**`` (across segments), ``?``,
    bracket classes (``[abc]``, ``[!abc]``, ``[a-z]``), brace alternatives
    and backslash escapes. The compiled pattern is anchored at the end, so
    ``regex.match(path)`` only succeeds on a full match.

    Args:
        pattern: Glob pattern

    Returns:
        Compiled regular expression
    """
    alternatives = [_translate_path(p) for p in expand_braces(pattern)]
    return re.compile(r"(?s:" + "|".join(alternatives) + r")\Z")


def glob_match(pattern: str, name: str) -> bool:
    """Check if ``name`` matches the glob ``pattern`` in full.

    Examples:
        >>> glob_match("a/**/*.txt", "a/b/c.txt")
        True
        >>> glob_match("x/**/*.txt", "a/b/c.txt")
        False
    """
    return glob_to_regex(pattern).match(name) is not None


# =============================================================================
# Checksum utilities
# =============================================================================


def calculate_md5(file_path: Path, chunk_size: int = HASH_READ_CHUNK_SIZE) -> str:
    """Calculate the hex MD5 digest of a local file."""
    md5 = hashlib.md5()
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            md5.update(chunk)
    return md5.hexdigest()


def calculate_etag(
    file_path: Path,
    size: int,
    multipart_threshold: int = DEFAULT_MULTIPART_THRESHOLD,
    multipart_chunksize: int = DEFAULT_MULTIPART_CHUNKSIZE,
) -> str:
    """Calculate the ETag S3 will report for a file uploaded by this package.

    Single-part uploads get the plain MD5 of the content. Multipart uploads
    get the MD5 of the concatenated part digests followed by ``-<parts>``.

    Args:
        file_path: Local file
        size: File size in bytes
        multipart_threshold: Size at which the uploader switches to multipart
        multipart_chunksize: Part size used by the uploader

    Returns:
        Lower-case ETag without quotes

    Examples:
        >>> calculate_etag(Path("empty.txt"), 0)  # doctest: +SKIP
        'd41d8cd98f00b204e9800998ecf8427e'
    """
    if size < multipart_threshold:
        return calculate_md5(file_path)

    digests: list[bytes] = []
    with open(file_path, "rb") as f:
        while True:
            chunk = f.read(multipart_chunksize)
            if not chunk:
                break
            digests.append(hashlib.md5(chunk).digest())
    combined = hashlib.md5(b"".join(digests)).hexdigest()
    return f"{combined}-{len(digests)}"


def normalize_etag(etag: str) -> str:
    """Normalize an ETag from a listing response.

    Examples:
        >>> normalize_etag('"9E107D9D372BB6826BD81D3542A419D6"')
        '9e107d9d372bb6826bd81d3542a419d6'
    """
    if not etag:
        return ""
    value = etag.strip()
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"').strip("'").lower()
