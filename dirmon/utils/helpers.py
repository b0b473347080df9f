"""
Helper utilities for Dirmon.

Common functions used across the capture pipeline.
"""

import unicodedata
from fnmatch import fnmatch
from pathlib import Path

# Control characters that still read as plain text
ALLOWED_CONTROL_CHARS = frozenset("\r\n\t")

MATCH_ALL_PATTERNS = frozenset({"*", "*.*"})


def is_binary_like(contents: str) -> bool:
    """
    Check whether text looks like binary data.

    Args:
        contents: Decoded file contents

    Returns:
        True if any control character other than CR, LF or TAB is present
    """
    return any(
        ch not in ALLOWED_CONTROL_CHARS and unicodedata.category(ch) == "Cc"
        for ch in contents
    )


def matches_pattern(path: Path, pattern: str) -> bool:
    """
    Check a file name against a watch pattern.

    ``*.*`` matches every name, extension or not.
    """
    if pattern in MATCH_ALL_PATTERNS:
        return True
    return fnmatch(path.name, pattern)


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except (FileNotFoundError, RuntimeError):
        return path.expanduser().absolute()


def shadow_file_name(sequence: int, file_name: str) -> str:
    """Name of the shadow copy for one snapshot."""
    return f"{sequence}_{file_name}"
