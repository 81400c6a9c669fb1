"""Path normalization and nesting rules as pure functions.

Every path that reaches the vector store or the status tracker goes through
:func:`normalize_path` first, so that comparisons are done on one canonical
form: absolute, forward slashes, no ``.``/``..`` segments, no trailing
separator and, on case-insensitive filesystems, lower case.
"""

from __future__ import annotations

import fnmatch
import os
import posixpath
import re
import sys
from pathlib import PurePath

SEPARATOR = "/"

# Directories the tree walk never descends into.
IGNORED_DIRECTORY_NAMES: frozenset[str] = frozenset({"node_modules", "__pycache__"})

# Case-insensitive by default on Windows and macOS.
CASE_INSENSITIVE_PLATFORMS: frozenset[str] = frozenset({"win32", "cygwin", "darwin"})

_DRIVE = re.compile(r"^[A-Za-z]:/")


def _default_case_insensitive() -> bool:
    return os.name == "nt" or sys.platform in CASE_INSENSITIVE_PLATFORMS


def _is_absolute(text: str) -> bool:
    return text.startswith(SEPARATOR) or bool(_DRIVE.match(text))


def _clean(text: str, case_insensitive: bool) -> str:
    text = posixpath.normpath(text)
    # normpath keeps a leading "//" (POSIX allows it); collapse it.
    if text.startswith("//"):
        text = SEPARATOR + text.lstrip(SEPARATOR)
    if len(text) > 1:
        text = text.rstrip(SEPARATOR)
    if case_insensitive:
        text = text.lower()
    return text


def normalize_path(path: str | PurePath, *, case_insensitive: bool | None = None) -> str:
    """Return the canonical string form of *path*.

    Relative paths are anchored at the current working directory.

    >>> normalize_path("/ws\\\\a/./b/../c/")
    '/ws/a/c'
    """
    if case_insensitive is None:
        case_insensitive = _default_case_insensitive()

    text = str(path).replace("\\", SEPARATOR)
    if not text:
        return ""
    if not _is_absolute(text):
        text = os.getcwd().replace("\\", SEPARATOR) + SEPARATOR + text
    return _clean(text, case_insensitive)


def is_strictly_nested(candidate: str, directory: str) -> bool:
    """True iff *candidate* lies below *directory* (never the directory itself).

    Both arguments must already be normalized.
    """
    if directory == SEPARATOR:
        return candidate != SEPARATOR and candidate.startswith(SEPARATOR)
    return candidate.startswith(directory + SEPARATOR)


def parent_path(path: str) -> str | None:
    """Return the normalized parent of *path*, or ``None`` at the root."""
    if path in ("", SEPARATOR):
        return None
    parent = posixpath.dirname(path)
    if parent == path or not parent:
        return None
    return parent


def depth_below(path: str, root: str) -> int:
    """Number of segments *path* lies below *root* (0 for the root itself)."""
    if path == root:
        return 0
    if not is_strictly_nested(path, root):
        raise ValueError(f"'{path}' is not below '{root}'")
    relative = path[len(root):].lstrip(SEPARATOR)
    return relative.count(SEPARATOR) + 1


def is_ignored_directory(name: str) -> bool:
    """Hidden directories and well-known dependency folders are never walked."""
    return name.startswith(".") or name in IGNORED_DIRECTORY_NAMES


def matches_exclusion(relative_path: str, patterns: list[str] | tuple[str, ...]) -> bool:
    """True if *relative_path* matches any glob in *patterns*.

    A pattern is tried against the whole relative path and against every
    single segment, so ``"*.log"`` excludes ``logs/app.log`` and ``"build"``
    excludes ``build/out/main.o``.  A leading ``**/`` also matches at the
    top level.
    """
    if not patterns or not relative_path:
        return False
    segments = relative_path.split(SEPARATOR)
    for pattern in patterns:
        pattern = _clean(pattern.replace("\\", SEPARATOR), False).strip(SEPARATOR) or pattern
        candidates = [pattern]
        if pattern.startswith("**/"):
            candidates.append(pattern[3:])
        for candidate in candidates:
            if fnmatch.fnmatchcase(relative_path, candidate):
                return True
            # Any ancestor directory matching the pattern excludes its subtree.
            for index in range(1, len(segments)):
                if fnmatch.fnmatchcase(SEPARATOR.join(segments[:index]), candidate):
                    return True
            if SEPARATOR not in candidate and any(
                fnmatch.fnmatchcase(segment, candidate) for segment in segments
            ):
                return True
    return False
