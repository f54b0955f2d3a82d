"""
Glob resolution for GlobWatcher.

Expands one or more glob patterns into the ordered, de-duplicated list of
absolute file paths a watcher starts from. Patterns prefixed with ``!`` and
the ``ignore`` option exclude matches.
"""

import fnmatch
import glob
import logging
import os
from typing import Iterable, List, Tuple, Union

from globwatcher.errors import ResolutionError

logger = logging.getLogger(__name__)

NEGATION_PREFIX = "!"


def normalize_patterns(patterns: Union[str, Iterable[str]]) -> List[str]:
    """Return ``patterns`` as a list of non-empty strings."""
    if isinstance(patterns, str):
        patterns = [patterns]
    try:
        patterns = list(patterns)
    except TypeError as e:
        raise ResolutionError(f"Patterns must be a string or an iterable of strings, got {patterns!r}") from e

    if not patterns:
        raise ResolutionError("At least one glob pattern is required")
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern.strip():
            raise ResolutionError(f"Invalid glob pattern: {pattern!r}")
    return patterns


def split_patterns(patterns: List[str]) -> Tuple[List[str], List[str]]:
    """Separate positive patterns from ``!``-prefixed exclusions."""
    includes, excludes = [], []
    for pattern in patterns:
        if pattern.startswith(NEGATION_PREFIX):
            excludes.append(pattern[len(NEGATION_PREFIX):])
        else:
            includes.append(pattern)
    return includes, excludes


def is_excluded(path: str, cwd: str, excludes: List[str]) -> bool:
    """Check ``path`` against exclusion globs, relative to ``cwd`` and absolute."""
    relative = os.path.relpath(path, cwd)
    for pattern in excludes:
        pattern = os.path.normpath(pattern)
        if fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(path, pattern):
            return True
    return False


def resolve(patterns, options) -> List[str]:
    """
    Resolve glob patterns to absolute file paths.

    Relative patterns are anchored at ``options.cwd``. Each pattern's matches
    are taken in sorted order and patterns are processed in the order given;
    the first occurrence of a path wins.

    Args:
        patterns: A glob pattern or an iterable of patterns.
        options (WatcherOptions): Resolver options (cwd, ignore, only_files,
            symlinks).

    Returns:
        list: Normalized absolute paths, unique, in resolution order.

    Raises:
        ResolutionError: If the input is invalid or nothing matches.
    """
    patterns = normalize_patterns(patterns)
    includes, excludes = split_patterns(patterns)
    excludes.extend(options.ignore)
    if not includes:
        raise ResolutionError(f"No positive glob pattern in {patterns!r}")

    cwd = os.path.abspath(options.cwd or os.getcwd())
    resolved = {}

    for pattern in includes:
        full_pattern = pattern if os.path.isabs(pattern) else os.path.join(cwd, pattern)
        try:
            matches = glob.glob(full_pattern, recursive=True)
        except (OSError, ValueError) as e:
            raise ResolutionError(f"Failed to resolve pattern {pattern!r}: {e}") from e
        logger.debug(f"Glob pattern {pattern} matched {len(matches)} path(s)")

        for match in sorted(matches):
            path = os.path.normpath(os.path.abspath(match))
            if options.only_files and not os.path.isfile(path):
                continue
            if not options.symlinks and os.path.islink(path):
                continue
            if excludes and is_excluded(path, cwd, excludes):
                continue
            resolved.setdefault(path, None)

    if not resolved:
        raise ResolutionError(f"No files matched {', '.join(patterns)} (cwd: {cwd})")

    return list(resolved)


def derive_directories(files: Iterable[str]) -> List[str]:
    """Map files to their parent directories, unique, in first-seen order."""
    directories = {}
    for path in files:
        directories.setdefault(os.path.dirname(os.path.normpath(path)), None)
    return list(directories)
