"""
File utilities for ghostwriter
"""
import os
import logging
from pathlib import Path
from typing import Iterator, Tuple, Union

from ..errors import TraversalError

logger = logging.getLogger(__name__)


def relative_path(root: Union[str, Path], path: Union[str, Path]) -> str:
    """
    Express path relative to root

    Args:
        root: Absolute session root
        path: Absolute or root-relative path

    Returns:
        Normalized relative path, "." for the root itself
    """
    path_str = os.fspath(path)
    if not os.path.isabs(path_str):
        return os.path.normpath(path_str)
    return os.path.normpath(os.path.relpath(path_str, os.fspath(root)))


def absolute_path(root: Union[str, Path], rel_path: str) -> str:
    """Join a root-relative path back onto root"""
    if rel_path == ".":
        return os.fspath(root)
    return os.path.join(os.fspath(root), rel_path)


def is_within(rel_path: str) -> bool:
    """Check that a relative path does not escape its root"""
    return rel_path != ".." and not rel_path.startswith(".." + os.sep)


def walk_tree(root: Union[str, Path], start: str = ".") -> Iterator[Tuple[str, bool]]:
    """
    Walk a directory tree top-down

    Each directory is yielded before its files, which come sorted by name
    before any subdirectory is entered. Symbolic links are reported as plain
    entries and never followed.

    Args:
        root: Absolute session root
        start: Root-relative directory to start from

    Yields:
        (relative path, is_directory) tuples

    Raises:
        TraversalError: On the first directory that cannot be read
    """
    def onerror(error: OSError):
        failed = relative_path(root, error.filename) if error.filename else start
        raise TraversalError(failed, error) from error

    top = absolute_path(root, start)
    for dirpath, dirnames, filenames in os.walk(top, onerror=onerror):
        rel_dir = relative_path(root, dirpath)
        yield rel_dir, True

        links = [name for name in dirnames if os.path.islink(os.path.join(dirpath, name))]
        dirnames[:] = sorted(name for name in dirnames if name not in links)

        for name in sorted(filenames + links):
            yield (name if rel_dir == "." else os.path.join(rel_dir, name)), False
