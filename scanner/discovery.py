"""File discovery utilities for scanning source trees."""

from pathlib import Path
from typing import Callable, Iterator, Optional, Set


# Version-control metadata directories, pruned even when not dot-prefixed
VCS_DIRS = {
    "CVS", "RCS", "SCCS",
    ".git", ".svn", ".hg", ".bzr", "_darcs",
}
DEFAULT_EXCLUDE_DIRS = set(VCS_DIRS)


def iter_files(
    root: Path,
    include_ext: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
    max_depth: Optional[int] = None,
) -> Iterator[Path]:
    """
    Iterate over files in a directory tree.

    Directories whose name starts with ``.`` are always pruned, as are
    hidden files.

    Args:
        root: Root directory to scan.
        include_ext: Set of file extensions to include (e.g., {'.pl', '.pm'}).
                    If None, every file is included.
        exclude_dirs: Set of directory names to skip. Entries of the form
                     ``*.suffix`` match by suffix. If None, uses
                     DEFAULT_EXCLUDE_DIRS.
        max_depth: Maximum depth to descend. None means unlimited.

    Yields:
        Absolute Path objects for matching files, in sorted order.

    Raises:
        OSError: A directory cannot be listed.
    """
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    root = root.resolve()
    patterns = [pat.lstrip("*") for pat in exclude_dirs if pat.startswith("*")]

    def _walk(current: Path, depth: int) -> Iterator[Path]:
        if max_depth is not None and depth > max_depth:
            return

        for entry in sorted(current.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                if entry.name in exclude_dirs or entry.name in VCS_DIRS:
                    continue
                if any(entry.name.endswith(pat) for pat in patterns):
                    continue
                yield from _walk(entry, depth + 1)
            elif entry.is_file():
                if include_ext is None or entry.suffix.lower() in include_ext:
                    yield entry

    yield from _walk(root, 0)


def walk_files(
    root: Path,
    callback: Callable[[Path], None],
    include_ext: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
    max_depth: Optional[int] = None,
) -> int:
    """
    Call ``callback`` for every file ``iter_files`` yields.

    Returns:
        Number of files visited.
    """
    count = 0
    for path in iter_files(root, include_ext, exclude_dirs, max_depth):
        callback(path)
        count += 1
    return count


def get_relative_path(file_path: Path, root: Path) -> Path:
    """Get the path relative to root, handling edge cases."""
    try:
        return file_path.resolve().relative_to(root.resolve())
    except ValueError:
        return file_path
