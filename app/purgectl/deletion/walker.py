"""Post-order tree walker for deletion candidates.

Walks a scoped root depth-first and yields every entry beneath it, files
before their parent directory and each directory only after all of its
children. Symbolic links are never followed: a link is yielded as a
file entry and its target is never listed or statted.

Directories are opened relative to their parent's descriptor with
O_NOFOLLOW, so a directory swapped for a symlink after it was listed
fails to open instead of being descended into.
"""

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

from purgectl.deletion.errors import TraversalError
from purgectl.deletion.models import CandidateEntry, EntryType

logger = logging.getLogger(__name__)

TraversalErrorHandler = Callable[[TraversalError], None]

DIR_OPEN_FLAGS = os.O_RDONLY | os.O_DIRECTORY | os.O_NOFOLLOW


class TreeWalker:
    """Lazily yields CandidateEntry values for a directory tree in post-order.

    A directory that cannot be listed is reported to ``on_error`` and its
    subtree is skipped; traversal continues with its siblings. Each call
    to walk() starts a fresh traversal and keeps one descriptor open per
    directory on the current path.

    Args:
        on_error: Called with a TraversalError for every skipped subtree.
            Defaults to logging the error.
    """

    def __init__(self, on_error: TraversalErrorHandler | None = None) -> None:
        self._on_error = on_error or _log_traversal_error

    def walk(self, root: Path) -> Iterator[CandidateEntry]:
        """Walk the tree below root in post-order.

        The root itself is not yielded.

        Args:
            root: Directory to walk.

        Yields:
            CandidateEntry for every file, symlink, and directory beneath root.
        """
        root = Path(root)
        root_fd = self._open_dir(root)
        if root_fd is None:
            return
        children = self._list_dir(root, root_fd)
        if children is None:
            os.close(root_fd)
            return

        # Iterative so deep trees cannot hit the recursion limit
        stack: list[tuple[Path, int, Iterator[os.DirEntry[str]]]] = [
            (root, root_fd, iter(children))
        ]
        try:
            while stack:
                directory, dir_fd, pending = stack[-1]
                entry = next(pending, None)

                if entry is None:
                    stack.pop()
                    os.close(dir_fd)
                    if stack:
                        yield CandidateEntry(
                            path=directory, entry_type=EntryType.DIRECTORY, root=root
                        )
                    continue

                path = directory / entry.name
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError as e:
                    self._on_error(TraversalError.from_os_error(path, e))
                    continue

                if not is_dir:
                    yield self._file_entry(entry, path, root)
                    continue

                child_fd = self._open_dir(path, dir_fd)
                if child_fd is None:
                    continue
                grandchildren = self._list_dir(path, child_fd)
                if grandchildren is None:
                    os.close(child_fd)
                    continue
                stack.append((path, child_fd, iter(grandchildren)))
        finally:
            for _, dir_fd, _ in stack:
                os.close(dir_fd)

    def partition(self, root: Path) -> tuple[list[Path], list[CandidateEntry]]:
        """Split a root into independent subtrees and top-level files.

        Used to hand disjoint subtrees to parallel workers.

        Args:
            root: Directory to split.

        Returns:
            Tuple of (top-level real sub-directories, top-level non-directory
            entries). Both are empty if the root cannot be listed.
        """
        root = Path(root)
        root_fd = self._open_dir(root)
        if root_fd is None:
            return [], []

        subtrees: list[Path] = []
        files: list[CandidateEntry] = []
        try:
            children = self._list_dir(root, root_fd)
            for entry in children or []:
                path = root / entry.name
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError as e:
                    self._on_error(TraversalError.from_os_error(path, e))
                    continue
                if is_dir:
                    subtrees.append(path)
                else:
                    files.append(self._file_entry(entry, path, root))
        finally:
            os.close(root_fd)
        return subtrees, files

    def walk_subtree(self, top: Path) -> Iterator[CandidateEntry]:
        """Walk a subtree in post-order, yielding its top directory last.

        The top directory is not yielded if it could not be listed.

        Args:
            top: Directory heading the subtree.

        Yields:
            CandidateEntry for every entry beneath top, then top itself.
        """
        top = Path(top)
        listed = True

        def handler(error: TraversalError) -> None:
            nonlocal listed
            if error.path == str(top):
                listed = False
            self._on_error(error)

        walker = TreeWalker(on_error=handler)
        yield from walker.walk(top)
        if listed:
            yield CandidateEntry(path=top, entry_type=EntryType.DIRECTORY, root=top.parent)

    def _open_dir(self, path: Path, parent_fd: int | None = None) -> int | None:
        """Open a directory without following a trailing symlink, reporting failures."""
        try:
            if parent_fd is None:
                return os.open(path, DIR_OPEN_FLAGS)
            return os.open(path.name, DIR_OPEN_FLAGS, dir_fd=parent_fd)
        except OSError as e:
            self._on_error(TraversalError.from_os_error(path, e))
            return None

    def _list_dir(self, path: Path, dir_fd: int) -> list[os.DirEntry[str]] | None:
        """List an open directory sorted by name, reporting failures."""
        try:
            with os.scandir(dir_fd) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            self._on_error(TraversalError.from_os_error(path, e))
            return None

    @staticmethod
    def _file_entry(entry: os.DirEntry[str], path: Path, root: Path) -> CandidateEntry:
        """Build a file CandidateEntry, sizing it best-effort without following links."""
        try:
            is_symlink = entry.is_symlink()
        except OSError:
            is_symlink = False
        try:
            size = entry.stat(follow_symlinks=False).st_size
        except OSError:
            size = 0
        return CandidateEntry(
            path=path,
            entry_type=EntryType.FILE,
            root=root,
            size_bytes=size,
            is_symlink=is_symlink,
        )


def _log_traversal_error(error: TraversalError) -> None:
    logger.warning("Skipping unreadable subtree %s: %s", error.path, error.message)
