"""Tree walker — deterministic depth-first enumeration of pack roots.

Siblings are visited in name order, so for a fixed tree and rule set the
archive always lists the same entries in the same order.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from appforge.core.exclude import ExclusionPolicy
from appforge.errors import TraversalError
from appforge.model import Visit

if TYPE_CHECKING:
    from appforge.archive.base import ArchiveWriter

_logger = logging.getLogger(__name__)

# A dangling link and a link that loops back on itself are both "no target".
_NO_TARGET_ERRNOS = frozenset({errno.ENOENT, errno.ELOOP})

EntryCallback = Callable[[str], None]


def logical_name(path: Path, root: Path) -> str:
    """Root-relative, ``/``-separated name of *path*; the root itself is ``""``."""
    rel = path.relative_to(root).as_posix()
    return "" if rel == "." else rel


def _identity(info: os.stat_result) -> tuple[int, int]:
    return (info.st_dev, info.st_ino)


def _list_dir(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise TraversalError(f"cannot list directory {directory}: {exc}", path=directory) from exc


def _lstat(entry: os.DirEntry[str]) -> os.stat_result:
    try:
        return entry.stat(follow_symlinks=False)
    except OSError as exc:
        raise TraversalError(f"cannot stat {entry.path}: {exc}", path=entry.path) from exc


def _stat_through(path: Path) -> os.stat_result | None:
    """Stat the target of a symlink; ``None`` when there is no target."""
    try:
        return path.stat()
    except OSError as exc:
        if exc.errno in _NO_TARGET_ERRNOS:
            return None
        raise TraversalError(f"cannot stat symlink target {path}: {exc}", path=path) from exc


def directory_is_empty(
    directory: Path,
    *,
    root: Path,
    policy: ExclusionPolicy,
    follow_symlinks: bool = False,
    skip_symlinks: bool = False,
    ignore: Path | None = None,
) -> bool:
    """True if nothing under *directory* would be archived.

    Excluded names, symlinks that would not be recorded, dangling followed
    links and recursively-empty subdirectories do not count.  Followed links
    to directories are counted as content without descending into them.
    Recomputed on every call.
    """
    for entry in _list_dir(directory):
        child = Path(entry.path)
        if ignore is not None and child == ignore:
            continue
        if policy.excludes(logical_name(child, root)):
            continue
        info = _lstat(entry)
        if stat.S_ISLNK(info.st_mode):
            if skip_symlinks:
                continue
            if not follow_symlinks:
                return False
            target = _stat_through(child)
            if target is None:
                continue
            if stat.S_ISDIR(target.st_mode) or stat.S_ISREG(target.st_mode):
                return False
            continue
        if stat.S_ISDIR(info.st_mode):
            if not directory_is_empty(
                child,
                root=root,
                policy=policy,
                follow_symlinks=follow_symlinks,
                skip_symlinks=skip_symlinks,
                ignore=ignore,
            ):
                return False
            continue
        if stat.S_ISREG(info.st_mode):
            return False
    return True


class TreeWalker:
    """Visit every node under a root and feed survivors to an archive writer.

    Parameters
    ----------
    policy:
        Exclusion rules evaluated on each node's logical name.
    writer:
        Back end receiving ``compress(name, path, info)`` calls.
    follow_symlinks:
        Stat through links: a link to a directory is walked as that directory,
        a link to a file is archived as a regular file.
    skip_symlinks:
        Never emit or descend into links.  Wins over *follow_symlinks*.
    output_path:
        The archive being written; never archived into itself.
    on_entry:
        Called with each logical name actually written.
    """

    def __init__(
        self,
        policy: ExclusionPolicy,
        writer: ArchiveWriter,
        *,
        follow_symlinks: bool = False,
        skip_symlinks: bool = False,
        output_path: Path | None = None,
        on_entry: EntryCallback | None = None,
    ) -> None:
        self.policy = policy
        self.writer = writer
        self.follow_symlinks = follow_symlinks
        self.skip_symlinks = skip_symlinks
        self.output_path = output_path
        self.on_entry = on_entry
        self.entries: list[str] = []
        self._root: Path | None = None
        self._output_identity: tuple[int, int] | None = None
        if output_path is not None:
            try:
                self._output_identity = _identity(output_path.stat())
            except FileNotFoundError:
                self._output_identity = None

    # ── public API ──────────────────────────────────────────────────

    def walk_root(self, root: Path) -> None:
        """Walk one root; raises ``TraversalError`` on the first I/O failure."""
        try:
            info = root.stat()
        except OSError as exc:
            raise TraversalError(f"cannot stat root {root}: {exc}", path=root) from exc
        if not stat.S_ISDIR(info.st_mode):
            raise TraversalError(f"root is not a directory: {root}", path=root)
        self._root = root
        _logger.debug("Walking root %s", root)
        self._walk_directory(root, root, info, ancestors=frozenset())

    def is_empty(self, directory: Path, *, root: Path | None = None) -> bool:
        """Emptiness of *directory* under this walker's rules and symlink flags."""
        base = root if root is not None else (self._root or directory)
        return directory_is_empty(
            directory,
            root=base,
            policy=self.policy,
            follow_symlinks=self.follow_symlinks,
            skip_symlinks=self.skip_symlinks,
            ignore=self.output_path,
        )

    # ── recursion ───────────────────────────────────────────────────

    def _is_output(self, path: Path, info: os.stat_result) -> bool:
        if self.output_path is not None and path == self.output_path:
            return True
        return self._output_identity is not None and _identity(info) == self._output_identity

    def _visit(
        self,
        root: Path,
        path: Path,
        info: os.stat_result,
        ancestors: frozenset[tuple[int, int]],
    ) -> Visit:
        if stat.S_ISLNK(info.st_mode):
            if self.skip_symlinks:
                return Visit.CONTINUE
            if self.follow_symlinks:
                target = _stat_through(path)
                if target is None:
                    _logger.debug("Ignoring symlink without target: %s", path)
                    return Visit.CONTINUE
                info = target

        if self._is_output(path, info):
            return Visit.CONTINUE

        name = logical_name(path, root)
        if name and self.policy.excludes(name):
            return Visit.SKIP_SUBTREE if stat.S_ISDIR(info.st_mode) else Visit.CONTINUE

        if stat.S_ISDIR(info.st_mode):
            return self._walk_directory(root, path, info, ancestors)
        if stat.S_ISREG(info.st_mode) or stat.S_ISLNK(info.st_mode):
            self._emit(name, path, info)
        else:
            _logger.debug("Ignoring special file: %s", path)
        return Visit.CONTINUE

    def _walk_directory(
        self,
        root: Path,
        path: Path,
        info: os.stat_result,
        ancestors: frozenset[tuple[int, int]],
    ) -> Visit:
        ident = _identity(info)
        if ident in ancestors:
            _logger.warning("Symlink cycle detected, not descending into %s", path)
            return Visit.SKIP_SUBTREE
        ancestors = ancestors | {ident}
        for entry in _list_dir(path):
            child = Path(entry.path)
            if self._visit(root, child, _lstat(entry), ancestors) is Visit.SKIP_SUBTREE:
                # Only that child's branch ends; siblings are still visited.
                _logger.debug("Skipped subtree %s", child)
        return Visit.CONTINUE

    def _emit(self, name: str, path: Path, info: os.stat_result) -> None:
        if not self.writer.compress(name, path, info):
            _logger.debug("Already archived from an earlier root: %s", name)
            return
        self.entries.append(name)
        if self.on_entry is not None:
            self.on_entry(name)
