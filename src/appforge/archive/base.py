"""ArchiveWriter — the contract shared by the tar.gz and zip back ends."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, ClassVar

from appforge.errors import ArchiveWriteError, PackError, TraversalError
from appforge.model import ArchiveFormat

_logger = logging.getLogger(__name__)


class ArchiveWriter(ABC):
    """Append-only writer for one output archive.

    The writer owns the output file handle and the set of logical names
    already written.  :meth:`compress` is the only mutator of that set; it is
    called from a single thread by the tree walker.
    """

    format: ClassVar[ArchiveFormat]

    def __init__(self, output: Path) -> None:
        self.output = output
        try:
            self._fileobj: BinaryIO = open(output, "wb")
        except OSError as exc:
            raise ArchiveWriteError(
                f"cannot open output archive {output}: {exc}", path=output
            ) from exc
        self._written: set[str] = set()
        self._closed = False

    @property
    def written(self) -> frozenset[str]:
        return frozenset(self._written)

    def compress(self, logical_name: str, path: Path, info: os.stat_result) -> bool:
        """Append *path* as entry *logical_name*.

        Returns ``False`` without writing when the name was already written
        in this session (an earlier root provided it).

        Raises
        ------
        TraversalError
            The source file or link could not be read.
        ArchiveWriteError
            The header or body could not be written.
        """
        if logical_name in self._written:
            return False
        try:
            self._write_entry(logical_name, path, info)
        except PackError:
            raise
        except UnicodeEncodeError as exc:
            raise ArchiveWriteError(
                f"cannot store entry name {logical_name!r} in {self.format.value} archive: {exc}",
                path=path,
            ) from exc
        except OSError as exc:
            raise ArchiveWriteError(
                f"failed to write entry {logical_name}: {exc}", path=path
            ) from exc
        self._written.add(logical_name)
        return True

    @abstractmethod
    def _write_entry(self, logical_name: str, path: Path, info: os.stat_result) -> None:
        """Write header and body for one entry."""

    @abstractmethod
    def _finish(self) -> None:
        """Write the container trailer (tar end blocks, zip central directory)."""

    def close(self) -> None:
        """Finalise the archive and release the output handle."""
        if self._closed:
            return
        self._closed = True
        try:
            self._finish()
            self._fileobj.close()
        except OSError as exc:
            raise ArchiveWriteError(
                f"failed to finalise archive {self.output}: {exc}", path=self.output
            ) from exc

    def abandon(self) -> None:
        """Release the output handle after a failed session.

        The partial archive stays on disk with every completed entry;
        removing it is up to the caller.
        """
        if self._closed:
            return
        self._closed = True
        _logger.debug("Abandoning partial archive %s", self.output)
        try:
            self._release()
        except (OSError, ValueError) as exc:
            _logger.warning("Could not finalise partial archive %s: %s", self.output, exc)
        self._fileobj.close()

    def _release(self) -> None:
        """Detach container state from the output handle before it is closed.

        Runs only on the abandon path.  Completed entries should stay
        readable; nothing may try to write to the handle afterwards.
        """

    def __enter__(self) -> ArchiveWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abandon()

    # ── source helpers ──────────────────────────────────────────────

    @staticmethod
    def _open_source(path: Path) -> BinaryIO:
        try:
            return open(path, "rb")
        except OSError as exc:
            raise TraversalError(f"cannot read {path}: {exc}", path=path) from exc

    @staticmethod
    def _read_link(path: Path) -> str:
        try:
            return os.readlink(path)
        except OSError as exc:
            raise TraversalError(f"cannot read symlink {path}: {exc}", path=path) from exc
