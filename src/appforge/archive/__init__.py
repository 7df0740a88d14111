"""Archive back ends.

Two interchangeable writers share the :class:`ArchiveWriter` contract::

    with open_writer(ArchiveFormat.ZIP, Path("app.zip")) as writer:
        writer.compress("README.md", Path("/app/README.md"), os.lstat(...))
"""

from __future__ import annotations

from pathlib import Path

from appforge.archive.base import ArchiveWriter
from appforge.archive.tar_writer import TarGzWriter
from appforge.archive.zip_writer import ZipWriter
from appforge.model import ArchiveFormat

__all__ = ["ArchiveWriter", "TarGzWriter", "ZipWriter", "open_writer"]

_WRITERS: dict[ArchiveFormat, type[ArchiveWriter]] = {
    ArchiveFormat.TAR_GZ: TarGzWriter,
    ArchiveFormat.ZIP: ZipWriter,
}


def open_writer(fmt: ArchiveFormat | str, output: Path) -> ArchiveWriter:
    """Create the writer for *fmt*; unknown formats fall back to tar.gz."""
    return _WRITERS[ArchiveFormat.parse(fmt)](output)
