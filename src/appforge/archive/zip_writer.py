"""zip back end."""

from __future__ import annotations

import os
import shutil
import stat
import time
import zipfile
from pathlib import Path

from appforge.archive.base import ArchiveWriter
from appforge.model import ArchiveFormat

# zip stores local time with a 1980..2107 range.
_ZIP_MIN = (1980, 1, 1, 0, 0, 0)
_ZIP_MAX = (2107, 12, 31, 23, 59, 58)

_CREATE_SYSTEM_UNIX = 3


def _zip_timestamp(mtime: float) -> tuple[int, int, int, int, int, int]:
    stamp = tuple(time.localtime(mtime)[:6])
    if stamp < _ZIP_MIN:
        return _ZIP_MIN
    if stamp > _ZIP_MAX:
        return _ZIP_MAX
    return stamp  # type: ignore[return-value]


class ZipWriter(ArchiveWriter):
    """Write entries into a deflate-compressed zip container.

    Symlinks follow the Info-ZIP convention: the entry body is the link
    target and the unix mode in ``external_attr`` carries ``S_IFLNK``.
    """

    format = ArchiveFormat.ZIP

    def __init__(self, output: Path) -> None:
        super().__init__(output)
        self._zip = zipfile.ZipFile(self._fileobj, mode="w", compression=zipfile.ZIP_DEFLATED)

    def _zipinfo(self, logical_name: str, info: os.stat_result) -> zipfile.ZipInfo:
        zinfo = zipfile.ZipInfo(logical_name, date_time=_zip_timestamp(info.st_mtime))
        zinfo.create_system = _CREATE_SYSTEM_UNIX
        zinfo.external_attr = (info.st_mode & 0xFFFF) << 16
        return zinfo

    def _write_entry(self, logical_name: str, path: Path, info: os.stat_result) -> None:
        zinfo = self._zipinfo(logical_name, info)
        if stat.S_ISLNK(info.st_mode):
            zinfo.compress_type = zipfile.ZIP_STORED
            self._zip.writestr(zinfo, self._read_link(path))
            return
        zinfo.compress_type = zipfile.ZIP_DEFLATED
        zinfo.file_size = info.st_size
        with self._open_source(path) as src:
            with self._zip.open(zinfo, "w", force_zip64=info.st_size > zipfile.ZIP64_LIMIT) as dst:
                shutil.copyfileobj(src, dst)

    def _finish(self) -> None:
        self._zip.close()

    def _release(self) -> None:
        # Writes the central directory for completed entries.  ZipFile drops
        # its handle even when that fails.
        self._zip.close()
