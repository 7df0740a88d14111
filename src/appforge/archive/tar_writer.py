"""tar.gz back end: a tar stream wrapped in gzip."""

from __future__ import annotations

import gzip
import os
import stat
import tarfile
from pathlib import Path

from appforge.archive.base import ArchiveWriter
from appforge.model import ArchiveFormat


class TarGzWriter(ArchiveWriter):
    """Write entries into a gzip-compressed tar stream.

    Symlinks are recorded with their link target in the header and no body.
    The gzip layer is sync-flushed after every entry so an interrupted pack
    still leaves every completed entry readable.
    """

    format = ArchiveFormat.TAR_GZ

    def __init__(self, output: Path) -> None:
        super().__init__(output)
        self._gzip = gzip.GzipFile(filename="", mode="wb", fileobj=self._fileobj)
        self._tar = tarfile.open(fileobj=self._gzip, mode="w", format=tarfile.PAX_FORMAT)

    def _tarinfo(self, logical_name: str, info: os.stat_result) -> tarfile.TarInfo:
        tarinfo = tarfile.TarInfo(logical_name)
        tarinfo.mode = stat.S_IMODE(info.st_mode)
        tarinfo.mtime = int(info.st_mtime)
        tarinfo.uid = info.st_uid
        tarinfo.gid = info.st_gid
        return tarinfo

    def _write_entry(self, logical_name: str, path: Path, info: os.stat_result) -> None:
        tarinfo = self._tarinfo(logical_name, info)
        if stat.S_ISLNK(info.st_mode):
            tarinfo.type = tarfile.SYMTYPE
            tarinfo.linkname = self._read_link(path)
            tarinfo.size = 0
            self._tar.addfile(tarinfo)
        else:
            tarinfo.type = tarfile.REGTYPE
            tarinfo.size = info.st_size
            with self._open_source(path) as src:
                self._tar.addfile(tarinfo, src)
        self._gzip.flush()

    def _finish(self) -> None:
        self._tar.close()
        self._gzip.close()

    def _release(self) -> None:
        # No tar end blocks: readers stop cleanly at the last complete entry.
        self._gzip.close()
