# crash_diagnostics/core/archive_writer.py

from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import IO, List
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile, ZipInfo


class ArchiveWriter:
    """
    Streaming zip writer.

    Entries are created by caller-supplied name and written through a stream;
    names are not checked for collisions.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._zip: ZipFile | None = ZipFile(self.path, "x", compression=ZIP_DEFLATED)

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._zip is None

    def open_entry(self, name: str, compress: bool = True) -> IO[bytes]:
        if self._zip is None:
            raise ValueError(f"Archive already closed: {self.path}")
        info = ZipInfo(name, date_time=time.localtime(time.time())[:6])
        info.compress_type = ZIP_DEFLATED if compress else ZIP_STORED
        return self._zip.open(info, mode="w")

    def write_bytes(self, name: str, data: bytes, compress: bool = True) -> None:
        with self.open_entry(name, compress=compress) as stream:
            stream.write(data)

    def write_file(self, name: str, source, compress: bool = True) -> None:
        with open(source, "rb") as src, self.open_entry(name, compress=compress) as stream:
            shutil.copyfileobj(src, stream, length=1024 * 1024)

    def names(self) -> List[str]:
        if self._zip is None:
            return []
        return self._zip.namelist()

    def close(self) -> None:
        if self._zip is not None:
            zf, self._zip = self._zip, None
            zf.close()
