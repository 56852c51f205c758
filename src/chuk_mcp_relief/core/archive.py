"""
Archive sinks for export bundles.

A sink accepts named byte payloads and yields one archive when finalized.
The relief pipeline only depends on the ArchiveSink protocol; ZipArchiveSink
is the default.
"""

import io
import logging
import zipfile
from typing import Protocol

from ..constants import ARCHIVE_NAME, ZIP_MIME

logger = logging.getLogger(__name__)


class ArchiveSink(Protocol):
    name: str
    mime_type: str

    def add(self, name: str, data: bytes) -> None: ...

    def finalize(self) -> bytes: ...


class ZipArchiveSink:
    """In-memory deflated zip archive."""

    mime_type = ZIP_MIME

    def __init__(self, name: str = ARCHIVE_NAME) -> None:
        self.name = name
        self._buffer = io.BytesIO()
        self._zip: zipfile.ZipFile | None = zipfile.ZipFile(
            self._buffer, mode="w", compression=zipfile.ZIP_DEFLATED
        )
        self._names: list[str] = []

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def add(self, name: str, data: bytes) -> None:
        if self._zip is None:
            raise RuntimeError(f"Archive {self.name} already finalized")
        if name in self._names:
            raise ValueError(f"Duplicate archive entry: {name}")
        self._zip.writestr(name, data)
        self._names.append(name)

    def finalize(self) -> bytes:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
            logger.debug(f"Finalized {self.name} with {len(self._names)} entries")
        return self._buffer.getvalue()
