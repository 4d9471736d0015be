"""Archive extraction activity.

Opens an in-memory ZIP buffer, counts the CAP document entries it holds,
and reads them one at a time in the archive's own central-directory
order.  The count is known before any entry content is read, so the
controller can report progress against a fixed total from the first
callback onward.

Entry order is never re-sorted: progress and feature order are
observable and must be reproducible for a given archive.
"""

from __future__ import annotations

import io
import logging
import lzma
import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from types import TracebackType

from cap_archive.activities.parse_cap import DocumentParseError
from cap_archive.core.constants import (
    DEFAULT_DOCUMENT_EXTENSION,
    DEFAULT_MAX_ENTRY_BYTES,
    has_document_extension,
)
from cap_archive.core.exceptions import SCOPE_ARCHIVE, ValidationError

logger = logging.getLogger("cap_archive.activities.extract_archive")


class ArchiveFormatError(ValidationError):
    """Raised when the buffer is not a readable ZIP archive."""

    default_stage = "extract_archive"
    default_code = "ARCHIVE_FORMAT_INVALID"
    default_scope = SCOPE_ARCHIVE


class EmptyArchiveError(ValidationError):
    """Raised when the archive holds no CAP document entries."""

    default_stage = "extract_archive"
    default_code = "ARCHIVE_EMPTY"
    default_scope = SCOPE_ARCHIVE


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One CAP document read from the archive.

    Attributes:
        name: Entry path inside the archive.
        content: Raw document bytes, undecoded so the XML parser can
            honour the document's own encoding declaration.
    """

    name: str
    content: bytes

    @property
    def text(self) -> str:
        """Decoded view of the content (UTF-8, undecodable bytes replaced)."""
        return self.content.decode("utf-8", errors="replace")


class DocumentArchive:
    """Lazy, ordered reader over the CAP document entries of a ZIP buffer.

    The counting pass runs in the constructor.  Entry bytes are only
    read by ``read()`` or during iteration, one entry at a time.

    Usage::

        with DocumentArchive(buffer) as archive:
            total = len(archive)
            for entry in archive:
                ...

    Raises:
        ArchiveFormatError: If *buffer* is not a valid ZIP archive.
        EmptyArchiveError: If no entry matches *document_extension*.
    """

    def __init__(
        self,
        buffer: bytes | bytearray | memoryview,
        *,
        document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
        max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
    ) -> None:
        self._max_entry_bytes = max_entry_bytes
        self._zip = _open_zip(buffer)
        self._members: list[zipfile.ZipInfo] = [
            info
            for info in self._zip.infolist()
            if not info.is_dir() and has_document_extension(info.filename, document_extension)
        ]

        if not self._members:
            self.close()
            msg = f"Archive contains no '{document_extension}' document entries"
            raise EmptyArchiveError(msg)

        logger.debug(
            "Archive opened | entries=%d | documents=%d",
            len(self._zip.infolist()),
            len(self._members),
        )

    @property
    def names(self) -> list[str]:
        """Document entry names in archive order."""
        return [info.filename for info in self._members]

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        for info in self._members:
            yield self._read_member(info)

    def read(self, name: str) -> ArchiveEntry:
        """Read one document entry.

        Raises:
            KeyError: If *name* is not a document entry of this archive.
            DocumentParseError: If the entry is too large, encrypted, or
                fails its CRC check.  Only this entry is affected.
        """
        for info in self._members:
            if info.filename == name:
                return self._read_member(info)
        raise KeyError(name)

    def read_at(self, index: int) -> ArchiveEntry:
        """Read the document entry at *index* in archive order."""
        return self._read_member(self._members[index])

    def _read_member(self, info: zipfile.ZipInfo) -> ArchiveEntry:
        name = info.filename
        if info.file_size > self._max_entry_bytes:
            msg = (
                f"Entry '{name}' is {info.file_size} bytes uncompressed, "
                f"limit is {self._max_entry_bytes}"
            )
            raise DocumentParseError(msg, stage="extract_archive", code="ENTRY_TOO_LARGE")

        try:
            content = self._zip.read(info)
        except (
            zipfile.BadZipFile,
            zlib.error,
            lzma.LZMAError,
            EOFError,
            RuntimeError,
            NotImplementedError,
            OSError,
        ) as exc:
            msg = f"Cannot read entry '{name}': {exc}"
            raise DocumentParseError(
                msg, stage="extract_archive", code="ENTRY_UNREADABLE"
            ) from exc

        return ArchiveEntry(name=name, content=content)

    def close(self) -> None:
        """Release the archive and the caller's buffer."""
        self._zip.close()

    def __enter__(self) -> DocumentArchive:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def extract(
    buffer: bytes | bytearray | memoryview,
    *,
    document_extension: str = DEFAULT_DOCUMENT_EXTENSION,
    max_entry_bytes: int = DEFAULT_MAX_ENTRY_BYTES,
) -> list[ArchiveEntry]:
    """Read every CAP document entry of a ZIP buffer, in archive order.

    Args:
        buffer: In-memory ZIP archive.
        document_extension: Case-insensitive suffix of document entries.
        max_entry_bytes: Largest uncompressed entry that will be read.

    Returns:
        ``ArchiveEntry`` list in the archive's own entry order.

    Raises:
        ArchiveFormatError: If *buffer* is not a valid ZIP archive.
        EmptyArchiveError: If no entry matches *document_extension*.
        DocumentParseError: If an individual entry cannot be read.
    """
    with DocumentArchive(
        buffer,
        document_extension=document_extension,
        max_entry_bytes=max_entry_bytes,
    ) as archive:
        return list(archive)


def _open_zip(buffer: object) -> zipfile.ZipFile:
    """Open *buffer* as a ZIP archive.  Raises ``ArchiveFormatError``."""
    if not isinstance(buffer, bytes | bytearray | memoryview):
        msg = f"Archive buffer must be bytes-like, got {type(buffer).__name__}"
        raise ArchiveFormatError(msg)

    if not buffer:
        msg = "Archive buffer is empty"
        raise ArchiveFormatError(msg)

    try:
        return zipfile.ZipFile(io.BytesIO(bytes(buffer)))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError, OSError) as exc:
        msg = f"Not a valid ZIP archive: {exc}"
        raise ArchiveFormatError(msg) from exc
