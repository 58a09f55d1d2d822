"""Transparent compression support.

``CompressionType`` maps content encodings and filename extensions to the
stream codecs used when a location is opened or created.
"""

from __future__ import annotations

import bz2
import gzip
from enum import Enum
from typing import BinaryIO, Optional

__all__ = [
    "CompressionType",
    "basename",
    "compression_extension",
    "copy_stream",
    "extension",
    "extension_without_compression",
    "filename_without_compression_extension",
    "filename_without_extension",
]

COPY_BUFFER_SIZE = 64 * 1024


class _ClosingGzipFile(gzip.GzipFile):
    """GzipFile that also closes the stream it wraps."""

    def __init__(self, raw: BinaryIO, mode: str) -> None:
        self._raw = raw
        super().__init__(fileobj=raw, mode=mode)

    def close(self) -> None:
        try:
            super().close()
        finally:
            if not self._raw.closed:
                self._raw.close()


class _ClosingBZ2File(bz2.BZ2File):
    """BZ2File that also closes the stream it wraps."""

    def __init__(self, raw: BinaryIO, mode: str) -> None:
        self._raw = raw
        super().__init__(raw, mode=mode)

    def close(self) -> None:
        try:
            super().close()
        finally:
            if not self._raw.closed:
                self._raw.close()


class CompressionType(Enum):
    """Supported compressions, as (content encoding, filename extension)."""

    GZIP = ("gzip", ".gz")
    BZIP2 = ("bzip2", ".bz2")
    NONE = ("", "")

    def __init__(self, content_encoding: str, ext: str) -> None:
        self.content_encoding = content_encoding
        self.extension = ext

    @property
    def is_compressed(self) -> bool:
        return self is not CompressionType.NONE

    def wrap_input(self, stream: BinaryIO) -> BinaryIO:
        """Return a decompressing reader over ``stream``.

        Closing the returned reader closes ``stream``.
        """
        if self is CompressionType.GZIP:
            return _ClosingGzipFile(stream, "rb")  # type: ignore[return-value]
        if self is CompressionType.BZIP2:
            return _ClosingBZ2File(stream, "rb")  # type: ignore[return-value]
        return stream

    def wrap_output(self, stream: BinaryIO) -> BinaryIO:
        """Return a compressing writer over ``stream``.

        Closing the returned writer flushes the trailer and closes ``stream``.
        """
        if self is CompressionType.GZIP:
            return _ClosingGzipFile(stream, "wb")  # type: ignore[return-value]
        if self is CompressionType.BZIP2:
            return _ClosingBZ2File(stream, "wb")  # type: ignore[return-value]
        return stream

    @classmethod
    def by_content_encoding(cls, content_encoding: Optional[str]) -> Optional["CompressionType"]:
        """Resolve a content encoding; unknown encodings map to NONE."""
        if content_encoding is None:
            return None
        for member in cls:
            if member.content_encoding == content_encoding:
                return member
        return cls.NONE

    @classmethod
    def by_extension(cls, ext: Optional[str]) -> "CompressionType":
        """Resolve an extension, with or without its leading dot."""
        if not ext:
            return cls.NONE
        normalized = ext.lower()
        if not normalized.startswith("."):
            normalized = "." + normalized
        for member in cls:
            if member.is_compressed and member.extension == normalized:
                return member
        return cls.NONE

    @classmethod
    def by_filename(cls, filename: Optional[str]) -> "CompressionType":
        if not filename:
            return cls.NONE
        return cls.by_extension(extension(filename))

    @classmethod
    def remove_compression_extension(cls, filename: str) -> str:
        return filename_without_compression_extension(filename)


def extension(filename: str) -> str:
    """Last extension of ``filename`` including its dot, or ""."""
    pos = filename.rfind(".")
    if pos == -1 or "/" in filename[pos:]:
        return ""
    return filename[pos:]


def filename_without_extension(filename: str) -> str:
    ext = extension(filename)
    return filename[: len(filename) - len(ext)] if ext else filename


def filename_without_compression_extension(filename: str) -> str:
    compression = CompressionType.by_filename(filename)
    if compression.is_compressed:
        return filename[: len(filename) - len(compression.extension)]
    return filename


def compression_extension(filename: str) -> str:
    """Compression extension of ``filename`` including its dot, or ""."""
    return CompressionType.by_filename(filename).extension


def extension_without_compression(filename: str) -> str:
    """Extension left once the compression extension is removed.

    >>> extension_without_compression("reads_1.fastq.gz")
    '.fastq'
    """
    return extension(filename_without_compression_extension(filename))


def basename(filename: str) -> str:
    """Filename without compression extension and without extension."""
    return filename_without_extension(filename_without_compression_extension(filename))


def copy_stream(src: BinaryIO, dst: BinaryIO, buffer_size: int = COPY_BUFFER_SIZE) -> int:
    """Copy ``src`` into ``dst`` and return the number of bytes copied.

    Neither stream is closed.
    """
    copied = 0
    while True:
        chunk = src.read(buffer_size)
        if not chunk:
            break
        dst.write(chunk)
        copied += len(chunk)
    return copied
