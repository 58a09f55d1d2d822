"""Location abstraction: ``DataFile``.

A ``DataFile`` is built from a source string (a local path or a URL such as
``s3://bucket/reads.fastq.gz``). The source is parsed once into a protocol
and a short name; every I/O operation is delegated to the protocol.

Example:
    >>> reads = DataFile("s3://runs/sample1/reads_1.fastq.gz")
    >>> reads.name, reads.extension, reads.compression_extension
    ('reads_1.fastq.gz', 'fastq', 'gz')
    >>> with reads.open() as stream:  # transparently gunzipped
    ...     header = stream.readline()

Identity is the raw source string: ``DataFile("a/../b") != DataFile("b")``.
Metadata is fetched once and cached for the lifetime of the object, so a
long-lived ``DataFile`` will not see later changes of the underlying file.
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
from functools import total_ordering
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, List, Optional, Union
from urllib.parse import unquote, urlparse

from genodata import compression
from genodata.compression import CompressionType
from genodata.errors import DataIOError, UnknownProtocolError, UnsupportedOperationError
from genodata.metadata import DataFileMetadata
from genodata.protocols.service import DataProtocolService, get_protocol_service

if TYPE_CHECKING:
    from genodata.formats.base import DataFormat
    from genodata.formats.registry import DataFormatRegistry
    from genodata.protocols.base import DataProtocol

logger = logging.getLogger(__name__)

__all__ = ["DataFile"]

# Scheme: maximal leading run of ASCII letters and digits, followed by ":/"
SCHEME_PATTERN = re.compile(r"^([A-Za-z0-9]+):/")

# RFC 3986 scheme and characters never allowed unescaped in a URI
_URI_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_URI_FORBIDDEN_CHARS = re.compile(r"[\s<>\"{}|\\^`]")

SourceType = Union[str, "os.PathLike[str]", "DataFile"]


def _is_valid_uri(source: str) -> bool:
    if _URI_FORBIDDEN_CHARS.search(source):
        return False
    colon = source.find(":")
    if colon == -1:
        return True
    # A colon after the first '/', '?' or '#' belongs to the path
    for delimiter in "/?#":
        pos = source.find(delimiter)
        if pos != -1 and pos < colon:
            return True
    return bool(_URI_SCHEME_PATTERN.match(source[:colon]))


@total_ordering
class DataFile:
    """A protocol-bound reference to a file-like resource.

    Args:
        source: Source string, ``os.PathLike`` or parent ``DataFile``
        name: When given, ``source`` is the parent and ``name`` the
              filename inside it
        protocols: Protocol service used to resolve the scheme (defaults to
                   the process-wide service)
        registry: Format registry used for format lookups (defaults to the
                  process-wide registry)

    An unknown scheme does not fail construction: the location is broken
    and the first use of ``protocol`` raises ``UnknownProtocolError``.
    """

    def __init__(
        self,
        source: SourceType,
        name: Optional[str] = None,
        *,
        protocols: Optional[DataProtocolService] = None,
        registry: Optional["DataFormatRegistry"] = None,
    ) -> None:
        if source is None:
            raise TypeError("source argument cannot be None")

        if isinstance(source, DataFile):
            protocols = protocols or source._protocols
            registry = registry or source._registry
            source_string = source.source
        elif isinstance(source, str):
            source_string = source
        elif isinstance(source, os.PathLike):
            source_string = os.fspath(source)
        else:
            raise TypeError(f"Unsupported source type: {type(source).__name__}")

        if name is not None:
            if not isinstance(name, str):
                raise TypeError("name argument must be a string")
            if not source_string:
                source_string = name
            elif source_string.endswith("/"):
                source_string = source_string + name
            else:
                source_string = source_string + "/" + name

        self._source: str = source_string
        self._protocols = protocols
        self._registry = registry
        self._metadata: Optional[DataFileMetadata] = None
        self._protocol: Optional["DataProtocol"] = None
        self._unknown_protocol_name: Optional[str] = None
        self._parse_source()

    def _parse_source(self) -> None:
        match = SCHEME_PATTERN.match(self._source)
        service = self.protocol_service

        if match is None:
            self._protocol_prefix: Optional[str] = None
            self._protocol = service.default_protocol
        else:
            self._protocol_prefix = match.group(1)
            self._protocol = service.get(self._protocol_prefix)
            if self._protocol is None:
                self._unknown_protocol_name = self._protocol_prefix
                logger.error(
                    "Unknown protocol: %s, cannot set protocol for DataFile: %s",
                    self._protocol_prefix,
                    self._source,
                )

        if self._protocol is not None:
            self._name = self._protocol.get_source_filename(self._source)
        else:
            self._name = self._source[self._source.rfind("/") + 1:]

    # Identity

    @property
    def source(self) -> str:
        return self._source

    @property
    def name(self) -> str:
        return self._name

    @property
    def protocol_prefix_in_source(self) -> Optional[str]:
        """Scheme written in the source, None for schemeless sources."""
        return self._protocol_prefix

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DataFile):
            return NotImplemented
        return self._source == other._source

    def __lt__(self, other: "DataFile") -> bool:
        if not isinstance(other, DataFile):
            return NotImplemented
        return self._source < other._source

    def __hash__(self) -> int:
        return hash(self._source)

    def __str__(self) -> str:
        return self._source

    def __repr__(self) -> str:
        return f"DataFile({self._source!r})"

    def __reduce__(self):
        # Only the source is serialized; services are the process-wide ones
        return (DataFile, (self._source,))

    # Collaborators

    @property
    def protocol_service(self) -> DataProtocolService:
        return self._protocols if self._protocols is not None else get_protocol_service()

    @property
    def registry(self) -> "DataFormatRegistry":
        if self._registry is not None:
            return self._registry
        from genodata.formats.registry import get_registry

        return get_registry()

    @property
    def protocol(self) -> "DataProtocol":
        """Protocol of this location.

        Raises:
            UnknownProtocolError: If the scheme of the source is unknown
        """
        if self._protocol is None:
            raise UnknownProtocolError(self._unknown_protocol_name or "")
        return self._protocol

    @property
    def is_broken(self) -> bool:
        return self._protocol is None

    @property
    def is_local_file(self) -> bool:
        return self._protocol is not None and self._protocol.is_local

    def derive(self, source: SourceType) -> "DataFile":
        """New location sharing the services of this one."""
        return DataFile(source, protocols=self._protocols, registry=self._registry)

    def child(self, name: str) -> "DataFile":
        """Location of ``name`` inside this location."""
        return DataFile(self, name)

    # Name views

    @property
    def basename(self) -> str:
        """Name without compression extension and without extension."""
        return compression.basename(self._name)

    @property
    def extension(self) -> str:
        """Extension without compression and without dot ("fastq")."""
        return compression.extension_without_compression(self._name).lstrip(".")

    @property
    def full_extension(self) -> str:
        """Extension including the compression extension ("fastq.gz")."""
        ext = self.extension
        comp = self.compression_extension
        if ext and comp:
            return f"{ext}.{comp}"
        return ext or comp

    @property
    def compression_extension(self) -> str:
        """Compression extension without dot ("gz"), or ""."""
        return compression.compression_extension(self._name).lstrip(".")

    @property
    def compression_type(self) -> CompressionType:
        return CompressionType.by_filename(self._name)

    @property
    def data_format(self) -> Optional["DataFormat"]:
        """Format of this location resolved from its name, or None."""
        return self.registry.get_data_format_from_filename(self._name)

    @property
    def parent(self) -> "DataFile":
        return self.protocol.get_parent(self)

    # Metadata

    def get_metadata(self) -> DataFileMetadata:
        """Metadata of this location, fetched on first call then cached."""
        if self._metadata is None:
            self._metadata = self.protocol.get_metadata(self)
        return self._metadata

    @property
    def metadata(self) -> DataFileMetadata:
        return self.get_metadata()

    def _stream_compression(self, metadata: Optional[DataFileMetadata]) -> CompressionType:
        if metadata is not None:
            from_encoding = CompressionType.by_content_encoding(metadata.content_encoding)
            if from_encoding is not None:
                return from_encoding
        return self.compression_type

    # Streams

    def raw_open(self) -> BinaryIO:
        """Open a binary input stream without decompression."""
        return self.protocol.get_data(self)

    def raw_create(self, metadata: Optional[DataFileMetadata] = None) -> BinaryIO:
        """Open a binary output stream without compression."""
        return self.protocol.put_data(self, metadata)

    def open(self) -> BinaryIO:
        """Open a binary input stream, decompressed when the file is compressed.

        The content encoding of the stored metadata wins over the filename.
        """
        return self._stream_compression(self.get_metadata()).wrap_input(self.raw_open())

    def create(self) -> BinaryIO:
        """Open a binary output stream, compressed according to the name."""
        compression_type = self._stream_compression(self._metadata)
        data_format = self.data_format
        metadata = DataFileMetadata(
            content_type=data_format.content_type if data_format is not None else None,
            content_encoding=compression_type.content_encoding or None,
            data_format=data_format,
        )
        return compression_type.wrap_output(self.raw_create(metadata))

    def copy_to(self, dest: "DataFile") -> None:
        """Copy the raw bytes of this location to ``dest``."""
        if dest is None:
            raise TypeError("dest argument cannot be None")
        dest.protocol.copy_data(self, dest)

    # Filesystem operations

    def exists(self, follow_link: bool = True) -> bool:
        if self._protocol is None:
            return False
        try:
            return self._protocol.exists(self, follow_link)
        except OSError as e:
            logger.debug("Cannot check existence of %s: %s", self, e)
            return False

    def mkdir(self) -> None:
        if not self.protocol.can_mkdir():
            raise UnsupportedOperationError(self.protocol.name, "creating directories")
        self.protocol.mkdir(self)

    def mkdirs(self) -> None:
        if not self.protocol.can_mkdir():
            raise UnsupportedOperationError(self.protocol.name, "creating directories")
        self.protocol.mkdirs(self)

    def delete(self, recursive: bool = False) -> None:
        if not self.protocol.can_delete():
            raise UnsupportedOperationError(self.protocol.name, "deleting files")
        self.protocol.delete(self, recursive)

    def list(self) -> List["DataFile"]:
        if not self.protocol.can_list():
            raise UnsupportedOperationError(self.protocol.name, "listing directories")
        return self.protocol.list(self)

    def rename_to(self, dest: "DataFile") -> None:
        if dest is None:
            raise TypeError("dest argument cannot be None")
        if not self.protocol.can_rename():
            raise UnsupportedOperationError(self.protocol.name, "renaming files")
        self.protocol.rename(self, dest)

    def symlink(self, link: "DataFile", relativize: bool = False) -> None:
        """Create ``link`` as a symbolic link pointing to this location.

        Args:
            link: Location of the link to create
            relativize: Write the target relative to the parent of ``link``
        """
        if link is None:
            raise TypeError("link argument cannot be None")
        if not self.protocol.can_symlink():
            raise UnsupportedOperationError(self.protocol.name, "creating symbolic links")

        target = self._relative_target(link) if relativize else self
        self.protocol.symlink(target, link)

    def _relative_target(self, link: "DataFile") -> "DataFile":
        link_parent = (
            link.to_absolute_data_file().parent if link.is_local_file else link.parent
        )
        target_parent = (
            self.to_absolute_data_file().parent if self.is_local_file else self.parent
        )

        base_uri = link_parent._absolute_uri()
        target_uri = target_parent._absolute_uri()
        if base_uri is None or target_uri is None:
            raise DataIOError(
                f"Cannot relativize {self} against {link}: both must be valid URIs"
            )

        base = urlparse(base_uri)
        target = urlparse(target_uri)
        if (base.scheme, base.netloc) != (target.scheme, target.netloc):
            return self

        relative = posixpath.relpath(unquote(target.path) or "/", unquote(base.path) or "/")
        if relative == ".":
            return self.derive(self._name)
        return self.derive(relative + "/" + self._name)

    # Projections

    def to_path(self) -> Optional[Path]:
        """Local path of this location, None for non-local protocols."""
        if self._protocol is None:
            return None
        return self._protocol.source_as_path(self)

    def to_uri(self) -> Optional[str]:
        """The source as a URI string, None if it is not a valid URI."""
        return self._source if _is_valid_uri(self._source) else None

    def _absolute_uri(self) -> Optional[str]:
        if self.is_local_file:
            path = self.to_path()
            return Path(os.path.abspath(path)).as_uri() if path is not None else None
        return self.to_uri()

    def to_absolute_data_file(self) -> "DataFile":
        """Absolute location for local files, this location otherwise."""
        if not self.is_local_file:
            return self
        path = self.to_path()
        return self.derive(os.path.abspath(path)) if path is not None else self

    def to_real_data_file(self) -> "DataFile":
        """Location with symbolic links resolved, for local files."""
        if not self.is_local_file:
            return self
        path = self.to_path()
        return self.derive(os.path.realpath(path)) if path is not None else self
