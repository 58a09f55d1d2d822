"""Abstract base class for data protocols.

A protocol performs the I/O and filesystem operations of one URI scheme on
behalf of ``DataFile``. Protocol instances are stateless: every operation
receives the locations it works on.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, List, Optional

from genodata.compression import copy_stream
from genodata.errors import UnsupportedOperationError
from genodata.settings import DataSettings, get_settings

if TYPE_CHECKING:
    from genodata.location import DataFile
    from genodata.metadata import DataFileMetadata

logger = logging.getLogger(__name__)

__all__ = ["DataProtocol"]


class DataProtocol(ABC):
    """Abstract base class for data protocols.

    Subclasses implement the stream factories and metadata lookup, and
    opt into filesystem operations by overriding both the operation and
    its ``can_*`` predicate. Operations a protocol does not support raise
    ``UnsupportedOperationError``.
    """

    #: True when sources of this protocol are paths of the local filesystem
    is_local = False

    def __init__(self, settings: Optional[DataSettings] = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> DataSettings:
        return self._settings if self._settings is not None else get_settings()

    @property
    @abstractmethod
    def name(self) -> str:
        """Scheme handled by this protocol (e.g. 'file', 's3')."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    # Location helpers

    def get_source_filename(self, source: str) -> str:
        """Short name of ``source``: the text after its last '/'."""
        pos = source.rfind("/")
        return source if pos == -1 else source[pos + 1:]

    def get_parent(self, data_file: "DataFile") -> "DataFile":
        """Parent location, built by cutting the source at its last '/'."""
        source = data_file.source
        pos = source.rfind("/")
        if pos == -1:
            return data_file.derive("")
        if pos == 0:
            return data_file.derive("/")
        parent = source[:pos]
        # Keep "s3://" or "file://" intact when cutting right after the authority
        if parent.endswith(":/"):
            parent += "/"
        return data_file.derive(parent)

    def source_as_path(self, data_file: "DataFile") -> Optional[Path]:
        """Local path of ``data_file``, None when this protocol is not local."""
        return None

    # Streams and metadata

    @abstractmethod
    def get_data(self, src: "DataFile") -> BinaryIO:
        """Open a binary input stream on ``src``."""

    @abstractmethod
    def put_data(
        self, dest: "DataFile", metadata: Optional["DataFileMetadata"] = None
    ) -> BinaryIO:
        """Open a binary output stream on ``dest``."""

    def copy_data(self, src: "DataFile", dest: "DataFile") -> int:
        """Copy the raw bytes of ``src`` into ``dest`` (this protocol owns ``dest``).

        Returns:
            Number of bytes copied
        """
        with src.raw_open() as in_stream, self.put_data(dest) as out_stream:
            return copy_stream(in_stream, out_stream)

    @abstractmethod
    def get_metadata(self, src: "DataFile") -> "DataFileMetadata":
        """Fetch the metadata of ``src``.

        Raises:
            FileNotFoundError: If ``src`` does not exist
        """

    @abstractmethod
    def exists(self, src: "DataFile", follow_link: bool = True) -> bool:
        """Check whether ``src`` exists."""

    # Capabilities

    def can_read(self) -> bool:
        return True

    def can_write(self) -> bool:
        return True

    def can_mkdir(self) -> bool:
        return False

    def can_delete(self) -> bool:
        return False

    def can_list(self) -> bool:
        return False

    def can_rename(self) -> bool:
        return False

    def can_symlink(self) -> bool:
        return False

    # Filesystem operations, unsupported unless overridden

    def mkdir(self, dir: "DataFile") -> None:
        raise UnsupportedOperationError(self.name, "creating directories")

    def mkdirs(self, dir: "DataFile") -> None:
        raise UnsupportedOperationError(self.name, "creating directories")

    def delete(self, data_file: "DataFile", recursive: bool = False) -> None:
        raise UnsupportedOperationError(self.name, "deleting files")

    def list(self, dir: "DataFile") -> List["DataFile"]:
        raise UnsupportedOperationError(self.name, "listing directories")

    def rename(self, src: "DataFile", dest: "DataFile") -> None:
        raise UnsupportedOperationError(self.name, "renaming files")

    def symlink(self, target: "DataFile", link: "DataFile") -> None:
        raise UnsupportedOperationError(self.name, "creating symbolic links")
