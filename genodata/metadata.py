"""Metadata of a location, as reported by its protocol."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from genodata.formats.base import DataFormat
    from genodata.location import DataFile

__all__ = ["DataFileMetadata"]


@dataclass
class DataFileMetadata:
    """Metadata of a ``DataFile``.

    ``content_length`` is -1 when unknown. ``symbolic_link`` holds the link
    target when the location is a symbolic link.
    """

    content_length: int = -1
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    content_md5: Optional[str] = None
    last_modified: Optional[datetime] = None
    data_format: Optional["DataFormat"] = None
    directory: bool = False
    symbolic_link: Optional["DataFile"] = None

    @property
    def is_directory(self) -> bool:
        return self.directory

    @property
    def is_symbolic_link(self) -> bool:
        return self.symbolic_link is not None

    def copy(self) -> "DataFileMetadata":
        return _copy.copy(self)
