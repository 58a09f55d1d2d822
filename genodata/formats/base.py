"""Data format descriptions.

A ``DataFormat`` describes a family of files sharing semantics: its
extensions, content type, multiplicity and optional collaborators
(generator, checker, splitter, merger).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from genodata.formats.collaborators import Checker, Generator, Merger, Splitter

__all__ = ["DataFormat", "DEFAULT_CONTENT_TYPE", "MAX_FILES_COUNT"]

DEFAULT_CONTENT_TYPE = "text/plain"

#: Highest number of physical files one unit of a format may span
MAX_FILES_COUNT = 2


class DataFormat(ABC):
    """Abstract data format description.

    Concrete formats are immutable once registered. Two formats are equal
    when all their declared fields are equal.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique lowercase name of the format."""

    @property
    def description(self) -> Optional[str]:
        return None

    @property
    def alias(self) -> Optional[str]:
        return None

    @property
    @abstractmethod
    def prefix(self) -> str:
        """Token starting the filenames of this format (part of the lookup key)."""

    @property
    def one_file_per_analysis(self) -> bool:
        return False

    @property
    def data_format_from_design_file(self) -> bool:
        """True when files of this format are declared in the design file."""
        return (
            self.design_metadata_key_name is not None
            or self.sample_metadata_key_name is not None
        )

    @property
    def design_metadata_key_name(self) -> Optional[str]:
        return None

    @property
    def sample_metadata_key_name(self) -> Optional[str]:
        return None

    @property
    @abstractmethod
    def default_extension(self) -> Optional[str]:
        """Extension used when creating files of this format (with its dot).

        None when the format declares no extension.
        """

    @property
    @abstractmethod
    def extensions(self) -> List[str]:
        """All the extensions of this format, default one included."""

    @property
    def galaxy_format_names(self) -> List[str]:
        return []

    @property
    def content_type(self) -> str:
        return DEFAULT_CONTENT_TYPE

    @property
    def max_files_count(self) -> int:
        return 1

    # Collaborators

    @property
    def is_generator(self) -> bool:
        return False

    @property
    def is_checker(self) -> bool:
        return False

    @property
    def is_splitter(self) -> bool:
        return False

    @property
    def is_merger(self) -> bool:
        return False

    def get_generator(self) -> Optional["Generator"]:
        return None

    def get_checker(self) -> Optional["Checker"]:
        return None

    def get_splitter(self) -> Optional["Splitter"]:
        return None

    def get_merger(self) -> Optional["Merger"]:
        return None

    # Value semantics

    def _identity(self) -> Tuple[Any, ...]:
        return (
            self.name,
            self.description,
            self.alias,
            self.prefix,
            self.one_file_per_analysis,
            self.design_metadata_key_name,
            self.sample_metadata_key_name,
            self.default_extension,
            tuple(self.extensions),
            tuple(self.galaxy_format_names),
            self.content_type,
            self.max_files_count,
        )

    def __eq__(self, other: Any) -> bool:
        if other is self:
            return True
        if not isinstance(other, DataFormat):
            return NotImplemented
        return type(self) is type(other) and self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, prefix={self.prefix!r}, "
            f"extensions={self.extensions!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Describe the format for logging and diagnostics."""
        return {
            "name": self.name,
            "description": self.description,
            "alias": self.alias,
            "prefix": self.prefix,
            "one_file_per_analysis": self.one_file_per_analysis,
            "design_metadata_key": self.design_metadata_key_name,
            "sample_metadata_key": self.sample_metadata_key_name,
            "default_extension": self.default_extension,
            "extensions": list(self.extensions),
            "galaxy_format_names": list(self.galaxy_format_names),
            "content_type": self.content_type,
            "max_files_count": self.max_files_count,
        }
