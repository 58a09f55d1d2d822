"""Names of the files produced by workflow steps.

A step output file is named::

    <step>_<port>_<format prefix>_<data>[_file<i>][_part<p>]<ext>[<compression>]

for example ``filterreads_output_reads_s1_file0.fq.gz``. Step, port, format
prefix and data tokens only hold ASCII letters and digits. Multi-file
formats (paired-end reads) always carry a file index.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from genodata.compression import CompressionType
from genodata.errors import FileNamingError
from genodata.location import DataFile

if TYPE_CHECKING:
    from genodata.formats.base import DataFormat
    from genodata.formats.registry import DataFormatRegistry

__all__ = ["FileNaming"]

FILE_INDEX_PREFIX = "file"
PART_INDEX_PREFIX = "part"
SEPARATOR = "_"

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def _is_token_valid(token: Optional[str]) -> bool:
    return token is not None and _TOKEN_PATTERN.match(token) is not None


def _format_prefix_token(data_format: "DataFormat") -> str:
    return data_format.prefix.rstrip(SEPARATOR)


@dataclass
class FileNaming:
    """Fields of a workflow filename.

    ``file_index`` and ``part`` are -1 when absent. ``extension`` defaults to
    the default extension of ``format``.

    Example:
        >>> naming = FileNaming.parse("filterreads_output_reads_s1_file0.fq")
        >>> naming.step_id, naming.data_name, naming.file_index
        ('filterreads', 's1', 0)
        >>> naming.glob()
        'filterreads_output_reads_*.fq'
    """

    step_id: Optional[str] = None
    port_name: Optional[str] = None
    data_name: Optional[str] = None
    format: Optional["DataFormat"] = None
    file_index: int = -1
    part: int = -1
    compression: CompressionType = CompressionType.NONE
    extension: Optional[str] = None

    # Validators

    @staticmethod
    def is_step_id_valid(step_id: Optional[str]) -> bool:
        return _is_token_valid(step_id)

    @staticmethod
    def is_port_name_valid(port_name: Optional[str]) -> bool:
        return _is_token_valid(port_name)

    @staticmethod
    def is_format_prefix_valid(prefix: Optional[str]) -> bool:
        return _is_token_valid(prefix)

    @staticmethod
    def is_data_name_valid(data_name: Optional[str]) -> bool:
        return _is_token_valid(data_name)

    # Name parts

    @staticmethod
    def file_prefix(step_id: str, port_name: str, format_prefix: Union[str, "DataFormat"]) -> str:
        """``<step>_<port>_<format prefix>_``."""
        if not isinstance(format_prefix, str):
            format_prefix = _format_prefix_token(format_prefix)
        return SEPARATOR.join((step_id, port_name, format_prefix)) + SEPARATOR

    @staticmethod
    def file_middle(data_name: str, file_index: int = -1, part: int = -1) -> str:
        """``<data>[_file<i>][_part<p>]``."""
        middle = data_name
        if file_index >= 0:
            middle += f"{SEPARATOR}{FILE_INDEX_PREFIX}{file_index}"
        if part >= 0:
            middle += f"{SEPARATOR}{PART_INDEX_PREFIX}{part}"
        return middle

    @staticmethod
    def file_suffix(extension: Union[str, "DataFormat"], compression: Union[str, CompressionType]) -> str:
        """``<ext><compression>``, e.g. ``.fq.bz2``."""
        if extension is None:
            raise TypeError("extension argument cannot be None")
        if compression is None:
            raise TypeError("compression argument cannot be None")
        if not isinstance(extension, str):
            extension = extension.default_extension
        if isinstance(compression, CompressionType):
            compression = compression.extension
        return extension + compression

    def _check(self) -> None:
        for field_name in ("step_id", "port_name", "format", "data_name"):
            if getattr(self, field_name) is None:
                raise FileNamingError(f"{field_name} has not been set")

        if not self.is_step_id_valid(self.step_id):
            raise FileNamingError(f"Invalid step id: {self.step_id}")
        if not self.is_port_name_valid(self.port_name):
            raise FileNamingError(f"Invalid port name: {self.port_name}")
        if not self.is_format_prefix_valid(_format_prefix_token(self.format)):
            raise FileNamingError(f"Invalid format prefix: {self.format.prefix}")
        if not self.is_data_name_valid(self.data_name):
            raise FileNamingError(f"Invalid data name: {self.data_name}")

        max_files = self.format.max_files_count
        if max_files > 1 and self.file_index < 0:
            raise FileNamingError(
                f"A file index is required for the multi-file format {self.format.name}"
            )
        if self.file_index >= max_files:
            raise FileNamingError(
                f"Invalid file index {self.file_index} for the format {self.format.name}",
                details={"max_files_count": max_files},
            )

    def filename(self) -> str:
        self._check()
        return (
            self.file_prefix(self.step_id, self.port_name, self.format)
            + self.file_middle(self.data_name, self.file_index, self.part)
            + self.file_suffix(self.extension or self.format, self.compression)
        )

    def glob(self) -> str:
        """Pattern matching every data of the same step, port and format."""
        self._check()
        return (
            self.file_prefix(self.step_id, self.port_name, self.format)
            + "*"
            + self.file_suffix(self.extension or self.format, self.compression)
        )

    def file(self, directory: Union[str, "os.PathLike[str]", DataFile]) -> DataFile:
        return DataFile(directory, self.filename())

    # Parsing

    @classmethod
    def parse(
        cls,
        filename: Union[str, "os.PathLike[str]", DataFile],
        registry: Optional["DataFormatRegistry"] = None,
    ) -> "FileNaming":
        """Split a workflow filename into its fields.

        Raises:
            FileNamingError: If ``filename`` does not follow the naming scheme
        """
        if filename is None:
            raise TypeError("filename argument cannot be None")
        if isinstance(filename, DataFile):
            registry = registry or filename.registry
            filename = filename.name
        elif isinstance(filename, os.PathLike):
            filename = os.path.basename(os.fspath(filename))

        if registry is None:
            from genodata.formats.registry import get_registry

            registry = get_registry()

        def invalid() -> FileNamingError:
            return FileNamingError(f"Invalid filename: {filename}")

        pieces = filename.split(".")
        if len(pieces) not in (2, 3):
            raise invalid()

        result = cls()
        if len(pieces) == 3:
            result.compression = CompressionType.by_extension(pieces[2])
            if not result.compression.is_compressed:
                raise invalid()

        fields = pieces[0].split(SEPARATOR)
        if len(fields) < 4:
            raise invalid()

        step_id, port_name, format_prefix, data_name = fields[:4]
        if not cls.is_step_id_valid(step_id) or not cls.is_port_name_valid(port_name):
            raise invalid()
        result.step_id = step_id
        result.port_name = port_name

        result.format = registry.get_data_format_from_prefix_and_extension(
            format_prefix + SEPARATOR, "." + pieces[1]
        )
        if result.format is None:
            raise invalid()
        result.extension = "." + pieces[1]

        if not cls.is_data_name_valid(data_name):
            raise invalid()
        result.data_name = data_name

        for field in fields[4:]:
            if field.startswith(FILE_INDEX_PREFIX) and result.file_index == -1:
                result.file_index = cls._parse_index(field[len(FILE_INDEX_PREFIX):], invalid)
            elif field.startswith(PART_INDEX_PREFIX) and result.part == -1:
                result.part = cls._parse_index(field[len(PART_INDEX_PREFIX):], invalid)
            else:
                raise invalid()

        if result.format.max_files_count > 1 and result.file_index == -1:
            raise invalid()

        return result

    @staticmethod
    def _parse_index(value: str, invalid) -> int:
        if not value.isdigit():
            raise invalid()
        return int(value)

    @classmethod
    def is_filename_valid(
        cls,
        filename: Union[str, "os.PathLike[str]", DataFile],
        registry: Optional["DataFormatRegistry"] = None,
    ) -> bool:
        try:
            cls.parse(filename, registry)
        except FileNamingError:
            return False
        return True

    @classmethod
    def data_equals(
        cls,
        filename1: Union[str, DataFile],
        filename2: Union[str, DataFile],
        registry: Optional["DataFormatRegistry"] = None,
    ) -> bool:
        """True when both filenames hold the same data, whatever the file index."""
        try:
            first = cls.parse(filename1, registry)
            second = cls.parse(filename2, registry)
        except FileNamingError:
            return False

        return (
            first.step_id == second.step_id
            and first.port_name == second.port_name
            and first.format == second.format
            and first.data_name == second.data_name
            and first.part == second.part
        )
