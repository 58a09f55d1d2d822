"""Dataset view over the files of a workflow data.

A ``Data`` binds a format to one or more ``DataFile`` locations. Single-file
formats expose their location through ``data_file``; multi-file formats
(paired-end reads) through ``data_file_at(index)``, which names and creates
the next file on demand.

Example:
    >>> data = Data(reads_format, name="s1", step_id="filterreads",
    ...             port_name="output", directory="/scratch/run1")
    >>> data.data_file_at(0).name
    'filterreads_output_reads_s1_file0.fastq'
    >>> data.data_file_at(1).name
    'filterreads_output_reads_s1_file1.fastq'
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, Iterator, List, Optional, Union

from genodata.compression import CompressionType
from genodata.errors import DataViewError
from genodata.formats.base import DataFormat
from genodata.location import DataFile
from genodata.naming import FileNaming

logger = logging.getLogger(__name__)

__all__ = ["Data", "DataList"]

DirectoryType = Union[str, "os.PathLike[str]", DataFile]


class Data:
    """One logical dataset of a format.

    Args:
        data_format: Format of the dataset
        files: Locations of the dataset, when already known
        name: Data name, ASCII letters and digits only
        part: Part number, -1 when the dataset is not split
        metadata: Free-form key/value metadata
        step_id: Step producing the dataset, used to name new files
        port_name: Output port of the step, used to name new files
        directory: Directory receiving new files
        compression: Compression of new files
    """

    def __init__(
        self,
        data_format: DataFormat,
        files: Optional[Iterable[DataFile]] = None,
        *,
        name: Optional[str] = None,
        part: int = -1,
        metadata: Optional[Dict[str, str]] = None,
        step_id: Optional[str] = None,
        port_name: Optional[str] = None,
        directory: Optional[DirectoryType] = None,
        compression: CompressionType = CompressionType.NONE,
    ) -> None:
        if data_format is None:
            raise TypeError("data_format argument cannot be None")
        if name is not None and not FileNaming.is_data_name_valid(name):
            raise DataViewError(
                f"Invalid data name: {name}",
                suggestion="Data names only contain ASCII letters and digits",
            )

        self._format = data_format
        self._name = name
        self._part = part
        self._step_id = step_id
        self._port_name = port_name
        self._directory = directory
        self._compression = compression
        self._used = False
        self.metadata: Dict[str, str] = dict(metadata or {})

        if files is not None:
            self._files: List[DataFile] = self._checked_files(files)
        elif self._can_name_files() and data_format.max_files_count < 2:
            self._files = [self._create_data_file(-1)]
        else:
            self._files = []

    @staticmethod
    def _checked_files(files: Iterable[DataFile]) -> List[DataFile]:
        result = list(files)
        for data_file in result:
            if data_file is None:
                raise TypeError("files argument cannot contain None")
        if len(set(result)) != len(result):
            raise ValueError("files argument cannot contain the same file twice")
        return result

    # Identity

    @property
    def format(self) -> DataFormat:
        return self._format

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if self._used:
            raise DataViewError("Data cannot be renamed once it has been used")
        if not FileNaming.is_data_name_valid(value):
            raise DataViewError(f"Invalid data name: {value}")
        self._name = value
        self._rename_files()

    @property
    def part(self) -> int:
        return self._part

    @part.setter
    def part(self, value: int) -> None:
        if self._used:
            raise DataViewError("Data cannot be renamed once it has been used")
        self._part = value
        self._rename_files()

    @property
    def is_list(self) -> bool:
        return False

    @property
    def list_elements(self) -> List["Data"]:
        return [self]

    @property
    def is_one_file_per_analysis(self) -> bool:
        return self._format.one_file_per_analysis

    # Files

    @property
    def data_file(self) -> DataFile:
        """Location of a single-file dataset."""
        if self._format.max_files_count > 1:
            raise DataViewError(
                f"The multi-file format {self._format.name} cannot be accessed "
                "through data_file",
                suggestion="Use data_file_at(index) instead",
            )
        if not self._files:
            raise DataViewError(f"No file has been set for data {self._name}")

        self._used = True
        return self._files[0]

    def data_file_at(self, index: int) -> DataFile:
        """Location of file ``index`` of a multi-file dataset.

        The file right after the last known one is named and added on
        request; indexes beyond the format's ``max_files_count`` are
        rejected.
        """
        if self._format.max_files_count < 2:
            raise DataViewError(
                f"Only multi-file formats are handled by data_file_at, "
                f"{self._format.name} is not one",
                suggestion="Use data_file instead",
            )
        if index < 0:
            raise DataViewError("File index cannot be lower than 0")
        if index > len(self._files):
            raise DataViewError(
                f"Cannot create file index {index} as file index {len(self._files)} "
                "is not created"
            )
        if index >= self._format.max_files_count:
            raise DataViewError(
                f"The format {self._format.name} does not support more than "
                f"{self._format.max_files_count} files"
            )

        if index == len(self._files):
            if not self._can_name_files():
                raise DataViewError(
                    f"Cannot create file index {index} of data {self._name}: "
                    "step, port and directory are unknown"
                )
            self._files.append(self._create_data_file(index))

        self._used = True
        return self._files[index]

    @property
    def data_filename(self) -> str:
        return self.data_file.name

    def data_filename_at(self, index: int) -> str:
        if self._format.max_files_count < 2:
            raise DataViewError("Only multi-file formats are handled by data_filename_at")
        if not 0 <= index < len(self._files):
            raise DataViewError(f"No file at index {index} for data {self._name}")
        return self._files[index].name

    @property
    def data_file_count(self) -> int:
        return len(self._files)

    @property
    def data_files(self) -> List[DataFile]:
        return list(self._files)

    def set_data_file(self, data_file: DataFile, index: int = 0) -> None:
        """Replace an existing location of the dataset."""
        if data_file is None:
            raise TypeError("data_file argument cannot be None")
        if not 0 <= index < len(self._files):
            raise DataViewError(f"Cannot set file index {index} as it does not exist")
        self._files[index] = data_file

    def set_data_files(self, data_files: Iterable[DataFile]) -> None:
        self._files = self._checked_files(data_files)

    # Naming

    def _can_name_files(self) -> bool:
        return (
            self._step_id is not None
            and self._port_name is not None
            and self._directory is not None
            and self._name is not None
        )

    def _create_data_file(self, index: int) -> DataFile:
        naming = FileNaming(
            step_id=self._step_id,
            port_name=self._port_name,
            data_name=self._name,
            format=self._format,
            file_index=index,
            part=self._part,
            compression=self._compression,
        )
        return naming.file(self._directory)

    def _rename_files(self) -> None:
        if not self._can_name_files():
            return
        if self._format.max_files_count > 1:
            self._files = [self._create_data_file(i) for i in range(len(self._files))]
        else:
            self._files = [self._create_data_file(-1)]
        logger.debug("Renamed files of data %s: %s", self._name, self._files)

    def __repr__(self) -> str:
        return (
            f"Data(name={self._name!r}, format={self._format.name!r}, "
            f"part={self._part}, metadata={self.metadata!r}, files={self._files!r})"
        )


class DataList:
    """Ordered collection of ``Data`` elements of the same format.

    Elements added with ``add_data`` share the naming context of the list.
    """

    def __init__(
        self,
        data_format: DataFormat,
        *,
        name: Optional[str] = None,
        step_id: Optional[str] = None,
        port_name: Optional[str] = None,
        directory: Optional[DirectoryType] = None,
        compression: CompressionType = CompressionType.NONE,
    ) -> None:
        if data_format is None:
            raise TypeError("data_format argument cannot be None")

        self._format = data_format
        self.name = name
        self._step_id = step_id
        self._port_name = port_name
        self._directory = directory
        self._compression = compression
        self._elements: List[Data] = []
        self.metadata: Dict[str, str] = {}

    @property
    def format(self) -> DataFormat:
        return self._format

    @property
    def is_list(self) -> bool:
        return True

    @property
    def list_elements(self) -> List[Data]:
        return list(self._elements)

    def add_data(self, name: str, part: int = -1) -> Data:
        """Create, append and return a new element."""
        if any(d.name == name and d.part == part for d in self._elements):
            raise DataViewError(f"The list already contains data {name} (part {part})")

        data = Data(
            self._format,
            name=name,
            part=part,
            step_id=self._step_id,
            port_name=self._port_name,
            directory=self._directory,
            compression=self._compression,
        )
        self._elements.append(data)
        return data

    @property
    def data_file(self) -> DataFile:
        raise DataViewError("A data list has no file, use its elements instead")

    def __iter__(self) -> Iterator[Data]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __repr__(self) -> str:
        return f"DataList(name={self.name!r}, format={self._format.name!r}, size={len(self)})"
