"""Data access layer of a genomics analysis pipeline.

Public API:
    DataFile            - protocol-bound file location (local, S3, HTTP...)
    DataFormat          - description of a file format
    DataFormatRegistry  - catalog of the known formats
    DataFormatConverter - format-aware copy and conversion
    Data, DataList      - dataset views over workflow files
    FileNaming          - workflow filename builder and parser

Example:
    >>> from genodata import DataFile, get_registry
    >>> reads = DataFile("s3://runs/reads_1.fastq.gz")
    >>> reads.data_format.name
    'reads'
"""

from genodata import files
from genodata.compression import CompressionType
from genodata.convert import DataFormatConverter
from genodata.dataset import Data, DataList
from genodata.errors import (
    ConversionError,
    DataFormatConfigurationError,
    DataIOError,
    DataViewError,
    FileNamingError,
    GenoDataError,
    UnknownProtocolError,
    UnsupportedOperationError,
)
from genodata.formats import DataFormat, DataFormatRegistry, get_registry, set_registry
from genodata.location import DataFile
from genodata.metadata import DataFileMetadata
from genodata.naming import FileNaming
from genodata.settings import DataSettings, get_settings, set_settings

__version__ = "1.0.0"

__all__ = [
    "CompressionType",
    "ConversionError",
    "Data",
    "DataFile",
    "DataFileMetadata",
    "DataFormat",
    "DataFormatConfigurationError",
    "DataFormatConverter",
    "DataFormatRegistry",
    "DataIOError",
    "DataList",
    "DataSettings",
    "DataViewError",
    "FileNaming",
    "FileNamingError",
    "GenoDataError",
    "UnknownProtocolError",
    "UnsupportedOperationError",
    "files",
    "get_registry",
    "get_settings",
    "set_registry",
    "set_settings",
]
