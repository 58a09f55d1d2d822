"""Data format descriptions and their registry."""

from genodata.formats.base import DEFAULT_CONTENT_TYPE, MAX_FILES_COUNT, DataFormat
from genodata.formats.collaborators import Checker, Generator, Merger, Splitter
from genodata.formats.markup import DirectoryFormatLoader, MarkupDataFormat, ResourceFormatLoader
from genodata.formats.registry import DataFormatRegistry, get_registry, set_registry
from genodata.formats.simple import SimpleDataFormat, mapper_index_format, mapper_index_formats

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "MAX_FILES_COUNT",
    "Checker",
    "DataFormat",
    "DataFormatRegistry",
    "DirectoryFormatLoader",
    "Generator",
    "MarkupDataFormat",
    "Merger",
    "ResourceFormatLoader",
    "SimpleDataFormat",
    "Splitter",
    "get_registry",
    "mapper_index_format",
    "mapper_index_formats",
    "set_registry",
]
