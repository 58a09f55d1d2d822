"""Programmatically defined data formats."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from genodata.formats.base import DEFAULT_CONTENT_TYPE, DataFormat
from genodata.formats.collaborators import (
    Checker,
    Generator,
    Merger,
    Splitter,
    create_generator,
    load_collaborator,
)

__all__ = ["SimpleDataFormat", "MAPPER_NAMES", "mapper_index_format", "mapper_index_formats"]

#: Mappers whose genome indexes are registered as formats
MAPPER_NAMES = ("bowtie", "bowtie2", "bwa", "gsnap", "star", "minimap2", "hisat2")


class SimpleDataFormat(DataFormat):
    """Data format built from keyword arguments.

    The first extension is the default one.

    Example:
        >>> fmt = SimpleDataFormat("bowtie2index", prefix="bowtie2index_",
        ...                        extensions=[".zip"], content_type="application/zip",
        ...                        one_file_per_analysis=True)
        >>> fmt.default_extension
        '.zip'
    """

    def __init__(
        self,
        name: str,
        *,
        prefix: str,
        extensions: Iterable[str],
        description: Optional[str] = None,
        alias: Optional[str] = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
        one_file_per_analysis: bool = False,
        design_metadata_key_name: Optional[str] = None,
        sample_metadata_key_name: Optional[str] = None,
        galaxy_format_names: Iterable[str] = (),
        max_files_count: int = 1,
        generator: Optional[str] = None,
        generator_parameters: Optional[Dict[str, str]] = None,
        checker: Optional[str] = None,
        splitter: Optional[str] = None,
        merger: Optional[str] = None,
    ) -> None:
        self._name = name
        self._prefix = prefix
        self._extensions = list(extensions)
        self._description = description
        self._alias = alias
        self._content_type = content_type
        self._one_file_per_analysis = one_file_per_analysis
        self._design_metadata_key_name = design_metadata_key_name
        self._sample_metadata_key_name = sample_metadata_key_name
        self._galaxy_format_names = list(galaxy_format_names)
        self._max_files_count = max_files_count
        self._generator = generator
        self._generator_parameters = dict(generator_parameters or {})
        self._checker = checker
        self._splitter = splitter
        self._merger = merger

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def alias(self) -> Optional[str]:
        return self._alias

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def one_file_per_analysis(self) -> bool:
        return self._one_file_per_analysis

    @property
    def design_metadata_key_name(self) -> Optional[str]:
        return self._design_metadata_key_name

    @property
    def sample_metadata_key_name(self) -> Optional[str]:
        return self._sample_metadata_key_name

    @property
    def default_extension(self) -> Optional[str]:
        return self._extensions[0] if self._extensions else None

    @property
    def extensions(self) -> List[str]:
        return list(self._extensions)

    @property
    def galaxy_format_names(self) -> List[str]:
        return list(self._galaxy_format_names)

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def max_files_count(self) -> int:
        return self._max_files_count

    @property
    def is_generator(self) -> bool:
        return self._generator is not None

    @property
    def is_checker(self) -> bool:
        return self._checker is not None

    @property
    def is_splitter(self) -> bool:
        return self._splitter is not None

    @property
    def is_merger(self) -> bool:
        return self._merger is not None

    def get_generator(self) -> Optional[Generator]:
        return create_generator(self._generator, self._generator_parameters)

    def get_checker(self) -> Optional[Checker]:
        return load_collaborator(self._checker, Checker)

    def get_splitter(self) -> Optional[Splitter]:
        return load_collaborator(self._splitter, Splitter)

    def get_merger(self) -> Optional[Merger]:
        return load_collaborator(self._merger, Merger)


def mapper_index_format(mapper_name: str) -> SimpleDataFormat:
    """Genome index format of a mapper, e.g. ``bowtie2index``."""
    mapper = mapper_name.strip().lower()
    return SimpleDataFormat(
        f"{mapper}index",
        prefix=f"{mapper}index_",
        extensions=[".zip"],
        description=f"{mapper_name} genome index",
        content_type="application/zip",
        one_file_per_analysis=True,
    )


def mapper_index_formats(mapper_names: Iterable[str] = MAPPER_NAMES) -> List[DataFormat]:
    """Compiled format provider: one index format per mapper."""
    return [mapper_index_format(name) for name in mapper_names]
