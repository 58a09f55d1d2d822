"""Catalog of data formats.

The registry resolves filenames, names, aliases and Galaxy format names to
``DataFormat`` descriptions. It is filled by a two-phase load: compiled
providers first, then markup providers (format description files). Every
description is validated before being accepted; a rejected description is
logged and the load goes on with the others.

Example:
    >>> registry = DataFormatRegistry(compiled_providers=[mapper_index_formats])
    >>> registry.reload()
    >>> registry.get_data_format_from_filename("bowtie2index_1.zip").name
    'bowtie2index'

``get_registry()`` returns the process-wide registry, built on first access
from the bundled formats and the directories of ``DataSettings.format_paths``.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from genodata.compression import CompressionType
from genodata.errors import DataFormatConfigurationError
from genodata.formats.base import MAX_FILES_COUNT, DataFormat

logger = logging.getLogger(__name__)

__all__ = [
    "DataFormatRegistry",
    "FormatProvider",
    "KEY_SEPARATOR",
    "default_registry",
    "get_registry",
    "set_registry",
]

#: Separator of the (prefix, extension) lookup keys
KEY_SEPARATOR = "\t"

FormatProvider = Callable[[], Iterable[DataFormat]]


def _key(prefix: str, extension: str) -> str:
    return prefix + KEY_SEPARATOR + extension


class DataFormatRegistry:
    """Validated catalog of data formats.

    Args:
        compiled_providers: Callables returning programmatically defined formats
        markup_providers: Callables returning formats parsed from description files

    Formats may only be registered while the registry is loading, that is
    from the providers during ``reload()``. Lookups after the load need no
    locking; registrations should be limited to startup.
    """

    def __init__(
        self,
        compiled_providers: Iterable[FormatProvider] = (),
        markup_providers: Iterable[FormatProvider] = (),
    ) -> None:
        self._compiled_providers: List[FormatProvider] = list(compiled_providers)
        self._markup_providers: List[FormatProvider] = list(markup_providers)

        self._formats: List[DataFormat] = []
        self._formats_by_name: Dict[str, DataFormat] = {}
        self._formats_by_key: Dict[str, DataFormat] = {}
        self._design_metadata_formats: Dict[str, DataFormat] = {}
        self._sample_metadata_formats: Dict[str, DataFormat] = {}

        self._loading = False
        self._markup_loading = False
        self._load_lock = threading.RLock()

    @classmethod
    def from_formats(cls, *formats: DataFormat) -> "DataFormatRegistry":
        """Build and load a registry holding ``formats``."""
        registry = cls(compiled_providers=[lambda: list(formats)])
        registry.reload()
        return registry

    # Loading

    def reload(self) -> None:
        """Register the formats of every provider.

        Formats already registered are kept; equal descriptions are ignored.
        """
        with self._load_lock:
            self._loading = True
            try:
                for provider in self._compiled_providers:
                    self._register_provider(provider)

                # Markup loading may resolve locations, which may use this registry
                if not self._markup_loading:
                    self._markup_loading = True
                    try:
                        for provider in self._markup_providers:
                            self._register_provider(provider)
                    finally:
                        self._markup_loading = False
            finally:
                self._loading = False

        logger.debug("Data format registry holds %d formats", len(self._formats))

    def _register_provider(self, provider: FormatProvider) -> None:
        try:
            formats = list(provider())
        except (DataFormatConfigurationError, OSError) as e:
            logger.error("Cannot load data formats from %r: %s", provider, e)
            return

        for data_format in formats:
            try:
                logger.debug("Try to register format: %s", data_format)
                self.register(data_format)
            except DataFormatConfigurationError as e:
                logger.warning(
                    "Cannot register data format %s: %s",
                    getattr(data_format, "name", data_format),
                    e.message,
                )

    @property
    def is_loading(self) -> bool:
        return self._loading

    # Registration

    def register(self, data_format: Optional[DataFormat]) -> None:
        """Validate and index ``data_format``.

        ``None`` and descriptions equal to a registered one are ignored.

        Raises:
            DataFormatConfigurationError: If the description is invalid or
                the registry is not loading
        """
        if data_format is None or data_format in self._formats:
            return

        if not self._loading:
            raise DataFormatConfigurationError(
                f"The data format {data_format.name} is not registered by a "
                "format provider. Cannot register it.",
                format_name=data_format.name,
                suggestion="Pass the format through the compiled or markup "
                "providers of the registry",
            )

        self.check(data_format)

        self._formats.append(data_format)
        self._formats_by_name[data_format.name] = data_format
        for extension in data_format.extensions:
            self._formats_by_key[_key(data_format.prefix, extension)] = data_format
        if data_format.design_metadata_key_name is not None:
            self._design_metadata_formats[data_format.design_metadata_key_name] = data_format
        if data_format.sample_metadata_key_name is not None:
            self._sample_metadata_formats[data_format.sample_metadata_key_name] = data_format

    def check(self, data_format: DataFormat) -> None:
        """Validate ``data_format`` against the registered formats.

        Raises:
            DataFormatConfigurationError: On the first rule ``data_format`` breaks
        """
        name = data_format.name

        def fail(message: str, field: str) -> None:
            raise DataFormatConfigurationError(message, format_name=name, field=field)

        if not name:
            fail(f"The data format {type(data_format).__name__} has no name", "name")
        if name.strip().lower() != name:
            fail(
                f"The data format name cannot contain upper case or surrounding "
                f"space characters: {name!r}",
                "name",
            )
        if name in self._formats_by_name:
            fail(f"A data format named {name} is already registered", "name")

        prefix = data_format.prefix
        if not prefix:
            fail(f"The prefix of a data format cannot be null or empty ({name})", "prefix")
        if KEY_SEPARATOR in prefix:
            fail(f"The prefix of a data format cannot contain tab character: {prefix!r}", "prefix")

        extensions = data_format.extensions
        if not extensions:
            fail(f"The extensions of the data format {name} cannot be empty", "extensions")

        default_extension = data_format.default_extension
        if not default_extension:
            fail(f"No default extension is provided for data format {name}", "extensions")

        for extension in extensions:
            if not extension:
                fail(f"An extension of the data format {name} is empty", "extensions")
            if KEY_SEPARATOR in extension:
                fail(
                    f"The extension of a data format cannot contain tab character: {extension!r}",
                    "extensions",
                )
            other = self._formats_by_key.get(_key(prefix, extension))
            if other is not None:
                fail(
                    f'The registry already contains the format {other.name} for prefix '
                    f'"{prefix}" and extension "{extension}"',
                    "extensions",
                )

        if default_extension not in extensions:
            fail(
                f'The default extension of data format "{name}" is not in the list '
                "of extensions",
                "extensions",
            )

        if not 1 <= data_format.max_files_count <= MAX_FILES_COUNT:
            fail(
                f"The maximum number of files of data format {name} must be between "
                f"1 and {MAX_FILES_COUNT}: {data_format.max_files_count}",
                "maxfilescount",
            )

        design_key = data_format.design_metadata_key_name
        sample_key = data_format.sample_metadata_key_name
        if design_key is not None and sample_key is not None:
            fail(
                f"The data format {name} cannot be defined from both design and "
                "sample metadata",
                "designmetadatakey",
            )
        if design_key is not None and design_key in self._design_metadata_formats:
            fail(f"The design metadata key {design_key} is already used", "designmetadatakey")
        if sample_key is not None and sample_key in self._sample_metadata_formats:
            fail(f"The sample metadata key {sample_key} is already used", "samplemetadatakey")

    # Lookups

    def get_data_format_from_prefix_and_extension(
        self, prefix: str, extension: str
    ) -> Optional[DataFormat]:
        if prefix is None:
            raise TypeError("The prefix is None")
        if extension is None:
            raise TypeError("The extension is None")
        return self._formats_by_key.get(_key(prefix, extension))

    def get_data_format_from_filename(self, filename: str) -> Optional[DataFormat]:
        """Resolve the format of a ``<prefix>_<token>.<ext>[.gz]`` filename.

        When the (prefix, extension) key is unknown, the first format declared
        in the design file whose extensions contain the extension is returned.
        """
        if filename is None:
            raise TypeError("The filename is None")

        f = CompressionType.remove_compression_extension(filename.strip())
        dot = f.rfind(".")
        if dot == -1:
            return None

        extension = f[dot:]
        underscore = f.rfind("_", 0, dot)
        if underscore != -1:
            data_format = self._formats_by_key.get(_key(f[: underscore + 1], extension))
            if data_format is not None:
                return data_format

        for data_format in self._formats:
            if data_format.data_format_from_design_file and extension in data_format.extensions:
                return data_format

        return None

    def get_data_format_from_name(self, name: Optional[str]) -> Optional[DataFormat]:
        if name is None:
            return None
        return self._formats_by_name.get(name)

    def get_data_format_from_alias(self, alias: Optional[str]) -> Optional[DataFormat]:
        if alias is None:
            return None
        lowered = alias.lower()
        for data_format in self._formats:
            if data_format.alias is not None and data_format.alias == lowered:
                return data_format
        return None

    def get_data_format_from_galaxy_format_name(
        self, format_name: Optional[str]
    ) -> Optional[DataFormat]:
        if not format_name:
            return None
        lowered = format_name.lower()
        for data_format in self._formats:
            if lowered in data_format.galaxy_format_names:
                return data_format
        return None

    def get_data_format_from_name_or_alias(self, name: Optional[str]) -> Optional[DataFormat]:
        return self.get_data_format_from_name(name) or self.get_data_format_from_alias(name)

    def get_data_format_from_galaxy_format_name_or_name_or_alias(
        self, name: Optional[str]
    ) -> Optional[DataFormat]:
        return self.get_data_format_from_galaxy_format_name(
            name
        ) or self.get_data_format_from_name_or_alias(name)

    def get_data_formats_from_extension(self, extension: Optional[str]) -> Set[DataFormat]:
        """Formats declaring ``extension`` (without compression extension)."""
        if extension is None:
            return set()
        return {df for df in self._formats if extension in df.extensions}

    def get_all_formats(self) -> Set[DataFormat]:
        return set(self._formats)

    def get_data_format_for_design_metadata(self, key: Optional[str]) -> Optional[DataFormat]:
        if key is None:
            return None
        return self._design_metadata_formats.get(key)

    def get_data_format_for_sample_metadata(self, key: Optional[str]) -> Optional[DataFormat]:
        if key is None:
            return None
        return self._sample_metadata_formats.get(key)

    def get_design_metadata_key_for_data_format(
        self, metadata_keys: Optional[Iterable[str]], data_format: Optional[DataFormat]
    ) -> Optional[str]:
        """First design metadata key of ``metadata_keys`` bound to ``data_format``.

        ``metadata_keys`` may be a mapping of design metadata.
        """
        if metadata_keys is None or data_format is None:
            return None
        for key in metadata_keys:
            if data_format == self.get_data_format_for_design_metadata(key):
                return key
        return None

    def get_sample_metadata_key_for_data_format(
        self, metadata_keys: Optional[Iterable[str]], data_format: Optional[DataFormat]
    ) -> Optional[str]:
        """First sample metadata key of ``metadata_keys`` bound to ``data_format``."""
        if metadata_keys is None or data_format is None:
            return None
        for key in metadata_keys:
            if data_format == self.get_data_format_for_sample_metadata(key):
                return key
        return None

    def is_one_file_per_analysis(self, name: str) -> bool:
        """Whether the format ``name`` (or alias) has a single file for a whole run.

        Raises:
            KeyError: If no such format is registered
        """
        data_format = self.get_data_format_from_name_or_alias(name)
        if data_format is None:
            raise KeyError(f"Unknown data format: {name}")
        return data_format.one_file_per_analysis

    def __contains__(self, data_format: object) -> bool:
        return data_format in self._formats

    def __iter__(self) -> Iterator[DataFormat]:
        return iter(list(self._formats))

    def __len__(self) -> int:
        return len(self._formats)


def default_registry() -> DataFormatRegistry:
    """Registry with the bundled formats and the configured format directories."""
    from genodata.formats.markup import DirectoryFormatLoader, ResourceFormatLoader
    from genodata.formats.simple import mapper_index_formats
    from genodata.settings import get_settings

    return DataFormatRegistry(
        compiled_providers=[mapper_index_formats],
        markup_providers=[
            ResourceFormatLoader(),
            DirectoryFormatLoader(get_settings().format_paths),
        ],
    )


_registry: Optional[DataFormatRegistry] = None
_building: Optional[DataFormatRegistry] = None
_registry_lock = threading.RLock()


def get_registry() -> DataFormatRegistry:
    """Return the process-wide registry, loading it on first access.

    While the registry loads, the loading thread gets the registry under
    construction; other threads wait for the load to finish.
    """
    global _registry, _building
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                if _building is not None:
                    return _building
                _building = default_registry()
                try:
                    _building.reload()
                    _registry = _building
                finally:
                    _building = None
    return _registry


def set_registry(registry: Optional[DataFormatRegistry]) -> None:
    """Replace the process-wide registry (None rebuilds it on next access)."""
    global _registry
    with _registry_lock:
        _registry = registry
