"""Data formats defined by description files.

A format description is an XML document::

    <dataformat>
      <name>reads</name>
      <description>FASTQ reads</description>
      <alias>fastq</alias>
      <prefix>reads</prefix>
      <designmetadatakey>Reads</designmetadatakey>
      <content-type>text/plain</content-type>
      <checker>genodata.bio.collaborators.ReadsChecker</checker>
      <maxfilescount>2</maxfilescount>
      <extensions>
        <extension default="true">.fastq</extension>
        <extension>.fq</extension>
      </extensions>
      <galaxy>
        <formatname>fastqsanger</formatname>
      </galaxy>
    </dataformat>

or the equivalent YAML mapping (same keys, ``extensions`` as a list whose
items are strings or ``{extension: .fq, default: true}`` mappings, and
``galaxy`` as a list of format names). Bundled descriptions ship in the
``genodata.formats.resources`` package; more are read from the directories
listed in ``DataSettings.format_paths``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from importlib import resources
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml

from genodata.errors import DataFormatConfigurationError
from genodata.formats.base import DEFAULT_CONTENT_TYPE, MAX_FILES_COUNT, DataFormat
from genodata.formats.collaborators import (
    Checker,
    Generator,
    Merger,
    Splitter,
    create_generator,
    load_collaborator,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DirectoryFormatLoader",
    "MarkupDataFormat",
    "ResourceFormatLoader",
    "XML_EXTENSIONS",
    "YAML_EXTENSIONS",
]

XML_EXTENSIONS = (".xml",)
YAML_EXTENSIONS = (".yaml", ".yml")

PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
PREFIX_SEPARATOR = "_"

DEFAULT_MAX_FILES_COUNT = 1


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return value is not None and str(value).strip().lower() == "true"


class MarkupDataFormat(DataFormat):
    """Data format parsed from a description file.

    Build instances with ``from_xml``, ``from_yaml`` or ``from_data_file``.
    The generator is created each time ``get_generator()`` is called.
    """

    def __init__(self, values: Dict[str, Any], source: str = "<unknown>") -> None:
        self.source = source
        self._name: str = ""
        self._description: Optional[str] = None
        self._alias: Optional[str] = None
        self._prefix: str = ""
        self._one_file_per_analysis = False
        self._design_metadata_key_name: Optional[str] = None
        self._sample_metadata_key_name: Optional[str] = None
        self._content_type = DEFAULT_CONTENT_TYPE
        self._generator: Optional[str] = None
        self._generator_parameters: Dict[str, str] = {}
        self._checker: Optional[str] = None
        self._splitter: Optional[str] = None
        self._merger: Optional[str] = None
        self._extensions: List[str] = []
        self._galaxy_format_names: List[str] = []
        self._max_files_count = DEFAULT_MAX_FILES_COUNT
        self._load(values)

    def _error(self, message: str, field: str) -> DataFormatConfigurationError:
        return DataFormatConfigurationError(
            message, format_name=self._name or None, source=self.source, field=field
        )

    def _load(self, values: Dict[str, Any]) -> None:
        name = values.get("name")
        if name is None:
            raise self._error("The name of the data format is missing", "name")
        self._name = str(name).strip().lower()
        if not self._name:
            raise self._error("The name of the data format is empty", "name")

        self._description = _blank_to_none(values.get("description"))
        alias = _blank_to_none(values.get("alias"))
        self._alias = alias.lower() if alias is not None else None
        self._one_file_per_analysis = _parse_bool(values.get("onefileperanalysis"))

        self._design_metadata_key_name = _blank_to_none(values.get("designmetadatakey"))
        self._sample_metadata_key_name = _blank_to_none(values.get("samplemetadatakey"))
        if self._design_metadata_key_name is not None and self._sample_metadata_key_name is not None:
            raise self._error(
                "A data format cannot be provided by both a design metadata entry "
                "and a sample metadata entry",
                "designmetadatakey",
            )

        self._content_type = _blank_to_none(values.get("content-type")) or DEFAULT_CONTENT_TYPE

        self._generator = _blank_to_none(values.get("generator"))
        self._generator_parameters = {
            str(k): str(v) for k, v in (values.get("generator_parameters") or {}).items()
        }
        self._checker = _blank_to_none(values.get("checker"))
        self._splitter = _blank_to_none(values.get("splitter"))
        self._merger = _blank_to_none(values.get("merger"))

        max_files = values.get("maxfilescount")
        if max_files is None or str(max_files).strip() == "":
            self._max_files_count = DEFAULT_MAX_FILES_COUNT
        else:
            try:
                self._max_files_count = int(str(max_files).strip())
            except ValueError:
                raise self._error(
                    f"Invalid maximal files count for data format {self._name}: {max_files}",
                    "maxfilescount",
                ) from None
        if not 1 <= self._max_files_count <= MAX_FILES_COUNT:
            raise self._error(
                f"Invalid maximal files count for data format: {self._max_files_count}",
                "maxfilescount",
            )

        extensions: List[str] = []
        for extension, is_default in values.get("extensions") or []:
            extension = extension.strip()
            if is_default:
                extensions.insert(0, extension)
            else:
                extensions.append(extension)
        self._extensions = extensions

        self._galaxy_format_names = [
            n.strip().lower() for n in values.get("galaxy_format_names") or [] if n.strip()
        ]

        prefix = values.get("prefix")
        prefix = prefix.strip() if isinstance(prefix, str) else ""
        if prefix.endswith(PREFIX_SEPARATOR):
            prefix = prefix[: -len(PREFIX_SEPARATOR)]
        if not PREFIX_PATTERN.match(prefix):
            raise self._error(
                "The prefix of the data format is invalid (only ascii letters and "
                f"digits are allowed): {values.get('prefix')!r}",
                "prefix",
            )
        self._prefix = prefix + PREFIX_SEPARATOR

    # Parsers

    @classmethod
    def from_xml(cls, content: Union[bytes, str], source: str = "<unknown>") -> "MarkupDataFormat":
        """Parse an XML format description."""
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise DataFormatConfigurationError(
                f"Cannot parse data format description: {e}", source=source
            ) from e

        element = root if root.tag == "dataformat" else root.find(".//dataformat")
        if element is None:
            raise DataFormatConfigurationError(
                "No dataformat element found", source=source
            )

        def text(tag: str) -> Optional[str]:
            child = element.find(tag)
            if child is None:
                return None
            return "".join(child.itertext())

        values: Dict[str, Any] = {
            tag: text(tag)
            for tag in (
                "name",
                "description",
                "alias",
                "prefix",
                "onefileperanalysis",
                "designmetadatakey",
                "samplemetadatakey",
                "content-type",
                "generator",
                "checker",
                "splitter",
                "merger",
                "maxfilescount",
            )
        }

        generator = element.find("generator")
        if generator is not None:
            values["generator_parameters"] = dict(generator.attrib)

        values["extensions"] = [
            ("".join(ext.itertext()), ext.get("default", "").strip().lower() == "true")
            for block in element.iter("extensions")
            for ext in block.iter("extension")
        ]

        galaxy_names = [
            "".join(ext.itertext())
            for block in element.iter("toolshedgalaxy")
            for ext in block.iter("extension")
        ]
        galaxy_names.extend(
            "".join(ext.itertext())
            for block in element.iter("galaxy")
            for ext in block.iter("formatname")
        )
        values["galaxy_format_names"] = galaxy_names

        return cls(values, source)

    @classmethod
    def from_yaml(cls, content: Union[bytes, str], source: str = "<unknown>") -> "MarkupDataFormat":
        """Parse a YAML format description."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise DataFormatConfigurationError(
                f"Cannot parse data format description: {e}", source=source
            ) from e
        if not isinstance(data, dict):
            raise DataFormatConfigurationError(
                "A data format description must be a mapping", source=source
            )
        if "dataformat" in data and isinstance(data["dataformat"], dict):
            data = data["dataformat"]

        values: Dict[str, Any] = {
            k: (str(v) if v is not None and not isinstance(v, (dict, list, bool)) else v)
            for k, v in data.items()
        }

        generator = data.get("generator")
        if isinstance(generator, dict):
            values["generator"] = generator.get("class")
            values["generator_parameters"] = generator.get("parameters") or {}

        extensions: List[Tuple[str, bool]] = []
        for item in data.get("extensions") or []:
            if isinstance(item, dict):
                extensions.append((str(item.get("extension", "")), _parse_bool(item.get("default"))))
            else:
                extensions.append((str(item), False))
        values["extensions"] = extensions

        galaxy = data.get("galaxy") or []
        values["galaxy_format_names"] = [str(n) for n in ([galaxy] if isinstance(galaxy, str) else galaxy)]

        return cls(values, source)

    @classmethod
    def from_data_file(cls, data_file: Any) -> "MarkupDataFormat":
        """Parse the description stored at ``data_file`` (a ``DataFile``)."""
        with data_file.open() as stream:
            content = stream.read()
        name = data_file.name.lower()
        if name.endswith(YAML_EXTENSIONS):
            return cls.from_yaml(content, data_file.source)
        return cls.from_xml(content, data_file.source)

    # DataFormat

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
    def generator_parameters(self) -> Dict[str, str]:
        return dict(self._generator_parameters)

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

    def _identity(self) -> Tuple[Any, ...]:
        return super()._identity() + (
            self._generator,
            tuple(sorted(self._generator_parameters.items())),
            self._checker,
            self._splitter,
            self._merger,
        )


def _is_description_name(name: str) -> bool:
    return name.lower().endswith(XML_EXTENSIONS + YAML_EXTENSIONS)


class ResourceFormatLoader:
    """Load the format descriptions bundled in a package.

    Args:
        package: Package holding the description files
    """

    def __init__(self, package: str = "genodata.formats.resources") -> None:
        self.package = package

    def __call__(self) -> List[DataFormat]:
        result: List[DataFormat] = []
        for entry in sorted(resources.files(self.package).iterdir(), key=lambda e: e.name):
            if not entry.is_file() or not _is_description_name(entry.name):
                continue
            source = f"{self.package}/{entry.name}"
            content = entry.read_bytes()
            try:
                if entry.name.lower().endswith(YAML_EXTENSIONS):
                    result.append(MarkupDataFormat.from_yaml(content, source))
                else:
                    result.append(MarkupDataFormat.from_xml(content, source))
            except DataFormatConfigurationError as e:
                logger.warning("Cannot load data format from %s: %s", source, e.message)
        logger.debug("Loaded %d bundled data format descriptions", len(result))
        return result

    def __repr__(self) -> str:
        return f"ResourceFormatLoader({self.package!r})"


class DirectoryFormatLoader:
    """Load the format descriptions found in directories of any protocol.

    Args:
        paths: Directory sources (local paths or URLs)
    """

    def __init__(self, paths: Iterable[str], protocols: Any = None) -> None:
        self.paths = list(paths)
        self.protocols = protocols

    def __call__(self) -> List[DataFormat]:
        from genodata.location import DataFile

        result: List[DataFormat] = []
        for path in self.paths:
            directory = DataFile(path, protocols=self.protocols)
            if not directory.exists():
                logger.warning("Data format directory not found: %s", directory)
                continue

            try:
                entries = directory.list()
            except OSError as e:
                logger.warning("Cannot list data format directory %s: %s", directory, e)
                continue

            for entry in entries:
                if not _is_description_name(entry.name):
                    continue
                try:
                    result.append(MarkupDataFormat.from_data_file(entry))
                except DataFormatConfigurationError as e:
                    logger.warning("Cannot load data format from %s: %s", entry, e.message)
                except OSError as e:
                    logger.warning("Cannot read data format file %s: %s", entry, e)
        return result

    def __repr__(self) -> str:
        return f"DirectoryFormatLoader({self.paths!r})"
