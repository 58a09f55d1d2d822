"""Collaborator roles attached to data formats.

A format may name a generator (creates a missing file of the format), a
checker (validates file contents), a splitter and a merger (partition and
reassemble multi-part datasets). Collaborators are referenced by class name
and instantiated on request; a class that cannot be loaded is logged and
treated as absent.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional, Type, TypeVar

if TYPE_CHECKING:
    from genodata.location import DataFile

logger = logging.getLogger(__name__)

__all__ = [
    "Checker",
    "Generator",
    "Merger",
    "Splitter",
    "create_generator",
    "load_collaborator",
    "load_collaborator_class",
]

T = TypeVar("T")


class Generator(ABC):
    """Produce a file of a format from other files."""

    def configure(self, parameters: Dict[str, str]) -> None:
        """Receive the parameters declared with the generator."""

    @abstractmethod
    def generate(self, inputs: List["DataFile"], output: "DataFile") -> None:
        """Write ``output`` from ``inputs``."""


class Checker(ABC):
    """Validate the content of a file."""

    @abstractmethod
    def check(self, data_file: "DataFile") -> bool:
        """Return True when ``data_file`` is valid for the format."""


class Splitter(ABC):
    """Split one file into several parts."""

    @abstractmethod
    def split(self, data_file: "DataFile", outputs: List["DataFile"]) -> None:
        """Distribute the content of ``data_file`` over ``outputs``."""


class Merger(ABC):
    """Merge several parts into one file."""

    @abstractmethod
    def merge(self, inputs: List["DataFile"], output: "DataFile") -> None:
        """Concatenate the content of ``inputs`` into ``output``."""


def load_collaborator_class(class_name: str) -> type:
    """Import a class from ``package.module.Class`` or ``package.module:Class``.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the module has no such class
        ValueError: If ``class_name`` is not qualified
    """
    if ":" in class_name:
        module_name, _, attr = class_name.partition(":")
    else:
        module_name, _, attr = class_name.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Class name must be qualified with its module: {class_name}")

    module = importlib.import_module(module_name)
    return getattr(module, attr)


def load_collaborator(class_name: Optional[str], role: Type[T]) -> Optional[T]:
    """Instantiate the collaborator ``class_name`` expected to play ``role``.

    Returns:
        The collaborator, or None when ``class_name`` is empty or the class
        cannot be loaded or instantiated
    """
    if not class_name:
        return None

    try:
        cls = load_collaborator_class(class_name)
        instance = cls()
    except Exception:
        logger.exception("Cannot create %s %s", role.__name__.lower(), class_name)
        return None

    if not isinstance(instance, role):
        logger.error(
            "Class %s is not a %s, it will be ignored", class_name, role.__name__.lower()
        )
        return None
    return instance


def create_generator(class_name: Optional[str], parameters: Dict[str, str]) -> Optional[Generator]:
    """Instantiate and configure the generator ``class_name``.

    A generator rejecting its parameters is logged and treated as absent.
    """
    generator = load_collaborator(class_name, Generator)
    if generator is None:
        return None
    try:
        generator.configure(dict(parameters))
    except Exception:
        logger.exception("Cannot configure generator %s", class_name)
        return None
    return generator
