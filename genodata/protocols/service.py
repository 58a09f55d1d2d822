"""Registry of data protocols keyed by URI scheme."""

from __future__ import annotations

import importlib
import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Type

from genodata.settings import DataSettings, get_settings

if TYPE_CHECKING:
    from genodata.protocols.base import DataProtocol

logger = logging.getLogger(__name__)

__all__ = [
    "PROTOCOL_REGISTRY",
    "DataProtocolService",
    "get_protocol_service",
    "register_protocol",
    "set_protocol_service",
]

ProtocolFactory = Callable[[Optional[DataSettings]], "DataProtocol"]

PROTOCOL_REGISTRY: Dict[str, ProtocolFactory] = {}

# Modules whose import registers the bundled protocols
BUILTIN_PROTOCOL_MODULES = (
    "genodata.protocols.file",
    "genodata.protocols.s3",
    "genodata.protocols.fsspec_protocol",
)


def register_protocol(*schemes: str) -> Callable[[Type], Type]:
    """Class decorator registering a protocol for one or more schemes.

    Example:
        @register_protocol("s3", "s3a")
        class S3DataProtocol(DataProtocol):
            ...
    """

    def decorator(cls: Type) -> Type:
        for scheme in schemes:
            PROTOCOL_REGISTRY[scheme.lower()] = cls
        return cls

    return decorator


def _load_builtin_protocols() -> None:
    for module in BUILTIN_PROTOCOL_MODULES:
        importlib.import_module(module)


class DataProtocolService:
    """Resolve scheme prefixes to protocol instances.

    Instances are created on first request and cached, so every location
    of one scheme shares the same stateless protocol object.
    """

    def __init__(
        self,
        settings: Optional[DataSettings] = None,
        factories: Optional[Dict[str, ProtocolFactory]] = None,
    ) -> None:
        if factories is None:
            _load_builtin_protocols()
            factories = PROTOCOL_REGISTRY
        self.settings = settings
        self._factories: Dict[str, ProtocolFactory] = dict(factories)
        self._instances: Dict[str, "DataProtocol"] = {}
        self._lock = threading.Lock()

    def register(self, scheme: str, factory: ProtocolFactory) -> None:
        """Add or replace the protocol of ``scheme`` in this service."""
        with self._lock:
            self._factories[scheme.lower()] = factory
            self._instances.pop(scheme.lower(), None)

    def is_service(self, scheme: str) -> bool:
        return scheme is not None and scheme.lower() in self._factories

    def schemes(self) -> List[str]:
        return sorted(self._factories)

    def get(self, scheme: Optional[str]) -> Optional["DataProtocol"]:
        """Return the protocol of ``scheme``, or None if it is unknown."""
        if scheme is None:
            return None
        key = scheme.lower()
        instance = self._instances.get(key)
        if instance is not None:
            return instance

        factory = self._factories.get(key)
        if factory is None:
            return None

        with self._lock:
            instance = self._instances.get(key)
            if instance is None:
                instance = factory(self.settings)
                self._instances[key] = instance
        return instance

    @property
    def default_protocol_name(self) -> str:
        if self.settings is not None:
            return self.settings.default_protocol
        return get_settings().default_protocol

    @property
    def default_protocol(self) -> "DataProtocol":
        protocol = self.get(self.default_protocol_name)
        if protocol is None:
            raise LookupError(f"Default protocol not found: {self.default_protocol_name}")
        return protocol


_service: Optional[DataProtocolService] = None
_service_lock = threading.Lock()


def get_protocol_service() -> DataProtocolService:
    """Return the process-wide protocol service."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = DataProtocolService()
    return _service


def set_protocol_service(service: Optional[DataProtocolService]) -> None:
    """Replace the process-wide protocol service (None resets it)."""
    global _service
    with _service_lock:
        _service = service
