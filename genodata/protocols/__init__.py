"""Data protocols: the I/O backends behind ``DataFile``.

Protocols register themselves for their URI schemes with
``register_protocol``; ``DataProtocolService`` resolves a scheme to a
shared protocol instance.
"""

from genodata.protocols.base import DataProtocol
from genodata.protocols.service import (
    PROTOCOL_REGISTRY,
    DataProtocolService,
    get_protocol_service,
    register_protocol,
    set_protocol_service,
)

__all__ = [
    "PROTOCOL_REGISTRY",
    "DataProtocol",
    "DataProtocolService",
    "get_protocol_service",
    "register_protocol",
    "set_protocol_service",
]
