"""Copy and symlink helpers for ``DataFile`` locations."""

from __future__ import annotations

import logging

from genodata.compression import copy_stream
from genodata.location import DataFile

logger = logging.getLogger(__name__)

__all__ = ["copy", "symlink_or_copy"]


def copy(src: DataFile, dest: DataFile) -> None:
    """Copy ``src`` to ``dest``.

    Bytes are copied unchanged when both names carry the same compression;
    otherwise the content is decompressed and recompressed to match the
    name of ``dest``.
    """
    if src is None:
        raise TypeError("src argument cannot be None")
    if dest is None:
        raise TypeError("dest argument cannot be None")

    if src.compression_type == dest.compression_type:
        src.copy_to(dest)
        return

    with src.open() as input_stream, dest.create() as output_stream:
        copied = copy_stream(input_stream, output_stream)
    logger.debug(
        "Recompressed %s (%s) to %s (%s), %d bytes",
        src,
        src.compression_type.name,
        dest,
        dest.compression_type.name,
        copied,
    )


def symlink_or_copy(src: DataFile, dest: DataFile, relativize: bool = False) -> None:
    """Create ``dest`` as a symbolic link to ``src``, or copy when impossible.

    A link is only made when both locations use the same protocol, that
    protocol supports symbolic links and the compressions match.

    Args:
        src: Existing location
        dest: Location to create
        relativize: Write a link target relative to the parent of ``dest``
    """
    if src is None:
        raise TypeError("src argument cannot be None")
    if dest is None:
        raise TypeError("dest argument cannot be None")

    if src.compression_type != dest.compression_type:
        copy(src, dest)
        return

    protocol = src.protocol
    if protocol is dest.protocol and protocol.can_symlink():
        src.symlink(dest, relativize)
        return

    logger.debug("Cannot link %s from %s, copying instead", src, dest)
    copy(src, dest)
