"""Local filesystem protocol."""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, List, Optional
from urllib.parse import unquote, urlparse

from genodata.compression import CompressionType
from genodata.errors import DataIOError
from genodata.metadata import DataFileMetadata
from genodata.protocols.base import DataProtocol
from genodata.protocols.service import register_protocol

if TYPE_CHECKING:
    from genodata.location import DataFile

logger = logging.getLogger(__name__)

__all__ = ["FileDataProtocol"]

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@register_protocol("file")
class FileDataProtocol(DataProtocol):
    """Protocol for paths of the local filesystem.

    Sources may be plain paths (``/data/reads.fastq``, ``reads.fastq``) or
    ``file:`` URLs (``file:///data/reads.fastq``).
    """

    is_local = True

    @property
    def name(self) -> str:
        return "file"

    def source_as_path(self, data_file: "DataFile") -> Path:
        source = data_file.source
        if source.startswith("file:"):
            return Path(unquote(urlparse(source).path))
        return Path(source)

    def get_data(self, src: "DataFile") -> BinaryIO:
        return open(self.source_as_path(src), "rb")

    def put_data(
        self, dest: "DataFile", metadata: Optional[DataFileMetadata] = None
    ) -> BinaryIO:
        return open(self.source_as_path(dest), "wb")

    def copy_data(self, src: "DataFile", dest: "DataFile") -> int:
        if src.is_local_file:
            src_path = self.source_as_path(src)
            shutil.copyfile(src_path, self.source_as_path(dest))
            return src_path.stat().st_size
        return super().copy_data(src, dest)

    def get_metadata(self, src: "DataFile") -> DataFileMetadata:
        path = self.source_as_path(src)

        # Broken symbolic link: only the link target is known
        if path.is_symlink() and not path.exists():
            return DataFileMetadata(symbolic_link=src.derive(os.readlink(path)))

        if not path.exists():
            raise FileNotFoundError(f"File not found: {src}")

        stat = path.stat()
        result = DataFileMetadata(
            content_length=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            directory=path.is_dir(),
        )

        data_format = src.registry.get_data_format_from_filename(src.name)
        result.data_format = data_format
        if data_format is not None:
            result.content_type = data_format.content_type
        else:
            guessed, _ = mimetypes.guess_type(
                CompressionType.remove_compression_extension(src.name)
            )
            result.content_type = guessed or DEFAULT_CONTENT_TYPE

        result.content_encoding = CompressionType.by_filename(src.name).content_encoding

        if path.is_symlink():
            result.symbolic_link = src.derive(os.readlink(path))

        return result

    def exists(self, src: "DataFile", follow_link: bool = True) -> bool:
        path = self.source_as_path(src)
        if follow_link:
            return path.exists()
        return os.path.lexists(path)

    def can_mkdir(self) -> bool:
        return True

    def can_delete(self) -> bool:
        return True

    def can_list(self) -> bool:
        return True

    def can_rename(self) -> bool:
        return True

    def can_symlink(self) -> bool:
        return True

    def mkdir(self, dir: "DataFile") -> None:
        self.source_as_path(dir).mkdir()

    def mkdirs(self, dir: "DataFile") -> None:
        self.source_as_path(dir).mkdir(parents=True, exist_ok=True)

    def delete(self, data_file: "DataFile", recursive: bool = False) -> None:
        path = self.source_as_path(data_file)

        if path.resolve() == Path(path.anchor or "/"):
            raise DataIOError(f"Cannot remove root directory: {data_file}")

        if path.is_symlink():
            path.unlink()
        elif not path.exists():
            raise FileNotFoundError(f"File not found: {data_file}")
        elif path.is_dir():
            if recursive:
                shutil.rmtree(path)
            else:
                path.rmdir()
        else:
            path.unlink()
        logger.debug("Deleted %s", data_file)

    def list(self, dir: "DataFile") -> List["DataFile"]:
        path = self.source_as_path(dir)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {dir}")
        if not path.is_dir():
            raise NotADirectoryError(f"The file is not a directory: {dir}")
        return [dir.child(name) for name in sorted(os.listdir(path))]

    def rename(self, src: "DataFile", dest: "DataFile") -> None:
        if dest.protocol.name != self.name:
            raise DataIOError(
                f"Cannot rename {src} to {dest}: destination is not a local file"
            )
        os.rename(self.source_as_path(src), self.source_as_path(dest))

    def symlink(self, target: "DataFile", link: "DataFile") -> None:
        if link.protocol.name != self.name:
            raise DataIOError(f"The link is not a local file: {link}")
        if target.protocol.name != self.name:
            raise DataIOError(f"The target of the link is not a local file: {target}")

        link_path = self.source_as_path(link)
        if os.path.lexists(link_path):
            raise DataIOError(f"The symlink already exists: {link}")

        os.symlink(self.source_as_path(target), link_path)
        logger.debug("Created symbolic link %s -> %s", link, target)
