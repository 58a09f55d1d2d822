"""Format-aware copy and conversion between two locations.

``DataFormatConverter`` picks the cheapest transformation that turns the
input into the requested output:

* no output format: raw byte copy, the content is opaque
* same format and compression: protocol-level copy
* same format, other compression: decompress then recompress
* other format: record transcoding, only between FASTQ (``reads``) and
  TFQ (``tfq``)

Example:
    >>> converter = DataFormatConverter(
    ...     DataFile("s3://runs/reads_1.fastq.gz"),
    ...     DataFile("/scratch/reads_1.tfq"),
    ...     output_format=registry.get_data_format_from_name("tfq"),
    ... )
    >>> converter.convert()
"""

from __future__ import annotations

import io
import logging
import time
from typing import BinaryIO, Callable, Dict, Optional, Tuple

from genodata.bio.reads import FastqReader, FastqWriter, TfqReader, TfqWriter
from genodata.compression import CompressionType, copy_stream
from genodata.errors import ConversionError
from genodata.formats.base import DataFormat
from genodata.location import DataFile
from genodata.metadata import DataFileMetadata

logger = logging.getLogger(__name__)

__all__ = ["DataFormatConverter"]

ENCODING = "utf-8"

# Format name -> record reader / writer factory over a text stream
READERS: Dict[str, Callable] = {"reads": FastqReader, "tfq": TfqReader}
WRITERS: Dict[str, Callable] = {"reads": FastqWriter, "tfq": TfqWriter}


class DataFormatConverter:
    """Copy ``input_file`` to ``output_file``, converting when needed.

    Args:
        input_file: Location to read
        output_file: Location to write; its name decides the output
                     compression
        output_format: Format expected for the output, None for a raw copy
        output_stream: Already opened raw stream of ``output_file`` to write
                       to instead of creating one. It is closed by
                       ``convert()`` whatever the outcome.
    """

    def __init__(
        self,
        input_file: DataFile,
        output_file: DataFile,
        output_format: Optional[DataFormat] = None,
        output_stream: Optional[BinaryIO] = None,
    ) -> None:
        if input_file is None:
            raise TypeError("input_file argument cannot be None")
        if output_file is None:
            raise TypeError("output_file argument cannot be None")

        self.input_file = input_file
        self.output_file = output_file
        self.output_format = output_format
        self.output_stream = output_stream

    def convert(self) -> None:
        """Run the copy or conversion.

        Raises:
            ConversionError: If the input and output formats differ and no
                             transcoding exists between them
            OSError: On any I/O failure of the underlying protocols
        """
        start = time.monotonic()
        try:
            copied, mode = self._convert()
        finally:
            if self.output_stream is not None and not self.output_stream.closed:
                self.output_stream.close()

        elapsed = time.monotonic() - start
        context = {
            "source": self.input_file.source,
            "dest": self.output_file.source,
            "data_format": self.output_format.name if self.output_format else None,
            "elapsed": round(elapsed, 3),
        }
        if copied >= 0:
            context["bytes"] = copied
            logger.info(
                "%s %s to %s: %d bytes in %.2fs",
                mode,
                self.input_file,
                self.output_file,
                copied,
                elapsed,
                extra=context,
            )
        else:
            logger.info(
                "%s %s to %s in %.2fs",
                mode,
                self.input_file,
                self.output_file,
                elapsed,
                extra=context,
            )

    def _convert(self) -> Tuple[int, str]:
        if self.output_format is None:
            return self._raw_copy(), "Copied"

        input_format, input_compression = self._resolve_input()
        output_compression = self.output_file.compression_type

        if input_format is not None and input_format.name == self.output_format.name:
            if input_compression == output_compression:
                return self._raw_copy(), "Copied"
            return self._recompress(input_compression, output_compression), "Recompressed"

        return self._transcode(input_format, input_compression, output_compression), "Converted"

    def _resolve_input(self) -> Tuple[Optional[DataFormat], CompressionType]:
        metadata = self.input_file.get_metadata()

        data_format = metadata.data_format or self.input_file.data_format
        compression_type = CompressionType.by_content_encoding(metadata.content_encoding)
        if compression_type is None:
            compression_type = self.input_file.compression_type
        return data_format, compression_type

    def _open_output(self, compression_type: CompressionType) -> BinaryIO:
        if self.output_stream is not None:
            raw = self.output_stream
        else:
            raw = self.output_file.raw_create(
                DataFileMetadata(
                    content_type=self.output_format.content_type if self.output_format else None,
                    content_encoding=compression_type.content_encoding or None,
                    data_format=self.output_format,
                )
            )
        return compression_type.wrap_output(raw)

    def _raw_copy(self) -> int:
        """Copy bytes unchanged; -1 when the protocol copied them itself."""
        if self.output_stream is None:
            self.input_file.copy_to(self.output_file)
            return -1

        with self.input_file.raw_open() as src:
            return copy_stream(src, self.output_stream)

    def _recompress(self, input_compression: CompressionType, output_compression: CompressionType) -> int:
        with input_compression.wrap_input(self.input_file.raw_open()) as src:
            with self._open_output(output_compression) as dst:
                return copy_stream(src, dst)

    def _transcode(
        self,
        input_format: Optional[DataFormat],
        input_compression: CompressionType,
        output_compression: CompressionType,
    ) -> int:
        input_name = input_format.name if input_format is not None else None
        output_name = self.output_format.name

        if input_name not in READERS or output_name not in WRITERS:
            raise ConversionError(
                f"Conversion from {input_name or 'unknown format'} to {output_name} "
                "is not supported",
                input_format=input_name,
                output_format=output_name,
                suggestion="Only conversions between reads (FASTQ) and tfq are available",
            )

        count = 0
        with io.TextIOWrapper(
            input_compression.wrap_input(self.input_file.raw_open()), encoding=ENCODING
        ) as src:
            with io.TextIOWrapper(
                self._open_output(output_compression), encoding=ENCODING, newline="\n"
            ) as dst:
                writer = WRITERS[output_name](dst)
                for read in READERS[input_name](src):
                    writer.write(read)
                    count += 1

        logger.debug("Converted %d reads from %s to %s", count, input_name, output_name)
        return -1
