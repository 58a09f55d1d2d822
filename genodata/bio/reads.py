"""Read sequence codecs: FASTQ and TFQ.

TFQ stores one read per line as ``name<TAB>sequence<TAB>quality``.
Readers iterate over ``ReadSequence`` records of a text stream; writers
append records to a text stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, TextIO

from genodata.errors import ReadsParsingError

__all__ = [
    "FastqReader",
    "FastqWriter",
    "ReadSequence",
    "TfqReader",
    "TfqWriter",
]


@dataclass(frozen=True)
class ReadSequence:
    """One sequencing read."""

    name: str
    sequence: str
    quality: str

    def validate(self) -> None:
        if not self.name:
            raise ReadsParsingError("Read without name")
        if len(self.sequence) != len(self.quality):
            raise ReadsParsingError(
                f"Sequence and quality lengths differ for read {self.name}",
                details={"sequence": len(self.sequence), "quality": len(self.quality)},
            )


class FastqReader:
    """Iterate over the records of a FASTQ stream.

    Example:
        >>> with data_file.open() as raw:
        ...     for read in FastqReader(io.TextIOWrapper(raw)):
        ...         print(read.name)
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self.line_number = 0

    def _readline(self) -> str:
        line = self.stream.readline()
        if line:
            self.line_number += 1
        return line

    def __iter__(self) -> Iterator[ReadSequence]:
        while True:
            header = self._readline()
            while header and not header.strip():
                header = self._readline()
            if not header:
                return

            if not header.startswith("@"):
                raise ReadsParsingError(
                    "Invalid FASTQ record header, '@' expected", line=self.line_number
                )
            sequence = self._readline()
            separator = self._readline()
            quality = self._readline()
            if not quality:
                raise ReadsParsingError("Truncated FASTQ record", line=self.line_number)
            if not separator.startswith("+"):
                raise ReadsParsingError(
                    "Invalid FASTQ record separator, '+' expected", line=self.line_number - 1
                )

            read = ReadSequence(
                header[1:].rstrip("\r\n"), sequence.rstrip("\r\n"), quality.rstrip("\r\n")
            )
            read.validate()
            yield read


class FastqWriter:
    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def write(self, read: ReadSequence) -> None:
        self.stream.write(f"@{read.name}\n{read.sequence}\n+\n{read.quality}\n")


class TfqReader:
    """Iterate over the records of a TFQ stream."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def __iter__(self) -> Iterator[ReadSequence]:
        for line_number, line in enumerate(self.stream, start=1):
            line = line.rstrip("\r\n")
            if not line:
                continue
            fields = line.split("\t")
            if len(fields) != 3:
                raise ReadsParsingError(
                    f"Invalid TFQ record, 3 fields expected, found {len(fields)}",
                    line=line_number,
                )
            read = ReadSequence(*fields)
            read.validate()
            yield read


class TfqWriter:
    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def write(self, read: ReadSequence) -> None:
        self.stream.write(f"{read.name}\t{read.sequence}\t{read.quality}\n")
