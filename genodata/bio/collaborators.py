"""Collaborators of the bundled formats."""

from __future__ import annotations

import io
import logging
from itertools import cycle
from typing import TYPE_CHECKING, Dict, List, Optional

from genodata.bio.reads import FastqReader, FastqWriter
from genodata.errors import ReadsParsingError
from genodata.formats.collaborators import Checker, Generator, Merger, Splitter

if TYPE_CHECKING:
    from genodata.location import DataFile

logger = logging.getLogger(__name__)

__all__ = [
    "GenomeDescriptionGenerator",
    "ReadsChecker",
    "ReadsMerger",
    "ReadsSplitter",
]

ENCODING = "utf-8"


def _text_reader(data_file: "DataFile") -> io.TextIOWrapper:
    return io.TextIOWrapper(data_file.open(), encoding=ENCODING)


def _text_writer(data_file: "DataFile") -> io.TextIOWrapper:
    return io.TextIOWrapper(data_file.create(), encoding=ENCODING, newline="\n")


class ReadsChecker(Checker):
    """Check that a file holds well formed FASTQ records."""

    def check(self, data_file: "DataFile") -> bool:
        count = 0
        try:
            with _text_reader(data_file) as stream:
                for _ in FastqReader(stream):
                    count += 1
        except ReadsParsingError as e:
            logger.warning("Invalid reads file %s: %s", data_file, e)
            return False
        logger.debug("Checked %d reads in %s", count, data_file)
        return True


class ReadsSplitter(Splitter):
    """Distribute FASTQ records over the outputs, one record each in turn."""

    def split(self, data_file: "DataFile", outputs: List["DataFile"]) -> None:
        if not outputs:
            raise ValueError("At least one output is required to split reads")

        streams = [_text_writer(output) for output in outputs]
        try:
            writers = cycle([FastqWriter(stream) for stream in streams])
            with _text_reader(data_file) as stream:
                for read in FastqReader(stream):
                    next(writers).write(read)
        finally:
            for stream in streams:
                stream.close()


class ReadsMerger(Merger):
    """Concatenate the FASTQ records of the inputs."""

    def merge(self, inputs: List["DataFile"], output: "DataFile") -> None:
        with _text_writer(output) as out:
            writer = FastqWriter(out)
            for data_file in inputs:
                with _text_reader(data_file) as stream:
                    for read in FastqReader(stream):
                        writer.write(read)


class GenomeDescriptionGenerator(Generator):
    """Write the length of each sequence of a FASTA genome.

    Output lines are ``<sequence name>\\t<length>``. The ``input`` parameter
    names the format expected for the genome (``genome`` by default).
    """

    def __init__(self) -> None:
        self.parameters: Dict[str, str] = {}
        self.input_format = "genome"

    def configure(self, parameters: Dict[str, str]) -> None:
        self.parameters = dict(parameters)
        self.input_format = parameters.get("input") or self.input_format

    def generate(self, inputs: List["DataFile"], output: "DataFile") -> None:
        if len(inputs) != 1:
            raise ValueError("A genome description is generated from exactly one genome")

        data_format = inputs[0].data_format
        if data_format is not None and self.input_format not in (data_format.name, data_format.alias):
            raise ValueError(
                f"A genome description is generated from {self.input_format} data, "
                f"not {data_format.name}: {inputs[0]}"
            )

        lengths: Dict[str, int] = {}
        current: Optional[str] = None
        with _text_reader(inputs[0]) as stream:
            for line in stream:
                line = line.strip()
                if not line:
                    continue
                if line.startswith(">"):
                    current = line[1:].split()[0] if line[1:].strip() else ""
                    lengths[current] = 0
                elif current is not None:
                    lengths[current] += len(line)

        with _text_writer(output) as out:
            for name, length in lengths.items():
                out.write(f"{name}\t{length}\n")
