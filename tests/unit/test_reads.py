"""Tests for FASTQ/TFQ codecs and the bundled collaborators."""

import io

import pytest

from genodata.bio.collaborators import (
    GenomeDescriptionGenerator,
    ReadsChecker,
    ReadsMerger,
    ReadsSplitter,
)
from genodata.bio.reads import FastqReader, FastqWriter, ReadSequence, TfqReader, TfqWriter
from genodata.errors import ReadsParsingError
from genodata.location import DataFile


class TestFastq:
    def test_read_records(self, fastq_content):
        reads = list(FastqReader(io.StringIO(fastq_content.decode())))
        assert reads == [
            ReadSequence("read1", "ACGTACGT", "IIIIIIII"),
            ReadSequence("read2", "TTGCA", "#####"),
        ]

    def test_skips_blank_lines_between_records(self):
        reads = list(FastqReader(io.StringIO("\n@a\nAC\n+a\nII\n\n\n@b\nG\n+\nI\n")))
        assert [r.name for r in reads] == ["a", "b"]

    def test_bad_header(self):
        with pytest.raises(ReadsParsingError) as exc_info:
            list(FastqReader(io.StringIO("@a\nAC\n+\nII\nb\nAC\n+\nII\n")))
        assert exc_info.value.line == 5

    def test_truncated_record(self):
        with pytest.raises(ReadsParsingError, match="Truncated"):
            list(FastqReader(io.StringIO("@a\nAC\n+\n")))

    def test_length_mismatch(self):
        with pytest.raises(ReadsParsingError, match="lengths differ"):
            list(FastqReader(io.StringIO("@a\nACG\n+\nII\n")))

    def test_write(self):
        out = io.StringIO()
        FastqWriter(out).write(ReadSequence("a", "AC", "II"))
        assert out.getvalue() == "@a\nAC\n+\nII\n"


class TestTfq:
    def test_round_trip(self):
        out = io.StringIO()
        writer = TfqWriter(out)
        writer.write(ReadSequence("a", "AC", "II"))
        writer.write(ReadSequence("b", "G", "#"))
        assert out.getvalue() == "a\tAC\tII\nb\tG\t#\n"

        out.seek(0)
        assert [r.name for r in TfqReader(out)] == ["a", "b"]

    def test_wrong_field_count(self):
        with pytest.raises(ReadsParsingError, match="3 fields expected") as exc_info:
            list(TfqReader(io.StringIO("a\tAC\tII\nb\tG\n")))
        assert exc_info.value.line == 2


class TestCollaborators:
    def test_checker(self, tmp_path, fastq_content):
        (tmp_path / "ok.fq").write_bytes(fastq_content)
        (tmp_path / "bad.fq").write_bytes(b"not fastq\n")
        assert ReadsChecker().check(DataFile(tmp_path / "ok.fq"))
        assert not ReadsChecker().check(DataFile(tmp_path / "bad.fq"))

    def test_split_then_merge(self, tmp_path, fastq_content):
        with DataFile(tmp_path / "in.fq.gz").create() as out:
            out.write(fastq_content)

        parts = [DataFile(tmp_path / "part1.fq"), DataFile(tmp_path / "part2.fq.bz2")]
        ReadsSplitter().split(DataFile(tmp_path / "in.fq.gz"), parts)
        assert (tmp_path / "part1.fq").read_text() == "@read1\nACGTACGT\n+\nIIIIIIII\n"

        ReadsMerger().merge(parts, DataFile(tmp_path / "merged.fq"))
        assert (tmp_path / "merged.fq").read_bytes() == fastq_content

    def test_split_requires_outputs(self, tmp_path):
        with pytest.raises(ValueError):
            ReadsSplitter().split(DataFile(tmp_path / "in.fq"), [])

    def test_genome_description(self, tmp_path):
        (tmp_path / "genome.fasta").write_text(">chr1 first\nACGT\nAC\n>chr2\nG\n")
        generator = GenomeDescriptionGenerator()
        generator.configure({"input": "genome"})
        generator.generate([DataFile(tmp_path / "genome.fasta")], DataFile(tmp_path / "desc.txt"))
        assert (tmp_path / "desc.txt").read_text() == "chr1\t6\nchr2\t1\n"

    def test_genome_description_checks_input_format(self, tmp_path, registry, fastq_content):
        (tmp_path / "reads_1.fastq").write_bytes(fastq_content)
        generator = GenomeDescriptionGenerator()
        generator.configure({"input": "fasta"})

        with pytest.raises(ValueError, match="from fasta data, not reads"):
            generator.generate([DataFile(tmp_path / "reads_1.fastq")], DataFile(tmp_path / "desc.txt"))
        assert not (tmp_path / "desc.txt").exists()
