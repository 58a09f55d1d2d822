"""Tests for DataFile parsing, name views and filesystem operations."""

import os
import pickle
from pathlib import Path

import pytest

from genodata.compression import CompressionType
from genodata.errors import DataIOError, UnknownProtocolError, UnsupportedOperationError
from genodata.location import DataFile


class TestSourceParsing:
    """Tests for scheme and name extraction."""

    @pytest.mark.parametrize(
        "source",
        [
            "s3://bucket/key.fastq.gz",
            "relpath/key.fastq.gz",
            "/abs/path/reads_1.fq",
            "C:\\data\\reads.fastq",
            "",
            "file:///tmp/x.txt",
            "weird name with spaces.txt",
        ],
    )
    def test_source_round_trip(self, source):
        """The source string is kept verbatim."""
        assert DataFile(source).source == source
        assert str(DataFile(source)) == source

    def test_s3_source_has_scheme(self):
        data_file = DataFile("s3://bucket/key.fastq.gz")
        assert data_file.protocol_prefix_in_source == "s3"
        assert data_file.protocol.name == "s3"

    def test_relative_source_uses_default_protocol(self):
        data_file = DataFile("relpath/key.fastq.gz")
        assert data_file.protocol_prefix_in_source is None
        assert data_file.protocol.name == "file"
        assert data_file.is_local_file

    @pytest.mark.parametrize("source", ["s3://bucket/key.fastq.gz", "relpath/key.fastq.gz"])
    def test_extension_views(self, source):
        data_file = DataFile(source)
        assert data_file.name == "key.fastq.gz"
        assert data_file.extension == "fastq"
        assert data_file.compression_extension == "gz"
        assert data_file.full_extension == "fastq.gz"
        assert data_file.basename == "key"
        assert data_file.compression_type is CompressionType.GZIP

    def test_uncompressed_views(self):
        data_file = DataFile("/data/genome.fasta")
        assert data_file.extension == "fasta"
        assert data_file.compression_extension == ""
        assert data_file.full_extension == "fasta"
        assert data_file.compression_type is CompressionType.NONE

    def test_scheme_requires_colon_slash(self):
        """'c:' without '/' and 'a-b:/' are not schemes."""
        assert DataFile("c:reads.fq").protocol_prefix_in_source is None
        assert DataFile("a-b://x/y").protocol_prefix_in_source is None

    def test_none_source_rejected(self):
        with pytest.raises(TypeError):
            DataFile(None)

    def test_path_source(self, tmp_path):
        path = tmp_path / "reads_1.fastq"
        assert DataFile(path).source == str(path)

    def test_parent_and_name_constructor(self):
        assert DataFile("s3://bucket/dir", "reads.fq").source == "s3://bucket/dir/reads.fq"
        assert DataFile("/data/", "reads.fq").source == "/data/reads.fq"
        assert DataFile("", "reads.fq").source == "reads.fq"

    def test_parent_data_file_constructor(self, protocols):
        parent = DataFile("/data", protocols=protocols)
        child = DataFile(parent, "reads.fq")
        assert child.source == "/data/reads.fq"
        assert child.protocol_service is protocols


class TestUnknownProtocol:
    """A location with an unknown scheme is built but broken."""

    def test_construction_does_not_fail(self, caplog):
        data_file = DataFile("foo://bar/baz.txt")
        assert data_file.source == "foo://bar/baz.txt"
        assert data_file.name == "baz.txt"
        assert data_file.is_broken
        assert "Unknown protocol: foo" in caplog.text

    def test_first_use_raises(self):
        data_file = DataFile("foo://bar/baz.txt")
        with pytest.raises(UnknownProtocolError, match="foo"):
            data_file.open()
        with pytest.raises(UnknownProtocolError) as exc_info:
            data_file.get_metadata()
        assert exc_info.value.scheme == "foo"
        assert isinstance(exc_info.value, OSError)

    def test_exists_is_false(self):
        assert DataFile("foo://bar/baz.txt").exists() is False


class TestIdentity:
    """Equality, ordering and pickling use the raw source."""

    def test_equality_uses_source(self):
        assert DataFile("a/b.txt") == DataFile("a/b.txt")
        assert DataFile("a/../b.txt") != DataFile("b.txt")
        assert hash(DataFile("a/b.txt")) == hash(DataFile("a/b.txt"))

    def test_ordering(self):
        files = [DataFile("b.txt"), DataFile("a.txt"), DataFile("c.txt")]
        assert [f.source for f in sorted(files)] == ["a.txt", "b.txt", "c.txt"]

    def test_pickle_round_trip(self):
        data_file = DataFile("s3://bucket/reads_1.fastq.gz")
        restored = pickle.loads(pickle.dumps(data_file))
        assert restored == data_file
        assert restored.protocol.name == "s3"


class TestParent:
    """Tests for parent resolution."""

    def test_local_parent(self):
        assert DataFile("/data/run/reads.fq").parent.source == "/data/run"
        assert DataFile("/reads.fq").parent.source == "/"

    def test_s3_parent_keeps_authority(self):
        assert DataFile("s3://bucket/dir/reads.fq").parent.source == "s3://bucket/dir"


class TestStreams:
    """Tests for compression-aware streams on local files."""

    def test_create_then_open_gzip(self, tmp_path):
        data_file = DataFile(tmp_path / "reads_1.fastq.gz")
        with data_file.create() as out:
            out.write(b"@r\nACGT\n+\nIIII\n")

        with open(tmp_path / "reads_1.fastq.gz", "rb") as raw:
            assert raw.read(2) == b"\x1f\x8b"

        with DataFile(tmp_path / "reads_1.fastq.gz").open() as stream:
            assert stream.read() == b"@r\nACGT\n+\nIIII\n"

    def test_raw_open_keeps_compression(self, tmp_path):
        data_file = DataFile(tmp_path / "x.txt.bz2")
        with data_file.create() as out:
            out.write(b"hello")
        with data_file.raw_open() as raw:
            assert raw.read(3) == b"BZh"

    def test_metadata_cached(self, tmp_path):
        path = tmp_path / "x.txt"
        path.write_bytes(b"12345")
        data_file = DataFile(path)
        assert data_file.get_metadata().content_length == 5

        path.write_bytes(b"1234567890")
        assert data_file.get_metadata().content_length == 5
        assert DataFile(path).get_metadata().content_length == 10

    def test_copy_to(self, tmp_path):
        (tmp_path / "a.bin").write_bytes(b"\x00\x01\x02")
        DataFile(tmp_path / "a.bin").copy_to(DataFile(tmp_path / "b.bin"))
        assert (tmp_path / "b.bin").read_bytes() == b"\x00\x01\x02"


class TestFilesystemOperations:
    """Tests for directory, delete, rename and symlink operations."""

    def test_mkdirs_list_delete(self, tmp_path):
        root = DataFile(tmp_path / "a")
        DataFile(tmp_path / "a" / "b").mkdirs()
        (tmp_path / "a" / "f.txt").write_text("x")

        assert [f.name for f in root.list()] == ["b", "f.txt"]

        with pytest.raises(OSError):
            root.delete()
        root.delete(recursive=True)
        assert not root.exists()

    def test_mkdir_existing_fails(self, tmp_path):
        with pytest.raises(FileExistsError):
            DataFile(tmp_path).mkdir()

    def test_list_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DataFile(tmp_path / "missing").list()

    def test_rename(self, tmp_path):
        (tmp_path / "a.txt").write_text("x")
        DataFile(tmp_path / "a.txt").rename_to(DataFile(tmp_path / "b.txt"))
        assert not (tmp_path / "a.txt").exists()
        assert (tmp_path / "b.txt").read_text() == "x"

    def test_symlink_absolute(self, tmp_path):
        (tmp_path / "target.txt").write_text("x")
        DataFile(tmp_path / "target.txt").symlink(DataFile(tmp_path / "link.txt"))
        assert os.readlink(tmp_path / "link.txt") == str(tmp_path / "target.txt")

    def test_symlink_relative(self, tmp_path):
        (tmp_path / "data").mkdir()
        (tmp_path / "links").mkdir()
        (tmp_path / "data" / "target.txt").write_text("x")

        DataFile(tmp_path / "data" / "target.txt").symlink(
            DataFile(tmp_path / "links" / "link.txt"), relativize=True
        )
        assert os.readlink(tmp_path / "links" / "link.txt") == "../data/target.txt"
        assert (tmp_path / "links" / "link.txt").read_text() == "x"

    def test_symlink_already_exists(self, tmp_path):
        (tmp_path / "target.txt").write_text("x")
        (tmp_path / "link.txt").write_text("y")
        with pytest.raises(DataIOError, match="already exists"):
            DataFile(tmp_path / "target.txt").symlink(DataFile(tmp_path / "link.txt"))

    def test_broken_link_exists_without_following(self, tmp_path):
        os.symlink(tmp_path / "missing.txt", tmp_path / "link.txt")
        link = DataFile(tmp_path / "link.txt")
        assert not link.exists()
        assert link.exists(follow_link=False)
        assert link.get_metadata().is_symbolic_link

    def test_capability_error_names_capability(self):
        data_file = DataFile("http://example.org/reads.fq")
        with pytest.raises(UnsupportedOperationError, match="creating symbolic links"):
            data_file.symlink(DataFile("http://example.org/link.fq"))
        with pytest.raises(UnsupportedOperationError, match="deleting files"):
            data_file.delete()


class TestProjections:
    """Tests for path and URI conversions."""

    def test_to_path(self, tmp_path):
        assert DataFile(tmp_path / "x.txt").to_path() == tmp_path / "x.txt"
        assert DataFile("file:///tmp/x%20y.txt").to_path() == Path("/tmp/x y.txt")
        assert DataFile("s3://bucket/x.txt").to_path() is None

    def test_to_uri(self):
        assert DataFile("s3://bucket/x.txt").to_uri() == "s3://bucket/x.txt"
        assert DataFile(":/www.example.org/x").to_uri() is None

    def test_to_absolute_data_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        expected = os.path.join(os.getcwd(), "x.txt")
        assert DataFile("x.txt").to_absolute_data_file().source == expected
        assert DataFile("s3://b/x.txt").to_absolute_data_file().source == "s3://b/x.txt"

    def test_to_real_data_file(self, tmp_path):
        (tmp_path / "target.txt").write_text("x")
        os.symlink(tmp_path / "target.txt", tmp_path / "link.txt")
        real = DataFile(tmp_path / "link.txt").to_real_data_file()
        assert real.source == os.path.realpath(tmp_path / "target.txt")
