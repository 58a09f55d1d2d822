"""Unit tests for the S3 protocol with moto mocking."""

import gzip
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from genodata.errors import DataIOError, UnsupportedOperationError
from genodata.location import DataFile
from genodata.protocols.s3 import S3DataProtocol, _should_retry
from genodata.settings import DataSettings


def _client_error(code, status):
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "PutObject",
    )


class TestS3Streams:
    """Tests for reading and writing objects."""

    def test_create_uploads_on_close(self, s3_bucket, registry):
        data_file = DataFile("s3://test-bucket/run1/reads_1.fastq.gz")
        with data_file.create() as out:
            out.write(b"@r\nACGT\n+\nIIII\n")

        head = s3_bucket.head_object(Bucket="test-bucket", Key="run1/reads_1.fastq.gz")
        assert head["ContentEncoding"] == "gzip"
        assert head["ContentType"] == "text/plain"

        with DataFile("s3://test-bucket/run1/reads_1.fastq.gz").open() as stream:
            assert stream.read() == b"@r\nACGT\n+\nIIII\n"

    def test_open_decodes_stored_content_encoding(self, s3_bucket, registry, fastq_content):
        """The stored Content-Encoding wins over an uncompressed name."""
        s3_bucket.put_object(
            Bucket="test-bucket",
            Key="reads_1.fastq",
            Body=gzip.compress(fastq_content),
            ContentEncoding="gzip",
        )

        with DataFile("s3://test-bucket/reads_1.fastq").open() as stream:
            assert stream.read() == fastq_content

    def test_open_missing_object(self, s3_bucket):
        with pytest.raises(FileNotFoundError):
            DataFile("s3://test-bucket/missing.txt").raw_open()

    def test_metadata(self, s3_bucket, registry):
        s3_bucket.put_object(Bucket="test-bucket", Key="genome.fasta", Body=b">chr1\nACGT\n")
        metadata = DataFile("s3://test-bucket/genome.fasta").get_metadata()
        assert metadata.content_length == 11
        assert metadata.data_format.name == "genome"
        assert metadata.last_modified is not None
        assert not metadata.is_directory

    def test_prefix_is_directory(self, s3_bucket):
        s3_bucket.put_object(Bucket="test-bucket", Key="dir/a.txt", Body=b"a")
        assert DataFile("s3://test-bucket/dir").get_metadata().is_directory
        assert DataFile("s3://test-bucket/dir").exists()
        assert not DataFile("s3://test-bucket/other").exists()

    def test_server_side_copy(self, s3_bucket):
        s3_bucket.put_object(Bucket="test-bucket", Key="a.txt", Body=b"hello")
        DataFile("s3://test-bucket/a.txt").copy_to(DataFile("s3://test-bucket/b/a.txt"))
        body = s3_bucket.get_object(Bucket="test-bucket", Key="b/a.txt")["Body"].read()
        assert body == b"hello"

    def test_copy_from_local(self, s3_bucket, tmp_path):
        (tmp_path / "a.txt").write_bytes(b"local")
        DataFile(tmp_path / "a.txt").copy_to(DataFile("s3://test-bucket/a.txt"))
        body = s3_bucket.get_object(Bucket="test-bucket", Key="a.txt")["Body"].read()
        assert body == b"local"


class TestS3PrefixOperations:
    """Tests for list and delete on key prefixes."""

    def test_list(self, s3_bucket):
        for key in ("run/a.txt", "run/b.txt", "run/sub/c.txt", "other/d.txt"):
            s3_bucket.put_object(Bucket="test-bucket", Key=key, Body=b"x")

        names = [f.source for f in DataFile("s3://test-bucket/run").list()]
        assert names == [
            "s3://test-bucket/run/a.txt",
            "s3://test-bucket/run/b.txt",
            "s3://test-bucket/run/sub",
        ]

    def test_list_missing_prefix(self, s3_bucket):
        with pytest.raises(FileNotFoundError):
            DataFile("s3://test-bucket/nothing").list()

    def test_delete_object(self, s3_bucket):
        s3_bucket.put_object(Bucket="test-bucket", Key="a.txt", Body=b"x")
        DataFile("s3://test-bucket/a.txt").delete()
        assert s3_bucket.list_objects_v2(Bucket="test-bucket").get("KeyCount") == 0

    def test_delete_recursive(self, s3_bucket):
        for key in ("run/a.txt", "run/sub/b.txt", "keep.txt"):
            s3_bucket.put_object(Bucket="test-bucket", Key=key, Body=b"x")
        DataFile("s3://test-bucket/run").delete(recursive=True)
        keys = [o["Key"] for o in s3_bucket.list_objects_v2(Bucket="test-bucket")["Contents"]]
        assert keys == ["keep.txt"]

    def test_delete_missing(self, s3_bucket):
        with pytest.raises(FileNotFoundError):
            DataFile("s3://test-bucket/missing.txt").delete()

    def test_bucket_cannot_be_deleted(self, s3_bucket):
        with pytest.raises(DataIOError, match="bucket"):
            DataFile("s3://test-bucket").delete(recursive=True)

    def test_mkdir_unsupported(self, s3_bucket):
        with pytest.raises(UnsupportedOperationError, match="creating directories"):
            DataFile("s3://test-bucket/dir").mkdir()


class TestS3Upload:
    """Tests for upload retries."""

    def test_should_retry(self):
        assert _should_retry(_client_error("SlowDown", 503))
        assert _should_retry(_client_error("InternalError", 500))
        assert not _should_retry(_client_error("AccessDenied", 403))
        assert not _should_retry(ValueError("boom"))

    def test_upload_retries_transient_errors(self, tmp_path, caplog):
        protocol = S3DataProtocol(DataSettings(s3_upload_attempts=2))
        client = MagicMock()
        client.upload_fileobj.side_effect = [_client_error("SlowDown", 503), None]
        protocol._client = client

        with open(tmp_path / "payload", "w+b") as f:
            f.write(b"data")
            protocol.upload_fileobj(f, "bucket", "key")

        assert client.upload_fileobj.call_count == 2
        assert "attempt 1/2" in caplog.text

    def test_upload_gives_up(self, tmp_path):
        protocol = S3DataProtocol(DataSettings(s3_upload_attempts=1))
        client = MagicMock()
        client.upload_fileobj.side_effect = _client_error("AccessDenied", 403)
        protocol._client = client

        with open(tmp_path / "payload", "w+b") as f:
            with pytest.raises(DataIOError, match="Cannot upload s3://bucket/key"):
                protocol.upload_fileobj(f, "bucket", "key")
