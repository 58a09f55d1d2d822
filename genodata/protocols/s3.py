"""Amazon S3 protocol using boto3.

Supports AWS S3 and S3-compatible object stores (MinIO, LocalStack) through
``DataSettings.s3_endpoint_url``. Writes are spooled to a temporary file and
uploaded when the stream is closed.
"""

from __future__ import annotations

import io
import logging
import tempfile
import threading
from typing import TYPE_CHECKING, Any, BinaryIO, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import boto3
import tenacity
from botocore.exceptions import BotoCoreError, ClientError

from genodata.compression import CompressionType
from genodata.errors import DataIOError
from genodata.metadata import DataFileMetadata
from genodata.protocols.base import DataProtocol
from genodata.protocols.service import register_protocol
from genodata.settings import DataSettings

if TYPE_CHECKING:
    from genodata.location import DataFile

logger = logging.getLogger(__name__)

__all__ = ["S3DataProtocol", "parse_s3_source"]

S3_SCHEMES = ("s3", "s3a", "s3n")
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def parse_s3_source(source: str) -> Tuple[str, str]:
    """Split an ``s3://bucket/key`` source into bucket and key.

    Example:
        >>> parse_s3_source("s3://runs/sample1/reads_1.fastq.gz")
        ('runs', 'sample1/reads_1.fastq.gz')
    """
    parsed = urlparse(source)
    if parsed.scheme.lower() not in S3_SCHEMES or not parsed.netloc:
        raise DataIOError(f"Invalid S3 location: {source}")
    return parsed.netloc, parsed.path.lstrip("/")


def _is_not_found(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code")) in NOT_FOUND_CODES


def _should_retry(exc: BaseException) -> bool:
    """Retry on transport errors, throttling and server errors."""
    if isinstance(exc, BotoCoreError):
        return True
    if isinstance(exc, ClientError):
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        code = exc.response.get("Error", {}).get("Code")
        return status == 429 or status >= 500 or code in {"SlowDown", "RequestLimitExceeded"}
    return False


class _S3UploadStream(io.RawIOBase):
    """Write-only stream spooled to a temporary file, uploaded on close."""

    def __init__(
        self,
        protocol: "S3DataProtocol",
        bucket: str,
        key: str,
        extra_args: Dict[str, Any],
    ) -> None:
        super().__init__()
        self._protocol = protocol
        self._bucket = bucket
        self._key = key
        self._extra_args = extra_args
        self._tmp = tempfile.TemporaryFile(dir=protocol.settings.tmp_dir)

    def writable(self) -> bool:
        return True

    def write(self, b: Any) -> int:
        return self._tmp.write(b)

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._tmp.flush()
            self._protocol.upload_fileobj(self._tmp, self._bucket, self._key, self._extra_args)
        finally:
            self._tmp.close()
            super().close()


@register_protocol(*S3_SCHEMES)
class S3DataProtocol(DataProtocol):
    """Protocol for ``s3://bucket/key`` locations.

    S3 has no directories: ``list`` and recursive ``delete`` work on key
    prefixes, and ``mkdir``, ``rename`` and ``symlink`` are unsupported.
    """

    def __init__(self, settings: Optional[DataSettings] = None) -> None:
        super().__init__(settings)
        self._client: Any = None
        self._client_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "s3"

    @property
    def client(self) -> Any:
        """boto3 S3 client, created on first use."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    options = self.settings.s3_client_options()
                    self._client = boto3.client("s3", **options)
                    logger.debug(
                        "Created S3 client with endpoint: %s",
                        options.get("endpoint_url", "default"),
                    )
        return self._client

    # Streams

    def get_data(self, src: "DataFile") -> BinaryIO:
        bucket, key = parse_s3_source(src.source)
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise FileNotFoundError(f"File not found: {src}") from e
            raise DataIOError(f"Cannot read {src}: {e}") from e
        return response["Body"]

    def put_data(
        self, dest: "DataFile", metadata: Optional[DataFileMetadata] = None
    ) -> BinaryIO:
        bucket, key = parse_s3_source(dest.source)
        extra_args: Dict[str, Any] = {}
        if metadata is not None:
            if metadata.content_type:
                extra_args["ContentType"] = metadata.content_type
            if metadata.content_encoding:
                extra_args["ContentEncoding"] = metadata.content_encoding
        return _S3UploadStream(self, bucket, key, extra_args)  # type: ignore[return-value]

    def upload_fileobj(
        self, fileobj: BinaryIO, bucket: str, key: str, extra_args: Optional[Dict[str, Any]] = None
    ) -> None:
        """Upload ``fileobj`` from its start, retrying transient failures."""
        attempts = self.settings.s3_upload_attempts

        def before_sleep(retry_state: tenacity.RetryCallState) -> None:
            exception = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Upload of s3://%s/%s failed (attempt %d/%d): %s",
                bucket,
                key,
                retry_state.attempt_number,
                attempts,
                exception,
            )

        retrying = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(attempts),
            wait=tenacity.wait_exponential(multiplier=1.0, min=1.0, max=30.0),
            retry=tenacity.retry_if_exception(_should_retry),
            before_sleep=before_sleep,
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    fileobj.seek(0)
                    self.client.upload_fileobj(
                        fileobj, bucket, key, ExtraArgs=extra_args or None
                    )
        except (BotoCoreError, ClientError) as e:
            raise DataIOError(f"Cannot upload s3://{bucket}/{key}: {e}") from e
        logger.debug("Uploaded s3://%s/%s", bucket, key)

    def copy_data(self, src: "DataFile", dest: "DataFile") -> int:
        if src.protocol.name != self.name:
            return super().copy_data(src, dest)

        src_bucket, src_key = parse_s3_source(src.source)
        bucket, key = parse_s3_source(dest.source)
        try:
            self.client.copy({"Bucket": src_bucket, "Key": src_key}, bucket, key)
        except ClientError as e:
            if _is_not_found(e):
                raise FileNotFoundError(f"File not found: {src}") from e
            raise DataIOError(f"Cannot copy {src} to {dest}: {e}") from e
        logger.debug("Copied %s to %s", src, dest)
        return src.get_metadata().content_length

    # Metadata

    def get_metadata(self, src: "DataFile") -> DataFileMetadata:
        bucket, key = parse_s3_source(src.source)
        try:
            head = self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if not _is_not_found(e):
                raise DataIOError(f"Cannot get metadata of {src}: {e}") from e
            if self._has_children(bucket, key):
                return DataFileMetadata(directory=True)
            raise FileNotFoundError(f"File not found: {src}") from e

        result = DataFileMetadata(
            content_length=head.get("ContentLength", -1),
            content_type=head.get("ContentType"),
            content_encoding=head.get("ContentEncoding"),
            content_md5=head.get("ETag", "").strip('"') or None,
            last_modified=head.get("LastModified"),
        )
        result.data_format = src.registry.get_data_format_from_filename(src.name)
        if result.data_format is not None:
            result.content_type = result.data_format.content_type
        if result.content_encoding is None:
            result.content_encoding = CompressionType.by_filename(src.name).content_encoding
        return result

    def exists(self, src: "DataFile", follow_link: bool = True) -> bool:
        try:
            self.get_metadata(src)
        except (FileNotFoundError, DataIOError):
            return False
        return True

    # Prefix operations

    def can_delete(self) -> bool:
        return True

    def can_list(self) -> bool:
        return True

    def _iter_keys(self, bucket: str, prefix: str, delimiter: Optional[str] = None):
        paginator = self.client.get_paginator("list_objects_v2")
        kwargs: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        for page in paginator.paginate(**kwargs):
            for common in page.get("CommonPrefixes", []):
                yield common["Prefix"]
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def _has_children(self, bucket: str, key: str) -> bool:
        prefix = key.rstrip("/") + "/" if key else ""
        response = self.client.list_objects_v2(Bucket=bucket, Prefix=prefix, MaxKeys=1)
        return response.get("KeyCount", 0) > 0

    def list(self, dir: "DataFile") -> List["DataFile"]:
        bucket, key = parse_s3_source(dir.source)
        prefix = key.rstrip("/") + "/" if key else ""
        names = set()
        for child in self._iter_keys(bucket, prefix, delimiter="/"):
            name = child[len(prefix):].rstrip("/")
            if name:
                names.add(name)
        if not names and not self._has_children(bucket, key):
            raise FileNotFoundError(f"File not found: {dir}")
        return [dir.child(name) for name in sorted(names)]

    def delete(self, data_file: "DataFile", recursive: bool = False) -> None:
        bucket, key = parse_s3_source(data_file.source)
        if not key:
            raise DataIOError(f"Cannot remove a whole bucket: {data_file}")

        keys: List[str] = []
        if recursive:
            keys.extend(self._iter_keys(bucket, key.rstrip("/") + "/"))
        if self.exists(data_file) and not self.get_metadata(data_file).is_directory:
            keys.append(key)
        if not keys:
            raise FileNotFoundError(f"File not found: {data_file}")

        # delete_objects accepts at most 1000 keys per request
        for start in range(0, len(keys), 1000):
            batch = keys[start:start + 1000]
            self.client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
            )
        logger.debug("Deleted %d object(s) under %s", len(keys), data_file)
