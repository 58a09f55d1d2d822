"""Pytest configuration and fixtures."""

import boto3
import pytest
from moto import mock_aws

from genodata.formats.markup import ResourceFormatLoader
from genodata.formats.registry import DataFormatRegistry, set_registry
from genodata.formats.simple import mapper_index_formats
from genodata.protocols.service import DataProtocolService, set_protocol_service
from genodata.settings import DataSettings, set_settings


@pytest.fixture(autouse=True)
def isolated_services():
    """Give every test fresh process-wide settings, protocols and formats."""
    set_settings(DataSettings())
    set_protocol_service(None)
    set_registry(None)
    yield
    set_registry(None)
    set_protocol_service(None)
    set_settings(None)


@pytest.fixture
def registry():
    """Registry holding the bundled formats, installed as the process-wide one."""
    registry = DataFormatRegistry(
        compiled_providers=[mapper_index_formats],
        markup_providers=[ResourceFormatLoader()],
    )
    registry.reload()
    set_registry(registry)
    return registry


@pytest.fixture
def protocols():
    """Protocol service with the bundled protocols."""
    return DataProtocolService(DataSettings())


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_bucket(aws_credentials):
    """Mocked S3 with an empty ``test-bucket``; yields the boto3 client."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="test-bucket")
        set_settings(DataSettings(s3_region="us-east-1", s3_upload_attempts=1))
        yield client


@pytest.fixture
def fastq_content():
    """Two FASTQ records."""
    return (
        b"@read1\n"
        b"ACGTACGT\n"
        b"+\n"
        b"IIIIIIII\n"
        b"@read2\n"
        b"TTGCA\n"
        b"+\n"
        b"#####\n"
    )
