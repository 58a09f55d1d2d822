from __future__ import annotations

import io
import json
import logging
import sys
from pathlib import Path

import pytest

from genodata.convert import DataFormatConverter
from genodata.location import DataFile
from genodata.logging import LOGGER_NAME, PROTOCOL_LOGGERS, JSONFormatter, setup_logging


@pytest.fixture
def package_logger():
    """Restore the genodata and protocol loggers after a test configures them."""
    logger = logging.getLogger(LOGGER_NAME)
    protocol_levels = {name: logging.getLogger(name).level for name in PROTOCOL_LOGGERS}
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    for name, level in protocol_levels.items():
        logging.getLogger(name).setLevel(level)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("genodata.test", logging.WARNING, __file__, 12, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields() -> None:
    payload = json.loads(JSONFormatter().format(_record()))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "genodata.test"
    assert payload["message"] == "hello"
    assert payload["timestamp"].endswith("Z")
    assert set(payload) == {"timestamp", "level", "logger", "message"}


def test_json_formatter_transfer_context() -> None:
    record = _record(
        source=DataFile("s3://runs/reads_1.fastq.gz"), dest="/tmp/reads_1.tfq", bytes=42, other="x"
    )
    payload = json.loads(JSONFormatter().format(record))

    assert payload["source"] == "s3://runs/reads_1.fastq.gz"
    assert payload["dest"] == "/tmp/reads_1.tfq"
    assert payload["bytes"] == 42
    assert "other" not in payload


def test_json_formatter_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord(
            "genodata.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )
    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in payload["exception"]


def test_setup_logging_writes_json_file(tmp_path: Path, package_logger) -> None:
    """JSON records of the genodata namespace reach the console and the file."""
    log_path = tmp_path / "app.log"
    console = io.StringIO()
    setup_logging("DEBUG", json_format=True, stream=console, log_file=str(log_path))

    assert package_logger.level == logging.DEBUG
    assert not package_logger.propagate
    assert len(package_logger.handlers) == 2
    assert logging.getLogger("botocore").level == logging.WARNING

    logging.getLogger("genodata.location").debug("hello test")
    logging.getLogger("unrelated").warning("not ours")
    for handler in package_logger.handlers:
        handler.flush()

    records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert [record["message"] for record in records] == ["hello test"]
    assert json.loads(console.getvalue())["logger"] == "genodata.location"


def test_setup_logging_replaces_its_handlers(package_logger) -> None:
    setup_logging()
    setup_logging(protocol_level="ERROR")

    assert package_logger.level == logging.INFO
    assert len(package_logger.handlers) == 1
    assert not isinstance(package_logger.handlers[0].formatter, JSONFormatter)
    assert logging.getLogger("fsspec").level == logging.ERROR


def test_conversion_records_carry_context(tmp_path: Path, package_logger, registry) -> None:
    console = io.StringIO()
    setup_logging(json_format=True, stream=console)
    (tmp_path / "reads_1.fastq").write_bytes(b"@r\nAC\n+\nII\n")

    DataFormatConverter(
        DataFile(tmp_path / "reads_1.fastq"),
        DataFile(tmp_path / "tfq_1.tfq"),
        registry.get_data_format_from_name("tfq"),
    ).convert()

    payload = json.loads(console.getvalue().splitlines()[-1])
    assert payload["logger"] == "genodata.convert"
    assert payload["source"] == str(tmp_path / "reads_1.fastq")
    assert payload["dest"] == str(tmp_path / "tfq_1.tfq")
    assert payload["data_format"] == "tfq"
    assert payload["elapsed"] >= 0
