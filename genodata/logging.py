"""Log output of the data access layer.

Modules log through ``logging.getLogger(__name__)``, so every record lives
under the ``genodata`` logger. ``setup_logging`` gives that namespace its own
handlers (plain text or JSON lines) and sets the level of the third-party
loggers driven by the protocols.

Copies and conversions attach their transfer context to records through
``extra``: ``source`` and ``dest`` locations, ``data_format``, ``bytes``
moved and ``elapsed`` seconds. ``JSONFormatter`` emits those as top-level
fields.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Iterable, List, Optional, Union

__all__ = ["CONTEXT_FIELDS", "LOGGER_NAME", "JSONFormatter", "setup_logging"]

LOGGER_NAME = "genodata"

CONTEXT_FIELDS = ("source", "dest", "data_format", "protocol", "bytes", "elapsed")

# Loggers of the S3 and fsspec client stacks
PROTOCOL_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "fsspec", "aiohttp")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "genodata.convert", "message": "Converted ...",
         "source": "s3://runs/reads_1.fastq.gz", "dest": "/scratch/reads_1.tfq",
         "data_format": "tfq", "elapsed": 1.52}
    """

    def __init__(self, context_fields: Iterable[str] = CONTEXT_FIELDS) -> None:
        super().__init__()
        self.context_fields = tuple(context_fields)

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in self.context_fields:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value if isinstance(value, (int, float, bool)) else str(value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    *,
    json_format: bool = False,
    stream: Optional[IO[str]] = None,
    log_file: Optional[str] = None,
    protocol_level: Union[int, str] = logging.WARNING,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ``genodata`` logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level of the ``genodata`` logger (``"DEBUG"`` shows copies
               and metadata lookups)
        json_format: Emit JSON lines instead of plain text
        stream: Console stream, ``sys.stderr`` by default
        log_file: Optional file receiving the same records
        protocol_level: Level of the boto3, botocore and fsspec loggers
        propagate: Also pass records to the root logger handlers

    Returns:
        The configured ``genodata`` logger
    """
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.propagate = propagate

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    for name in PROTOCOL_LOGGERS:
        logging.getLogger(name).setLevel(protocol_level)

    return package_logger
