"""Runtime settings for the data access layer.

Settings come from ``GENODATA_*`` / ``AWS_*`` environment variables or from a
YAML file, and are exposed through a process-wide accessor. A ``.env`` file
named by ``GENODATA_ENV_FILE`` (or passed to ``from_env``) is loaded with
python-dotenv before the environment is read.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

__all__ = ["DataSettings", "get_settings", "set_settings", "split_path_list"]

DEFAULT_PROTOCOL = "file"
ENV_FILE_VARIABLE = "GENODATA_ENV_FILE"

# ${VAR_NAME} or $VAR_NAME
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def _expand(value: Any) -> Any:
    """Expand variable references in a settings value; unset ones are kept as is."""
    if isinstance(value, list):
        return [_expand(item) for item in value]
    if not isinstance(value, str):
        return value

    def replace(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1) or match.group(2), match.group(0))

    return ENV_VAR_PATTERN.sub(replace, value)


def split_path_list(value: Optional[str]) -> List[str]:
    """Split a comma separated list of locations into its non-empty entries.

    Commas are used rather than ``os.pathsep`` because entries may be URLs
    such as ``s3://bucket/formats``.
    """
    if not value:
        return []
    return [entry.strip() for entry in value.split(",") if entry.strip()]


@dataclass
class DataSettings:
    """Settings consumed by protocols and the format registry.

    Attributes:
        format_paths: Locations scanned for external format descriptions
        default_protocol: Protocol used for sources without a scheme
        s3_endpoint_url: Custom S3 endpoint (MinIO, LocalStack...)
        s3_region: AWS region of the S3 client
        s3_access_key: Explicit access key, otherwise the boto3 chain is used
        s3_secret_key: Explicit secret key
        s3_upload_attempts: Attempts made by the S3 protocol for one upload
        tmp_dir: Directory for spooled uploads, system default when None
    """

    format_paths: List[str] = field(default_factory=list)
    default_protocol: str = DEFAULT_PROTOCOL
    s3_endpoint_url: Optional[str] = None
    s3_region: Optional[str] = None
    s3_access_key: Optional[str] = None
    s3_secret_key: Optional[str] = None
    s3_upload_attempts: int = 3
    tmp_dir: Optional[str] = None

    def __post_init__(self) -> None:
        if self.s3_upload_attempts < 1:
            raise ValueError(
                f"s3_upload_attempts must be at least 1, got {self.s3_upload_attempts}"
            )

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Union[str, Path]] = None,
        *,
        override: bool = False,
    ) -> "DataSettings":
        """Build settings from ``GENODATA_*`` and ``AWS_*`` variables.

        Args:
            env_file: ``.env`` file loaded into the environment first
            override: Let the ``.env`` file replace variables already set

        Raises:
            FileNotFoundError: If ``env_file`` does not exist
        """
        if env_file is not None:
            if not Path(env_file).is_file():
                raise FileNotFoundError(f"Environment file not found: {env_file}")
            load_dotenv(dotenv_path=env_file, override=override)
            logger.debug("Loaded environment file %s", env_file)

        attempts = os.environ.get("GENODATA_S3_UPLOAD_ATTEMPTS")
        return cls(
            format_paths=split_path_list(os.environ.get("GENODATA_FORMAT_PATH")),
            default_protocol=os.environ.get("GENODATA_DEFAULT_PROTOCOL", DEFAULT_PROTOCOL),
            s3_endpoint_url=os.environ.get("AWS_ENDPOINT_URL") or None,
            s3_region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
            s3_access_key=os.environ.get("AWS_ACCESS_KEY_ID") or None,
            s3_secret_key=os.environ.get("AWS_SECRET_ACCESS_KEY") or None,
            s3_upload_attempts=int(attempts) if attempts else 3,
            tmp_dir=os.environ.get("GENODATA_TMP_DIR") or None,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSettings":
        """Build settings from a flat mapping, expanding ``${VAR}`` references.

        ``format_paths`` may be a list or a comma separated string.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")

        values = {key: _expand(value) for key, value in data.items()}
        paths = values.get("format_paths")
        if isinstance(paths, str):
            values["format_paths"] = split_path_list(paths)
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DataSettings":
        """Load settings from a YAML mapping.

        Args:
            path: YAML file whose keys are the field names of this class

        Example:
            format_paths:
              - ${GENODATA_HOME}/formats
              - s3://shared-bucket/formats
            s3_region: eu-west-1
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        logger.debug("Loaded settings from %s", path)
        return cls.from_dict(data)

    def s3_client_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.client("s3", ...)``."""
        options: Dict[str, Any] = {}
        if self.s3_endpoint_url:
            options["endpoint_url"] = self.s3_endpoint_url
        if self.s3_region:
            options["region_name"] = self.s3_region
        if self.s3_access_key and self.s3_secret_key:
            options["aws_access_key_id"] = self.s3_access_key
            options["aws_secret_access_key"] = self.s3_secret_key
        return options


_settings: Optional[DataSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> DataSettings:
    """Return the process-wide settings, read from the environment on first use.

    The ``.env`` file named by ``GENODATA_ENV_FILE``, if any, is loaded first.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = DataSettings.from_env(os.environ.get(ENV_FILE_VARIABLE) or None)
    return _settings


def set_settings(settings: Optional[DataSettings]) -> None:
    """Replace the process-wide settings (None resets to the environment)."""
    global _settings
    with _settings_lock:
        _settings = settings
