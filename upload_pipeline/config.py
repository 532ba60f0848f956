"""
Configuration for the upload pipeline.
"""
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class UploadSettings:
    """Tunable values for uploads, batches and the S3 backend.

    Attributes:
        timeout: Seconds to wait for one storage write
        url_timeout: Seconds to wait for public URL resolution
        max_attempts: Attempts per file before giving up
        concurrency: Files uploaded at the same time within a batch
        min_success_ratio: Share of files that must succeed for a batch to pass
        cache_control: Cache lifetime in seconds attached to stored objects
        log_dir: Directory for batch summary files
        region: AWS region for the S3 client
        endpoint_url: Endpoint of an S3-compatible service
        public_base_url: Base URL used when building public object URLs
    """
    timeout: float = 120.0
    url_timeout: float = 10.0
    max_attempts: int = 2
    concurrency: int = 3
    min_success_ratio: float = 0.5
    cache_control: str = "3600"
    log_dir: Optional[Path] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None

    def __post_init__(self):
        """Validate the settings."""
        if self.timeout <= 0 or self.url_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if not 0 <= self.min_success_ratio <= 1:
            raise ValueError("min_success_ratio must be within 0..1")
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir)


def load_settings(config_file: Optional[Path] = None) -> UploadSettings:
    """Load settings from a JSON file.

    Args:
        config_file: Path to config file

    Returns:
        UploadSettings built from the file, or defaults if it cannot be read

    Raises:
        ValueError: If the file holds values UploadSettings rejects
    """
    if not config_file:
        return UploadSettings()

    try:
        with open(config_file) as f:
            data = json.load(f)
    except Exception as e:
        logger.error(f"Error loading config file: {e}")
        return UploadSettings()

    if not isinstance(data, dict):
        logger.error(f"Error loading config file: expected a JSON object in {config_file}")
        return UploadSettings()

    known = {f.name for f in fields(UploadSettings)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    try:
        return UploadSettings(**{k: v for k, v in data.items() if k in known})
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid config file {config_file}: {e}") from e
