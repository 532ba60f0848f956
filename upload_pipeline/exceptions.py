"""
Exception types raised by the upload pipeline.
"""
from typing import List, Optional, Tuple

from .models import UploadResult


class StorageError(Exception):
    """Raised by a storage backend when an operation fails."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class UploadError(Exception):
    """Raised when a single file could not be uploaded."""

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name


class UploadTimeoutError(UploadError):
    """Raised when a storage call does not answer within its time limit."""


class BatchUploadError(Exception):
    """Raised when a batch is judged unsuccessful by the failure policy.

    Attributes:
        failures: (file name, error message) pairs for every failed file
        results: Uploads that did succeed; they are not rolled back
    """

    def __init__(self, message: str, failures: List[Tuple[str, str]],
                 results: List[UploadResult]):
        super().__init__(message)
        self.message = message
        self.failures = failures
        self.results = results
