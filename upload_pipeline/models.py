"""
Module containing data models for the upload pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class UploadStatus(str, Enum):
    """Lifecycle status reported for a single file."""
    QUEUED = "queued"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.COMPLETED, UploadStatus.ERROR)


@dataclass(frozen=True)
class UploadTarget:
    """Destination namespace for an upload."""
    bucket: str
    folder: Optional[str] = None

    def __post_init__(self):
        """Validate the upload target."""
        if not self.bucket:
            raise ValueError("bucket cannot be empty")


@dataclass
class UploadFile:
    """A locally selected file waiting to be uploaded."""
    name: str
    data: bytes
    content_type: str = "application/octet-stream"

    def __post_init__(self):
        """Validate the file."""
        if not self.name:
            raise ValueError("file name cannot be empty")

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        # Text after the last dot, or the whole name when there is none
        return self.name.rsplit(".", 1)[-1]


@dataclass
class UploadTask:
    """A file paired with its destination for one batch call."""
    file: UploadFile
    target: UploadTarget


@dataclass
class UploadProgress:
    """Represents the reported state of one file's upload."""
    file_name: str
    progress: int
    status: UploadStatus
    error: Optional[str] = None

    def __post_init__(self):
        """Validate the progress invariants."""
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be within 0..100, got {self.progress}")
        if self.status is UploadStatus.COMPLETED and self.progress != 100:
            raise ValueError("completed progress must be 100")
        if self.status is UploadStatus.ERROR and not self.error:
            raise ValueError("error progress requires an error message")


@dataclass
class UploadResult:
    """Represents a successfully uploaded file."""
    url: str
    path: str


@dataclass
class StoredObject:
    """Data returned by the storage backend after a write."""
    path: str


@dataclass
class BatchSummary:
    """Represents a summary of a batch upload call."""
    batch_id: str
    bucket: str
    folder: Optional[str]
    total_files: int
    results: List[UploadResult] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def successful_uploads(self) -> int:
        return len(self.results)

    @property
    def failed_uploads(self) -> int:
        return len(self.errors)
