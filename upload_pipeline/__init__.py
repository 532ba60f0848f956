from .batch import BatchUploader, FailurePolicy
from .config import UploadSettings, load_settings
from .deletion import remove_file, remove_files
from .exceptions import BatchUploadError, StorageError, UploadError, UploadTimeoutError
from .models import (
    BatchSummary,
    StoredObject,
    UploadFile,
    UploadProgress,
    UploadResult,
    UploadStatus,
    UploadTarget,
    UploadTask,
)
from .progress import ProgressChannel, ProgressTracker, emit_progress
from .scanner import FileScanner, validate_file
from .storage import InMemoryStorage, S3Storage, StorageBackend
from .uploader import FileUploader, generate_path

__version__ = "0.1.0"

__all__ = [
    "BatchUploader",
    "FailurePolicy",
    "UploadSettings",
    "load_settings",
    "remove_file",
    "remove_files",
    "BatchUploadError",
    "StorageError",
    "UploadError",
    "UploadTimeoutError",
    "BatchSummary",
    "StoredObject",
    "UploadFile",
    "UploadProgress",
    "UploadResult",
    "UploadStatus",
    "UploadTarget",
    "UploadTask",
    "ProgressChannel",
    "ProgressTracker",
    "emit_progress",
    "FileScanner",
    "validate_file",
    "InMemoryStorage",
    "S3Storage",
    "StorageBackend",
    "FileUploader",
    "generate_path",
]
