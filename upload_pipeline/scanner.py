"""
Module for loading local files and validating them before upload.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Iterable, List, Optional

from .models import UploadFile

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/webp')
MAX_FILE_SIZE = 100 * 1024 * 1024


def validate_file(file: UploadFile,
                  allowed_types: Optional[Iterable[str]] = IMAGE_CONTENT_TYPES,
                  max_size: Optional[int] = MAX_FILE_SIZE) -> None:
    """Check a file's MIME type and size.

    Args:
        file: File to check
        allowed_types: Accepted MIME types, or None to accept any
        max_size: Maximum size in bytes, or None for no limit

    Raises:
        ValueError: If the file is of a disallowed type or too large
    """
    if allowed_types is not None and file.content_type not in set(allowed_types):
        raise ValueError(
            f"Invalid file format for {file.name}: {file.content_type}"
        )
    if max_size is not None and file.size > max_size:
        raise ValueError(
            f"{file.name} is too large: {file.size / (1024 * 1024):.2f}MB "
            f"exceeds {max_size / (1024 * 1024):.0f}MB"
        )


class FileScanner:
    """Reads files from disk into UploadFile objects."""

    def load(self, path: Path) -> UploadFile:
        """Read a file from disk.

        Args:
            path: Path to the file

        Returns:
            UploadFile with the file's bytes and guessed MIME type
        """
        path = Path(path)
        if not path.is_file():
            raise ValueError(f"{path} is not a file")

        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return UploadFile(name=path.name, data=path.read_bytes(), content_type=content_type)

    def load_many(self, paths: Iterable[Path]) -> List[UploadFile]:
        return [self.load(p) for p in paths]

    def scan_folder(self, folder: Path, pattern: str = "*") -> List[Path]:
        """Scan a folder for files matching the pattern.

        Args:
            folder: Path to the folder to scan
            pattern: Glob pattern to match files against

        Returns:
            Sorted list of file paths found
        """
        if not folder.exists():
            logger.error(f"Folder does not exist: {folder}")
            return []

        return sorted(p for p in folder.glob(pattern) if p.is_file())
