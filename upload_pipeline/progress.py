"""
Module for publishing and tracking per-file upload progress.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models import BatchSummary, UploadProgress, UploadStatus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


class ProgressChannel:
    """Fans progress events out to every subscriber.

    A channel is itself a progress callback, so it can be handed to the
    uploaders wherever an ``on_progress`` argument is accepted.
    """

    def __init__(self):
        self._subscribers: List[ProgressCallback] = []

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a subscriber.

        Args:
            callback: Function called with every published UploadProgress

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, progress: UploadProgress) -> None:
        """Deliver an event to all subscribers in subscription order."""
        for callback in list(self._subscribers):
            try:
                callback(progress)
            except Exception as e:
                logger.error(f"Progress subscriber failed for {progress.file_name}: {e}")

    def __call__(self, progress: UploadProgress) -> None:
        self.publish(progress)


class ProgressTracker:
    """Keeps the latest progress per file name and logs batch summaries."""

    def __init__(self, log_dir: Optional[Path] = None):
        """Initialize the progress tracker.

        Args:
            log_dir: Directory to store batch summary files. If None, logs only.
        """
        self.log_dir = log_dir
        if log_dir:
            log_dir.mkdir(parents=True, exist_ok=True)
        self._latest: Dict[str, UploadProgress] = {}

    def __call__(self, progress: UploadProgress) -> None:
        self._latest[progress.file_name] = progress

    def get(self, file_name: str) -> Optional[UploadProgress]:
        """Return the latest event for a file, if any."""
        return self._latest.get(file_name)

    @property
    def uploads(self) -> List[UploadProgress]:
        """Latest event of every tracked file."""
        return list(self._latest.values())

    def _count(self, status: UploadStatus) -> int:
        return sum(1 for p in self._latest.values() if p.status is status)

    @property
    def completed_count(self) -> int:
        return self._count(UploadStatus.COMPLETED)

    @property
    def failed_count(self) -> int:
        return self._count(UploadStatus.ERROR)

    @property
    def in_flight(self) -> int:
        return self._count(UploadStatus.UPLOADING)

    @property
    def overall_progress(self) -> float:
        """Share of tracked files that completed, as a percentage."""
        if not self._latest:
            return 0.0
        return self.completed_count / len(self._latest) * 100

    def clear(self) -> None:
        """Forget all tracked files."""
        self._latest.clear()

    def _get_log_path(self, batch_id: str) -> Optional[Path]:
        if not self.log_dir:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.log_dir / f"batch_{batch_id}_{timestamp}.json"

    def log_batch_summary(self, summary: BatchSummary) -> None:
        """Log the summary of a finished batch.

        Args:
            summary: BatchSummary object
        """
        log_data = {
            "timestamp": datetime.now().isoformat(),
            "batch_id": summary.batch_id,
            "bucket": summary.bucket,
            "folder": summary.folder,
            "total_files": summary.total_files,
            "successful_uploads": summary.successful_uploads,
            "failed_uploads": summary.failed_uploads,
            "results": [{"path": r.path, "url": r.url} for r in summary.results],
            "errors": [{"file_name": name, "error": error} for name, error in summary.errors],
        }

        if log_path := self._get_log_path(summary.batch_id):
            with open(log_path, 'w') as f:
                json.dump(log_data, f, indent=2)

        logger.info(
            f"Completed batch {summary.batch_id}: "
            f"{summary.successful_uploads}/{summary.total_files} files uploaded successfully"
        )


def emit_progress(on_progress: Optional[ProgressCallback], file_name: str,
                  progress: int, status: UploadStatus,
                  error: Optional[str] = None) -> None:
    """Send one progress event if a callback was supplied."""
    if on_progress:
        on_progress(UploadProgress(
            file_name=file_name,
            progress=progress,
            status=status,
            error=error
        ))
