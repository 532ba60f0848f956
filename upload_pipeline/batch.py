"""
Module for coordinating concurrency-bounded batch uploads.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import UploadSettings
from .exceptions import BatchUploadError
from .models import (
    BatchSummary, UploadFile, UploadResult, UploadStatus,
    UploadTarget, UploadTask
)
from .progress import ProgressCallback, ProgressTracker, emit_progress
from .uploader import FileUploader

logger = logging.getLogger(__name__)


@dataclass
class FailurePolicy:
    """Decides whether a batch with mixed outcomes counts as failed.

    Attributes:
        min_success_ratio: Minimum share of submitted files that must succeed
    """
    min_success_ratio: float = 0.5

    def check(self, summary: BatchSummary) -> None:
        """Raise if the batch as a whole is judged unsuccessful.

        Raises:
            BatchUploadError: If nothing succeeded or too few files succeeded
        """
        total = summary.total_files
        if total == 0:
            return

        if summary.successful_uploads == 0:
            last_error = summary.errors[-1][1] if summary.errors else "Unknown error"
            raise BatchUploadError(
                f"All {total} files failed to upload. Last error: {last_error}",
                failures=list(summary.errors),
                results=[]
            )

        if summary.successful_uploads < total * self.min_success_ratio:
            raise BatchUploadError(
                f"Too many files failed to upload: "
                f"{summary.failed_uploads} of {total} failed",
                failures=list(summary.errors),
                results=list(summary.results)
            )


class BatchUploader:
    """Uploads lists of files in sequential, concurrency-bounded groups."""

    def __init__(self, uploader: FileUploader,
                 policy: Optional[FailurePolicy] = None,
                 tracker: Optional[ProgressTracker] = None):
        """Initialize the batch uploader.

        Args:
            uploader: Single-file uploader driven for each file
            policy: Partial-failure policy; built from the uploader settings when omitted
            tracker: Optional tracker receiving progress and batch summaries
        """
        self.uploader = uploader
        self.settings: UploadSettings = uploader.settings
        self.policy = policy or FailurePolicy(self.settings.min_success_ratio)
        self.tracker = tracker

    def _progress_callback(self, on_progress: Optional[ProgressCallback]) -> Optional[ProgressCallback]:
        if not self.tracker:
            return on_progress
        if not on_progress:
            return self.tracker

        tracker = self.tracker

        def fan_out(progress):
            tracker(progress)
            on_progress(progress)

        return fan_out

    async def _settle(self, task: UploadTask,
                      callback: Optional[ProgressCallback],
                      summary: BatchSummary) -> Optional[UploadResult]:
        # Failures are recorded in the order they happen
        try:
            return await self.uploader.upload(
                task.file, task.target.bucket, task.target.folder, callback
            )
        except Exception as e:
            logger.error(f"Failed to upload {task.file.name}: {e}")
            summary.errors.append((task.file.name, str(e) or "Unknown error"))
            return None

    async def upload_many(self, files: Sequence[UploadFile], bucket: str,
                          folder: Optional[str] = None,
                          on_progress: Optional[ProgressCallback] = None,
                          concurrency: Optional[int] = None) -> List[UploadResult]:
        """Upload multiple files with bounded concurrency.

        Files are split into consecutive groups of ``concurrency``; a group
        starts only after every upload of the previous group has settled.

        Args:
            files: Files to upload, in order
            bucket: Destination bucket
            folder: Optional folder inside the bucket
            on_progress: Callback receiving UploadProgress events for every file
            concurrency: Maximum number of uploads in flight

        Returns:
            UploadResult for every file that succeeded

        Raises:
            BatchUploadError: If the failure policy rejects the batch
        """
        concurrency = self.settings.concurrency if concurrency is None else concurrency
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        callback = self._progress_callback(on_progress)
        summary = BatchSummary(
            batch_id=uuid.uuid4().hex[:12],
            bucket=bucket,
            folder=folder,
            total_files=len(files)
        )
        total_size = sum(f.size for f in files)
        group_count = -(-len(files) // concurrency)
        logger.info(
            f"Starting batch {summary.batch_id}: {len(files)} files "
            f"({total_size / (1024 * 1024):.2f}MB) to {bucket}, concurrency {concurrency}"
        )

        target = UploadTarget(bucket=bucket, folder=folder)
        tasks = [UploadTask(file=file, target=target) for file in files]
        for file in files:
            emit_progress(callback, file.name, 0, UploadStatus.QUEUED)

        for index in range(0, len(tasks), concurrency):
            group = tasks[index:index + concurrency]
            logger.info(
                f"Processing group {index // concurrency + 1}/{group_count}: "
                f"{[t.file.name for t in group]}"
            )

            outcomes = await asyncio.gather(
                *(self._settle(task, callback, summary) for task in group)
            )
            summary.results.extend(r for r in outcomes if r is not None)

        if summary.errors:
            logger.warning(
                f"Partial upload failure: {summary.failed_uploads} of "
                f"{summary.total_files} files failed"
            )
        if self.tracker:
            self.tracker.log_batch_summary(summary)

        self.policy.check(summary)
        return summary.results
