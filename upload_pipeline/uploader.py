"""
Module for uploading single files to object storage with retry logic.
"""
import asyncio
import logging
import secrets
import string
import time
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from .config import UploadSettings
from .exceptions import StorageError, UploadError, UploadTimeoutError
from .models import UploadFile, UploadResult, UploadStatus
from .progress import ProgressCallback, emit_progress
from .storage import StorageBackend

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_path(file_name: str, folder: Optional[str] = None) -> str:
    """Build a fresh storage key for a file.

    Only the extension of the original name is kept; the key itself is
    the current epoch milliseconds plus a random base36 suffix.

    Args:
        file_name: Original file name
        folder: Optional folder inside the bucket

    Returns:
        Storage key such as ``images/1718000000000-k3j9x0qz1m.jpg``
    """
    extension = file_name.rsplit(".", 1)[-1]
    name = f"{int(time.time() * 1000)}-{_to_base36(secrets.randbits(64))}.{extension}"
    return f"{folder}/{name}" if folder else name


def _error_message(error: BaseException) -> str:
    if isinstance(error, (StorageError, UploadError)):
        return error.message or "Unknown error"
    return str(error) or "Unknown error"


def _discard_late_result(task: "asyncio.Future[Any]") -> None:
    # Abandoned calls still finish in the background; only log their outcome
    if task.cancelled():
        return
    if error := task.exception():
        logger.debug(f"Abandoned storage call finished with error: {error}")


async def _wait_with_timeout(awaitable: Awaitable[Any], timeout: float,
                             message: str) -> Any:
    """Wait for a storage call, giving up after ``timeout`` seconds.

    The call itself is shielded and keeps running when the timer wins.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout)
    except asyncio.TimeoutError:
        task.add_done_callback(_discard_late_result)
        raise UploadTimeoutError(message) from None


class FileUploader:
    """Uploads one file at a time to a storage backend with retries."""

    def __init__(self, storage: StorageBackend,
                 settings: Optional[UploadSettings] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize the file uploader.

        Args:
            storage: Backend the files are written to
            settings: Timeouts and attempt budget; defaults when omitted
            sleep: Coroutine used to wait between attempts
        """
        self.storage = storage
        self.settings = settings or UploadSettings()
        self._sleep = sleep

    async def _attempt(self, file: UploadFile, bucket: str,
                       folder: Optional[str],
                       on_progress: Optional[ProgressCallback],
                       timeout: float, attempt: int) -> UploadResult:
        path = generate_path(file.name, folder)
        logger.info(
            f"Uploading {file.name} to {bucket}/{path} "
            f"(attempt {attempt}, {file.size / (1024 * 1024):.2f}MB, {file.content_type})"
        )

        try:
            emit_progress(on_progress, file.name, 0, UploadStatus.UPLOADING)

            stored = await _wait_with_timeout(
                self.storage.put(
                    bucket,
                    path,
                    file.data,
                    content_type=file.content_type,
                    cache_control=self.settings.cache_control,
                    upsert=False
                ),
                timeout,
                f"Upload timeout after {timeout:g} seconds"
            )
            if not stored:
                raise UploadError("No data returned from upload", file.name)

            url = await _wait_with_timeout(
                self.storage.public_url(bucket, stored.path),
                self.settings.url_timeout,
                "Get URL timeout"
            )
            if not url:
                raise UploadError("Failed to get public URL", file.name)

            emit_progress(on_progress, file.name, 100, UploadStatus.COMPLETED)

        except Exception as e:
            message = _error_message(e)
            logger.error(f"Error uploading {file.name} (attempt {attempt}): {message}")
            emit_progress(on_progress, file.name, 0, UploadStatus.ERROR, message)
            if isinstance(e, UploadError):
                raise
            raise UploadError(message, file.name) from e

        logger.info(f"Uploaded {file.name} to {stored.path} (attempt {attempt})")
        return UploadResult(url=url, path=stored.path)

    async def upload(self, file: UploadFile, bucket: str,
                     folder: Optional[str] = None,
                     on_progress: Optional[ProgressCallback] = None,
                     timeout: Optional[float] = None,
                     max_attempts: Optional[int] = None) -> UploadResult:
        """Upload a single file, retrying with exponential backoff.

        Every attempt writes to a newly generated key. Between attempts the
        uploader waits 1s, 2s, 4s and so on.

        Args:
            file: File to upload
            bucket: Destination bucket
            folder: Optional folder inside the bucket
            on_progress: Callback receiving UploadProgress events
            timeout: Seconds allowed for each write
            max_attempts: Attempts before the last error is raised

        Returns:
            UploadResult with the stored path and its public URL

        Raises:
            UploadError: If every attempt failed
        """
        timeout = self.settings.timeout if timeout is None else timeout
        max_attempts = self.settings.max_attempts if max_attempts is None else max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(UploadError),
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )

        async for attempt in retrying:
            with attempt:
                return await self._attempt(
                    file, bucket, folder, on_progress, timeout,
                    attempt.retry_state.attempt_number
                )

        # Unreachable: the retry loop either returns or re-raises
        raise UploadError(f"Upload failed after {max_attempts} attempts", file.name)
