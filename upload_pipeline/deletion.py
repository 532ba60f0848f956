"""
Module for removing uploaded objects from storage.
"""
import logging
from typing import List

from .storage import StorageBackend

logger = logging.getLogger(__name__)


async def remove_file(storage: StorageBackend, path: str, bucket: str) -> None:
    """Delete a single object.

    Raises:
        StorageError: Propagated unchanged from the backend
    """
    await remove_files(storage, [path], bucket)


async def remove_files(storage: StorageBackend, paths: List[str], bucket: str) -> None:
    """Delete several objects in one backend call.

    Deletions are not retried.

    Args:
        storage: Backend holding the objects
        paths: Storage keys to delete
        bucket: Bucket containing the keys

    Raises:
        StorageError: Propagated unchanged from the backend
    """
    logger.info(f"Deleting {len(paths)} files from {bucket}")
    try:
        await storage.remove(bucket, list(paths))
    except Exception as e:
        logger.error(f"Error deleting files from {bucket}: {e}")
        raise
    logger.info(f"Deleted {len(paths)} files from {bucket}")
