"""
Test fixtures for the upload pipeline.
"""
import asyncio
from typing import Dict, List, Optional, Set

import boto3
import pytest
from moto import mock_aws as moto_mock_aws

from upload_pipeline.config import UploadSettings
from upload_pipeline.exceptions import StorageError
from upload_pipeline.models import StoredObject, UploadFile, UploadProgress
from upload_pipeline.storage import S3Storage
from upload_pipeline.uploader import FileUploader

CORRUPT = b"corrupt"


class FakeStorage:
    """Scriptable in-memory backend that records every call."""

    def __init__(self, put_delay: float = 0.0,
                 fail_data: Optional[Set[bytes]] = None,
                 put_results: Optional[List] = None,
                 url: Optional[str] = "https://cdn.example.com"):
        self.put_delay = put_delay
        self.fail_data = fail_data or set()
        self.put_results = list(put_results or [])
        self.url = url
        self.objects: Dict[str, bytes] = {}
        self.put_paths: List[str] = []
        self.removed: List[List[str]] = []
        self.events: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def put(self, bucket, path, data, content_type=None,
                  cache_control="3600", upsert=False):
        self.put_paths.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.events.append(("start", data))
        try:
            if self.put_delay:
                await asyncio.sleep(self.put_delay)
            if data in self.fail_data:
                raise StorageError("Invalid image data")
            if self.put_results:
                outcome = self.put_results.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                if outcome is None:
                    return None
            self.objects[path] = data
            return StoredObject(path=path)
        finally:
            self.in_flight -= 1
            self.events.append(("end", data))

    async def public_url(self, bucket, path):
        if self.url is None:
            return None
        return f"{self.url}/{bucket}/{path}" if self.url else ""

    async def remove(self, bucket, paths):
        self.removed.append(list(paths))
        for path in paths:
            self.objects.pop(path, None)


class ProgressRecorder:
    """Progress callback that keeps every event."""

    def __init__(self):
        self.events: List[UploadProgress] = []

    def __call__(self, progress: UploadProgress) -> None:
        self.events.append(progress)

    def for_file(self, file_name: str) -> List[UploadProgress]:
        return [e for e in self.events if e.file_name == file_name]


@pytest.fixture
def sleeps():
    """Delays requested by the retry loop."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Sleep replacement that records delays instead of waiting."""
    async def _sleep(delay):
        sleeps.append(delay)
    return _sleep


@pytest.fixture
def settings():
    return UploadSettings(timeout=5.0, url_timeout=5.0)


@pytest.fixture
def fake_storage():
    return FakeStorage(fail_data={CORRUPT})


@pytest.fixture
def file_uploader(fake_storage, settings, fake_sleep):
    return FileUploader(fake_storage, settings, sleep=fake_sleep)


@pytest.fixture
def recorder():
    return ProgressRecorder()


@pytest.fixture
def image_file():
    return UploadFile(name="photo.jpg", data=b"\xff\xd8\xff" + b"0" * 2048,
                      content_type="image/jpeg")


@pytest.fixture
def make_files():
    """Build n image files, the listed indexes carrying corrupt data."""
    def _make(count: int, corrupt: Set[int] = frozenset()):
        return [
            UploadFile(
                name=f"image{i}.png",
                data=CORRUPT if i in corrupt else f"png-{i}".encode(),
                content_type="image/png"
            )
            for i in range(count)
        ]
    return _make


@pytest.fixture
def mock_aws(monkeypatch):
    """Mock S3 client using moto."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    with moto_mock_aws():
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3


@pytest.fixture
def s3_storage(mock_aws):
    """Create a test S3 storage backend."""
    return S3Storage(s3_client=mock_aws)
