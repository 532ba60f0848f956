"""
Module containing the object-storage backends used by the upload pipeline.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

from .exceptions import StorageError
from .models import StoredObject

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Object storage capability consumed by the pipeline."""

    async def put(self, bucket: str, path: str, data: bytes,
                  content_type: Optional[str] = None,
                  cache_control: str = "3600",
                  upsert: bool = False) -> Optional[StoredObject]:
        ...

    async def public_url(self, bucket: str, path: str) -> Optional[str]:
        ...

    async def remove(self, bucket: str, paths: List[str]) -> None:
        ...


def _client_error_message(error: ClientError) -> str:
    details = error.response.get('Error', {})
    return details.get('Message') or details.get('Code') or str(error)


class S3Storage:
    """Storage backend writing objects to S3 through boto3."""

    def __init__(self, s3_client=None, region: Optional[str] = None,
                 endpoint_url: Optional[str] = None,
                 public_base_url: Optional[str] = None):
        """Initialize the S3 backend.

        Args:
            s3_client: Pre-built boto3 S3 client; one is created when omitted
            region: AWS region for a newly created client
            endpoint_url: Custom endpoint for S3-compatible services
            public_base_url: Base URL used to build public object URLs
        """
        self.s3_client = s3_client or boto3.client(
            's3', region_name=region, endpoint_url=endpoint_url
        )
        self.public_base_url = public_base_url

    def _object_exists(self, bucket: str, path: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=path)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in {'404', 'NoSuchKey', 'NotFound'}:
                return False
            raise

    def _put(self, bucket: str, path: str, data: bytes,
             content_type: Optional[str], cache_control: str,
             upsert: bool) -> Optional[StoredObject]:
        if not upsert and self._object_exists(bucket, path):
            raise StorageError("The resource already exists", code="Duplicate")

        extra_args: Dict[str, str] = {'CacheControl': f"max-age={cache_control}"}
        if content_type:
            extra_args['ContentType'] = content_type

        response = self.s3_client.put_object(
            Bucket=bucket,
            Key=path,
            Body=data,
            **extra_args
        )
        if not response:
            return None
        return StoredObject(path=path)

    async def put(self, bucket: str, path: str, data: bytes,
                  content_type: Optional[str] = None,
                  cache_control: str = "3600",
                  upsert: bool = False) -> Optional[StoredObject]:
        """Write an object to S3.

        Returns:
            StoredObject with the written key, or None if S3 answered without data

        Raises:
            StorageError: If S3 rejects the write or the key already exists
        """
        try:
            return await asyncio.to_thread(
                self._put, bucket, path, data, content_type, cache_control, upsert
            )
        except ClientError as e:
            raise StorageError(
                _client_error_message(e),
                code=e.response.get('Error', {}).get('Code')
            ) from e

    async def public_url(self, bucket: str, path: str) -> Optional[str]:
        """Build the public URL of an object."""
        key = quote(path)
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{bucket}/{key}"
        region = self.s3_client.meta.region_name or 'us-east-1'
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    def _remove(self, bucket: str, paths: List[str]) -> None:
        response = self.s3_client.delete_objects(
            Bucket=bucket,
            Delete={'Objects': [{'Key': p} for p in paths], 'Quiet': True}
        )
        if errors := response.get('Errors'):
            first = errors[0]
            raise StorageError(
                f"{first.get('Key')}: {first.get('Message', 'delete failed')}",
                code=first.get('Code')
            )

    async def remove(self, bucket: str, paths: List[str]) -> None:
        """Delete objects from S3.

        Raises:
            StorageError: If S3 rejects any of the deletions
        """
        if not paths:
            return
        try:
            await asyncio.to_thread(self._remove, bucket, paths)
        except ClientError as e:
            raise StorageError(
                _client_error_message(e),
                code=e.response.get('Error', {}).get('Code')
            ) from e


class InMemoryStorage:
    """Storage backend keeping objects in memory, for tests and local runs."""

    def __init__(self, base_url: str = "memory://storage"):
        self.base_url = base_url
        self.objects: Dict[str, Dict[str, bytes]] = {}

    async def put(self, bucket: str, path: str, data: bytes,
                  content_type: Optional[str] = None,
                  cache_control: str = "3600",
                  upsert: bool = False) -> Optional[StoredObject]:
        bucket_objects = self.objects.setdefault(bucket, {})
        if not upsert and path in bucket_objects:
            raise StorageError("The resource already exists", code="Duplicate")
        bucket_objects[path] = data
        return StoredObject(path=path)

    async def public_url(self, bucket: str, path: str) -> Optional[str]:
        return f"{self.base_url}/{bucket}/{path}"

    async def remove(self, bucket: str, paths: List[str]) -> None:
        bucket_objects = self.objects.get(bucket, {})
        for path in paths:
            bucket_objects.pop(path, None)
