"""
Object storage clients for uploaded file bytes.

The application builds exactly one client at startup (see ``main.lifespan``)
and hands it to request handlers through the ``get_storage`` dependency.
"""
import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, List

from fastapi import Request
from minio import Minio
from minio.error import S3Error

from compliance_api.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class ObjectStorageClient(ABC):

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Raises NotFoundError when the object does not exist."""

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        ...


class InMemoryStorageClient(ObjectStorageClient):
    """Dict-backed storage for development and tests. Contents die with the process."""

    def __init__(self):
        self._objects: Dict[str, bytes] = {}
        self._content_types: Dict[str, str] = {}

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self._objects[key] = bytes(data)
        self._content_types[key] = content_type
        logger.info("Stored %s (%d bytes) in memory", key, len(data))

    def get(self, key: str) -> bytes:
        if key not in self._objects:
            raise NotFoundError(f"Object {key} not found")
        return self._objects[key]

    def delete(self, key: str) -> None:
        self._objects.pop(key, None)
        self._content_types.pop(key, None)

    def exists(self, key: str) -> bool:
        return key in self._objects

    def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._objects if k.startswith(prefix))


class MinioStorageClient(ObjectStorageClient):

    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str, secure: bool = False):
        self._client = Minio(endpoint, access_key=access_key, secret_key=secret_key, secure=secure)
        self.bucket = bucket
        self._bucket_checked = False

    def _ensure_bucket(self):
        if self._bucket_checked:
            return
        try:
            if not self._client.bucket_exists(self.bucket):
                self._client.make_bucket(self.bucket)
        except S3Error as e:
            raise StorageError(f"Bucket {self.bucket} unavailable: {e}") from e
        self._bucket_checked = True

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self._ensure_bucket()
        try:
            self._client.put_object(self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type)
        except S3Error as e:
            raise StorageError(f"Upload of {key} failed: {e}") from e
        logger.info("Stored %s (%d bytes) in bucket %s", key, len(data), self.bucket)

    def get(self, key: str) -> bytes:
        self._ensure_bucket()
        try:
            resp = self._client.get_object(self.bucket, key)
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise NotFoundError(f"Object {key} not found") from e
            raise StorageError(f"Download of {key} failed: {e}") from e
        try:
            return resp.read()
        finally:
            resp.close()
            resp.release_conn()

    def delete(self, key: str) -> None:
        self._ensure_bucket()
        try:
            self._client.remove_object(self.bucket, key)
        except S3Error as e:
            raise StorageError(f"Delete of {key} failed: {e}") from e

    def exists(self, key: str) -> bool:
        self._ensure_bucket()
        try:
            self._client.stat_object(self.bucket, key)
            return True
        except S3Error as e:
            if e.code in ("NoSuchKey", "NoSuchObject"):
                return False
            raise StorageError(f"Lookup of {key} failed: {e}") from e

    def list(self, prefix: str = "") -> List[str]:
        self._ensure_bucket()
        try:
            return [obj.object_name for obj in self._client.list_objects(self.bucket, prefix=prefix, recursive=True)]
        except S3Error as e:
            raise StorageError(f"Listing {prefix} failed: {e}") from e


def create_storage_client(settings) -> ObjectStorageClient:
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "minio":
        logger.info("Using MinIO object storage at %s (bucket %s)", settings.MINIO_ENDPOINT, settings.MINIO_BUCKET)
        return MinioStorageClient(
            settings.MINIO_ENDPOINT,
            settings.MINIO_ACCESS_KEY,
            settings.MINIO_SECRET_KEY,
            settings.MINIO_BUCKET,
            secure=settings.MINIO_SECURE,
        )
    if backend == "memory":
        logger.warning("Using in-memory object storage; uploads will not survive a restart")
        return InMemoryStorageClient()
    raise ValueError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}'")


def get_storage(request: Request) -> ObjectStorageClient:
    return request.app.state.storage
