from types import SimpleNamespace

import pytest

from compliance_api.exceptions import NotFoundError
from compliance_api.modules.storage.client import (
    InMemoryStorageClient, MinioStorageClient, create_storage_client,
)


def test_in_memory_round_trip():
    store = InMemoryStorageClient()
    store.put("user-documents/1/a.txt", b"abc", "text/plain")
    store.put("user-documents/2/b.txt", b"def")

    assert store.exists("user-documents/1/a.txt")
    assert store.get("user-documents/1/a.txt") == b"abc"
    assert store.list("user-documents/1/") == ["user-documents/1/a.txt"]

    store.delete("user-documents/1/a.txt")
    assert not store.exists("user-documents/1/a.txt")
    with pytest.raises(NotFoundError):
        store.get("user-documents/1/a.txt")


def test_delete_missing_object_is_a_no_op():
    InMemoryStorageClient().delete("nothing/here")


def test_factory_selects_backend():
    memory = create_storage_client(SimpleNamespace(STORAGE_BACKEND="memory"))
    assert isinstance(memory, InMemoryStorageClient)

    minio = create_storage_client(SimpleNamespace(
        STORAGE_BACKEND="MinIO",
        MINIO_ENDPOINT="localhost:9000",
        MINIO_ACCESS_KEY="key",
        MINIO_SECRET_KEY="secret",
        MINIO_BUCKET="bucket",
        MINIO_SECURE=False,
    ))
    assert isinstance(minio, MinioStorageClient)
    assert minio.bucket == "bucket"


def test_factory_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_storage_client(SimpleNamespace(STORAGE_BACKEND="ftp"))
