from .client import (
    ObjectStorageClient, InMemoryStorageClient, MinioStorageClient,
    create_storage_client, get_storage,
)

__all__ = [
    'ObjectStorageClient', 'InMemoryStorageClient', 'MinioStorageClient',
    'create_storage_client', 'get_storage',
]
