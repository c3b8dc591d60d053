# --------------------------------
# DI container
# --------------------------------
from functools import lru_cache
from pathlib import Path

from fleetfuel.config import Settings, get_settings
from fleetfuel.domain.attachments import (
    BlobStore,
    FilesystemBlobStore,
    HttpBlobStore,
    InMemoryBlobStore,
)


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "filesystem":
        return FilesystemBlobStore(base_dir=Path(settings.attachments_dir))
    if settings.blob_backend == "http":
        return HttpBlobStore(base_url=settings.blob_base_url, timeout=settings.db_timeout_seconds * 6)
    if settings.blob_backend == "memory":
        return InMemoryBlobStore()
    raise ValueError(f"Unsupported blob backend: {settings.blob_backend}")


class Container:
    def __init__(self, settings: Settings | None = None, blob_store: BlobStore | None = None):
        self._settings = settings or get_settings()
        self._blob_store = blob_store or build_blob_store(self._settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def blob_store(self) -> BlobStore:
        return self._blob_store


@lru_cache
def get_container():
    return Container()
