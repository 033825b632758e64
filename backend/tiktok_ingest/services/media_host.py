"""Durable media hosting backends."""
import asyncio
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from azure.storage.blob import BlobServiceClient, ContentSettings
from azure.core.exceptions import ResourceExistsError

from tiktok_ingest.config import Settings

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    "video": ("video/mp4", ".mp4"),
    "image": ("image/jpeg", ".jpg"),
}


@dataclass
class UploadResult:
    public_url: str
    key: str = ""
    size: int = 0


def _content_type(media_type: str) -> tuple:
    if media_type in MEDIA_TYPES:
        return MEDIA_TYPES[media_type]
    extension = mimetypes.guess_extension(media_type) or ""
    return media_type, extension


class MediaHost(ABC):
    """upload(bytes) -> public URL capability"""

    @abstractmethod
    async def upload(self, data: bytes, namespace: str, key: str, media_type: str) -> UploadResult:
        pass


class AzureBlobMediaHost(MediaHost):
    """Azure Blob Storage; the namespace is the container, created public on first use.

    Uploads overwrite an existing blob with the same key.
    """

    def __init__(self, connection_string: str):
        if not connection_string:
            raise ValueError("azure_blob_connection_string is required for blob uploads")
        self._service = BlobServiceClient.from_connection_string(connection_string)
        self._ready_containers: set[str] = set()

    def _upload_sync(self, data: bytes, namespace: str, key: str, media_type: str) -> UploadResult:
        content_type, extension = _content_type(media_type)
        container_client = self._service.get_container_client(namespace)
        if namespace not in self._ready_containers:
            try:
                container_client.create_container(public_access="blob")
            except ResourceExistsError:
                pass
            self._ready_containers.add(namespace)
        blob_name = f"{key}{extension}"
        blob = container_client.get_blob_client(blob_name)
        blob.upload_blob(data, overwrite=True, content_settings=ContentSettings(content_type=content_type))
        return UploadResult(public_url=blob.url, key=blob_name, size=len(data))

    async def upload(self, data: bytes, namespace: str, key: str, media_type: str) -> UploadResult:
        return await asyncio.to_thread(self._upload_sync, data, namespace, key, media_type)


class LocalMediaHost(MediaHost):
    """Writes files under ``root_dir/<namespace>/`` and serves them from ``public_base_url``."""

    def __init__(self, root_dir: str, public_base_url: str):
        self.root_dir = Path(root_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _upload_sync(self, data: bytes, namespace: str, key: str, media_type: str) -> UploadResult:
        _, extension = _content_type(media_type)
        target_dir = self.root_dir / namespace
        target_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{key}{extension}"
        (target_dir / filename).write_bytes(data)
        return UploadResult(
            public_url=f"{self.public_base_url}/{namespace}/{filename}",
            key=filename,
            size=len(data),
        )

    async def upload(self, data: bytes, namespace: str, key: str, media_type: str) -> UploadResult:
        return await asyncio.to_thread(self._upload_sync, data, namespace, key, media_type)


def build_media_host(settings: Settings) -> MediaHost:
    backend = (settings.media_host_backend or "local").lower()
    if backend == "azure":
        return AzureBlobMediaHost(settings.azure_blob_connection_string)
    if backend == "local":
        return LocalMediaHost(settings.media_local_dir, settings.media_public_base_url)
    raise ValueError(f"Unknown media host backend: {settings.media_host_backend}")
