"""Import pipeline services"""
from tiktok_ingest.services.import_service import ImportOutcome, ImportService
from tiktok_ingest.services.media_host import (
    AzureBlobMediaHost,
    LocalMediaHost,
    MediaHost,
    UploadResult,
    build_media_host,
)
from tiktok_ingest.services.media_transfer import MediaTransfer
from tiktok_ingest.services.storage import SqlStorage, Storage

__all__ = [
    "AzureBlobMediaHost",
    "ImportOutcome",
    "ImportService",
    "LocalMediaHost",
    "MediaHost",
    "MediaTransfer",
    "SqlStorage",
    "Storage",
    "UploadResult",
    "build_media_host",
]
