"""Download a TikTok video and republish it to the durable media host."""
import asyncio
import logging
from typing import Optional

import requests

from tiktok_ingest.config import Settings
from tiktok_ingest.errors import DownloadError, NoSourceMediaError, UploadError
from tiktok_ingest.extractors.base import VideoRecord
from tiktok_ingest.services.media_host import MediaHost, build_media_host
from tiktok_ingest.utils.user_agent import get_chrome_user_agent

logger = logging.getLogger(__name__)

TIKTOK_REFERER = "https://www.tiktok.com/"


def media_key(external_id: str) -> str:
    return f"tiktok_{external_id}"


class MediaTransfer:
    """Fetch ``record.media_url`` and upload the bytes under a key derived from the video id.

    Re-uploading the same video overwrites the same key; deduplication is the
    import ledger's job.
    """

    def __init__(
        self,
        media_host: MediaHost,
        namespace: str = "tiktok-import",
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ):
        self.media_host = media_host
        self.namespace = namespace
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaTransfer":
        return cls(
            media_host=build_media_host(settings),
            namespace=settings.media_namespace,
            timeout=settings.media_download_timeout,
        )

    async def transfer(self, record: VideoRecord) -> str:
        if not record.media_url:
            raise NoSourceMediaError(
                "No video URL available",
                details={"external_id": record.external_id},
            )

        data = await asyncio.to_thread(self._download, record.media_url)
        logger.info("Downloaded video %s: %s bytes", record.external_id, len(data))

        key = media_key(record.external_id)
        try:
            result = await self.media_host.upload(data, self.namespace, key, "video")
        except Exception as exc:
            raise UploadError(f"Failed to upload video: {exc}", details={"key": key}) from exc
        if result is None or not result.public_url:
            raise UploadError("Failed to upload video - no URL returned", details={"key": key})

        logger.info("Video uploaded: %s", result.public_url)
        return result.public_url

    def _download(self, url: str) -> bytes:
        headers = {
            "User-Agent": get_chrome_user_agent(),
            "Referer": TIKTOK_REFERER,
        }
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DownloadError(f"Failed to download video: {exc}", details={"url": url}) from exc

        if not response.ok:
            raise DownloadError(
                f"Failed to download video: {response.status_code} {response.reason or ''}".strip(),
                details={"url": url, "status_code": response.status_code},
            )
        if not response.content:
            raise DownloadError("Downloaded video is empty", details={"url": url})
        return response.content
