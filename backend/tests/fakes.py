"""In-memory stand-ins for Playwright, the media host and HTTP downloads."""
import json
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import requests
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from tiktok_ingest.extractors import BaseExtractor, CreatorInfo, CreatorStats, VideoRecord
from tiktok_ingest.services.media_host import MediaHost, UploadResult

FAST_CONFIG = {
    "base_url": "https://www.tiktok.com",
    "timeout_ms": 1000,
    "selector_timeout_ms": 10,
    "settle_seconds": 0,
    "scroll_cycles": 2,
    "scroll_wait_seconds": 0,
    "navigation_retries": 2,
    "navigation_backoff_seconds": 0,
}


class FakePage:
    """The slice of ``playwright.async_api.Page`` the extractor touches."""

    def __init__(
        self,
        html: str = "",
        matching: Optional[Dict[str, int]] = None,
        final_url: Optional[str] = None,
        goto_failures: int = 0,
    ):
        self.html = html
        self.matching = matching or {}
        self.final_url = final_url
        self.goto_failures = goto_failures
        self.url = "about:blank"
        self.visited: List[str] = []
        self.scripts: List[str] = []

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.goto_failures > 0:
            self.goto_failures -= 1
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.url = self.final_url or url

    async def content(self):
        return self.html

    async def wait_for_selector(self, css, timeout=None):
        if not self.matching.get(css):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {css}")

    async def query_selector_all(self, css):
        return [object()] * self.matching.get(css, 0)

    async def evaluate(self, script):
        self.scripts.append(script)


class FakeBrowser:
    """Hands out the same FakePage for every operation."""

    def __init__(self, page: FakePage):
        self._page = page
        self.opened = 0

    @asynccontextmanager
    async def page(self):
        self.opened += 1
        yield self._page


class FakeExtractor(BaseExtractor):
    def __init__(
        self,
        record: Optional[VideoRecord] = None,
        error: Optional[Exception] = None,
        by_url: Optional[Dict[str, VideoRecord]] = None,
    ):
        self.record = record
        self.error = error
        self.by_url = by_url or {}
        self.searches = []

    async def search(self, mode, query, limit=10):
        self.searches.append((mode, query, limit))
        if self.error:
            raise self.error
        return [self.record] if self.record else []

    async def extract_by_url(self, url):
        if self.error:
            raise self.error
        return self.by_url.get(url, self.record)


class FakeMediaHost(MediaHost):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.uploads = []

    async def upload(self, data, namespace, key, media_type):
        if self.error:
            raise self.error
        self.uploads.append((namespace, key, media_type, len(data)))
        return UploadResult(public_url=f"https://media.example.com/{namespace}/{key}.mp4", key=key, size=len(data))


class FakeSession:
    """``requests.Session`` replacement returning canned responses."""

    def __init__(self, status_code: int = 200, content: bytes = b"\x00\x00\x00\x18ftypmp42", error=None):
        self.status_code = status_code
        self.content = content
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers or {}))
        if self.error:
            raise self.error
        response = requests.Response()
        response.status_code = self.status_code
        response.reason = "OK" if self.status_code < 400 else "Forbidden"
        response.url = url
        response._content = self.content
        return response


def make_record(
    video_id: str = "7234567890123456789",
    handle: str = "alice",
    caption: str = "Morning run #fitness #running\nday 3",
    media_url: str = "https://v16-webapp.tiktok.com/video/tos/alice.mp4",
) -> VideoRecord:
    return VideoRecord(
        external_id=video_id,
        page_url=f"https://www.tiktok.com/@{handle}/video/{video_id}",
        media_url=media_url,
        caption=caption,
        creator=CreatorInfo(
            external_user_id="6800000000000000001",
            handle=handle,
            display_name="Alice Runner",
            avatar_url="https://p16-sign.tiktokcdn.com/avatar/alice.jpeg",
            verified=True,
            stats=CreatorStats(follower_count=1200, following_count=10, likes_count=54000, video_count=31),
        ),
    )


def video_url(video_id: str = "7234567890123456789", handle: str = "alice") -> str:
    return f"https://www.tiktok.com/@{handle}/video/{video_id}"


def item_struct(video_id: str = "7234567890123456789", handle: str = "alice") -> dict:
    return {
        "id": video_id,
        "desc": "Morning run #fitness",
        "createTime": "1700000000",
        "video": {
            "playAddr": "https://v16-webapp.tiktok.com/video/play.mp4",
            "downloadAddr": "https://v16-webapp.tiktok.com/video/download.mp4",
            "cover": "https://p16-sign.tiktokcdn.com/cover.jpeg",
        },
        "author": {
            "id": "6800000000000000001",
            "uniqueId": handle,
            "nickname": "Alice Runner",
            "avatarLarger": "https://p16-sign.tiktokcdn.com/avatar-large.jpeg",
            "avatarThumb": "https://p16-sign.tiktokcdn.com/avatar-thumb.jpeg",
            "verified": True,
        },
        "authorStats": {"followerCount": 1200, "followingCount": 10, "heartCount": 54000, "videoCount": 31},
        "music": {"title": "original sound", "authorName": "Alice Runner"},
        "stats": {"diggCount": 10, "commentCount": 2, "shareCount": 1, "playCount": 100},
        "statsV2": {"diggCount": "1523", "commentCount": "48", "shareCount": "7", "playCount": "20400"},
    }


def universal_page(item: Optional[dict] = None) -> str:
    scope = {"webapp.video-detail": {"itemInfo": {"itemStruct": item}}} if item else {"webapp.app-context": {}}
    blob = json.dumps({"__DEFAULT_SCOPE__": scope})
    return (
        "<html><head>"
        f'<script id="__UNIVERSAL_DATA_FOR_REHYDRATION__" type="application/json">{blob}</script>'
        "</head><body></body></html>"
    )


def sigi_page(video_id: str = "7234567890123456789", handle: str = "alice") -> str:
    item = item_struct(video_id, handle)
    author = item.pop("author")
    item.pop("authorStats")
    item["author"] = handle
    state = {
        "ItemModule": {video_id: item},
        "UserModule": {
            "users": {handle: author},
            "stats": {handle: {"followerCount": 99, "followingCount": 1, "heartCount": 5, "videoCount": 2}},
        },
    }
    return f"<html><head><script>window['SIGI_STATE'] = {json.dumps(state)};</script></head><body></body></html>"


def search_card(video_id: str, handle: str, caption: str = "", views: str = "12.3K") -> str:
    return (
        '<div data-e2e="search-card-video">'
        f'<a href="/@{handle}/video/{video_id}"><img src="https://p16-sign.tiktokcdn.com/{video_id}.jpeg"></a>'
        f'<p data-e2e="search-card-user-unique-id">{handle}</p>'
        f'<div data-e2e="search-card-desc">{caption}</div>'
        f'<strong data-e2e="video-views">{views}</strong>'
        "</div>"
    )


def search_page(cards: List[str]) -> str:
    return f"<html><body><div id='results'>{''.join(cards)}</div></body></html>"
