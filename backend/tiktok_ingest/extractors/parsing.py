"""Pure parsing helpers: URLs, counts, search-card markup and page-state JSON.

Nothing here touches the browser, so every rule can be exercised against
fixture HTML.
"""
import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from tiktok_ingest.errors import PageDataError
from tiktok_ingest.extractors.base import (
    AudioTrack,
    CreatorInfo,
    CreatorStats,
    Engagement,
    VideoRecord,
)
from tiktok_ingest.extractors.selectors import (
    CAPTION,
    CREATOR_HANDLE,
    VIEW_COUNT,
    SelectorStrategy,
)

logger = logging.getLogger(__name__)

UNIVERSAL_DATA_KEY = "__UNIVERSAL_DATA_FOR_REHYDRATION__"
SIGI_STATE_KEY = "SIGI_STATE"
VIDEO_DETAIL_SCOPE = "webapp.video-detail"

THUMBNAIL_HOST_MARKERS = ("tiktok", "p16-sign")

_COUNT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([KMB])?(?![A-Za-z])", re.IGNORECASE)
_COUNT_MULTIPLIERS = {
    "K": 1000,
    "M": 1000000,
    "B": 1000000000,
}
_HANDLE_RE = re.compile(r"/@([\w.\-]+)")


ALLOWED_SCHEMES = ("http", "https")
TIKTOK_DOMAIN = "tiktok.com"
SHORT_LINK_HOSTS = ("vm.tiktok.com", "vt.tiktok.com")


@dataclass(frozen=True)
class VideoUrlPattern:
    """Matched against the path, or the query string when ``in_query`` is set."""
    name: str
    regex: re.Pattern
    short: bool = False
    in_query: bool = False
    hosts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VideoUrlMatch:
    pattern: str
    value: str
    short: bool

    @property
    def video_id(self) -> Optional[str]:
        return None if self.short else self.value


VIDEO_URL_PATTERNS = (
    VideoUrlPattern("canonical", re.compile(r"/@[\w.\-]+/video/(?P<id>\d+)")),
    VideoUrlPattern("embed", re.compile(r"/embed(?:/v2)?/(?P<id>\d+)")),
    VideoUrlPattern("legacy", re.compile(r"/v/(?P<id>\d+)")),
    VideoUrlPattern("query", re.compile(r"(?:^|&)(?:share_item_id|item_id)=(?P<id>\d+)"), in_query=True),
    VideoUrlPattern("short", re.compile(r"/(?P<id>[A-Za-z0-9]+)"), short=True, hosts=SHORT_LINK_HOSTS),
    VideoUrlPattern("short_t", re.compile(r"/t/(?P<id>[A-Za-z0-9]+)"), short=True),
)


def is_tiktok_host(hostname: Optional[str]) -> bool:
    if not hostname:
        return False
    hostname = hostname.lower().rstrip(".")
    return hostname == TIKTOK_DOMAIN or hostname.endswith("." + TIKTOK_DOMAIN)


def match_video_url(url: Optional[str]) -> Optional[VideoUrlMatch]:
    """Match an http(s) tiktok.com URL against the video URL shapes, in order.

    The host must be tiktok.com or one of its subdomains; short links match
    without a video id.
    """
    if not url:
        return None
    url = url.strip()
    if "://" not in url:
        url = f"https://{url}"
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not is_tiktok_host(hostname):
        return None

    hostname = hostname.lower().rstrip(".")
    for pattern in VIDEO_URL_PATTERNS:
        if pattern.hosts and hostname not in pattern.hosts:
            continue
        target = parts.query if pattern.in_query else parts.path
        match = pattern.regex.search(target) if pattern.in_query else pattern.regex.match(target)
        if match:
            return VideoUrlMatch(pattern=pattern.name, value=match.group("id"), short=pattern.short)
    return None


def parse_video_id(url: Optional[str]) -> Optional[str]:
    match = match_video_url(url)
    return match.video_id if match else None


def handle_from_permalink(url: Optional[str]) -> str:
    if not url:
        return ""
    match = _HANDLE_RE.search(url)
    return match.group(1) if match else ""


def parse_count(text: Any) -> int:
    """Parse a display count such as ``12.3K`` or ``1,024``.

    Suffixes K/M/B scale by 1e3/1e6/1e9. Missing or unparsable input is 0.
    """
    if text is None or isinstance(text, bool):
        return 0
    cleaned = str(text).replace(",", "").strip()
    match = _COUNT_RE.search(cleaned)
    if not match:
        return 0
    try:
        value = Decimal(match.group(1))
    except InvalidOperation:
        return 0
    suffix = (match.group(2) or "").upper()
    if suffix:
        value *= _COUNT_MULTIPLIERS[suffix]
    return int(value)


# Search result cards

def parse_search_results(
    html: str,
    strategy: SelectorStrategy,
    limit: int,
    base_url: str,
) -> List[VideoRecord]:
    soup = BeautifulSoup(html, "lxml")
    elements = strategy.select(soup)
    logger.debug("Parsing %s result elements with %s", len(elements), strategy.css)

    records: List[VideoRecord] = []
    seen_ids: set[str] = set()
    for idx, element in enumerate(elements):
        if len(records) >= limit:
            break
        try:
            record = parse_result_card(element, base_url)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Error processing video element %s: %s", idx, exc)
            continue
        if record is None:
            logger.debug("Skipping element %s: no video permalink", idx)
            continue
        if record.external_id in seen_ids:
            continue
        seen_ids.add(record.external_id)
        records.append(record)
    return records


def parse_result_card(element: Tag, base_url: str) -> Optional[VideoRecord]:
    href = _find_permalink(element)
    if not href:
        return None
    permalink = urljoin(base_url.rstrip("/") + "/", href)
    if "/video/" not in permalink:
        return None
    video_id = parse_video_id(permalink)
    if not video_id:
        return None

    handle = CREATOR_HANDLE.first_text(element).replace("@", "").strip()
    if not handle or " " in handle:
        handle = handle_from_permalink(permalink) or handle

    return VideoRecord(
        external_id=video_id,
        page_url=permalink.split("?")[0],
        thumbnail_url=_find_thumbnail(element),
        caption=CAPTION.first_text(element),
        creator=CreatorInfo(handle=handle, display_name=handle),
        engagement=Engagement(views=parse_count(VIEW_COUNT.first_text(element))),
    )


def _find_permalink(element: Tag) -> str:
    if element.name == "a" and element.get("href"):
        return element["href"]
    link = element.select_one('a[href*="/video/"]') or element.select_one("a[href]")
    if link is None:
        link = element.find_parent("a", href=True)
    if link is None and element.parent is not None:
        link = element.parent.select_one("a[href]")
    if link is None:
        return ""
    return (link.get("href") or "").strip()


def _find_thumbnail(element: Tag) -> str:
    for img in element.find_all("img"):
        src = img.get("src") or ""
        if any(marker in src for marker in THUMBNAIL_HOST_MARKERS):
            return src
    return ""


# Page state (single video)

def load_page_state(html: str) -> Dict[str, Dict[str, Any]]:
    """Return every known state blob found in the page, keyed by blob name."""
    soup = BeautifulSoup(html, "lxml")
    state: Dict[str, Dict[str, Any]] = {}
    for key in (UNIVERSAL_DATA_KEY, SIGI_STATE_KEY):
        data = _read_state_blob(soup, key)
        if data is not None:
            state[key] = data
    return state


def _read_state_blob(soup: BeautifulSoup, key: str) -> Optional[Dict[str, Any]]:
    script = soup.find("script", id=key)
    if script is not None:
        raw = script.string or script.get_text()
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Malformed %s script: %s", key, exc)
        else:
            if isinstance(data, dict):
                return data

    # older pages assign the blob inline: window['SIGI_STATE'] = {...};
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or ""
        idx = text.find(key)
        if idx < 0:
            continue
        brace = text.find("{", idx)
        if brace < 0:
            continue
        try:
            data, _ = decoder.raw_decode(text, brace)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def find_video_detail(html: str, video_id: str) -> Dict[str, Any]:
    """Locate the item struct for ``video_id``; raise PageDataError when absent."""
    state = load_page_state(html)
    if not state:
        raise PageDataError(
            "TikTok page data not found",
            details={"video_id": video_id},
        )

    universal = state.get(UNIVERSAL_DATA_KEY)
    if universal:
        item = _dig(universal, "__DEFAULT_SCOPE__", VIDEO_DETAIL_SCOPE, "itemInfo", "itemStruct")
        if isinstance(item, dict) and item:
            return item

    sigi = state.get(SIGI_STATE_KEY)
    if sigi:
        item = _item_from_sigi_state(sigi, video_id)
        if item:
            return item

    raise PageDataError(
        "Video detail not found in TikTok page data",
        details={"video_id": video_id, "blobs": sorted(state)},
    )


def _item_from_sigi_state(sigi: Dict[str, Any], video_id: str) -> Optional[Dict[str, Any]]:
    items = _as_dict(sigi.get("ItemModule"))
    item = items.get(video_id)
    if item is None and len(items) == 1:
        item = next(iter(items.values()))
    if not isinstance(item, dict):
        return None

    item = dict(item)
    author = item.get("author")
    if isinstance(author, str):
        users = _as_dict(_dig(sigi, "UserModule", "users"))
        user_stats = _as_dict(_dig(sigi, "UserModule", "stats"))
        item["author"] = dict(_as_dict(users.get(author)) or {"uniqueId": author})
        item.setdefault("authorStats", _as_dict(user_stats.get(author)))
    return item


def video_record_from_item(item: Dict[str, Any], video_id: str, page_url: str = "") -> VideoRecord:
    """Map a page-state item struct to a VideoRecord; missing fields default."""
    video = _as_dict(item.get("video"))
    author = _as_dict(item.get("author"))
    music = _as_dict(item.get("music"))
    stats = dict(_as_dict(item.get("stats")))
    stats.update({k: v for k, v in _as_dict(item.get("statsV2")).items() if v not in (None, "")})

    item_id = str(item.get("id") or "")
    if item_id and item_id != video_id:
        logger.warning("Page item id %s differs from URL video id %s", item_id, video_id)

    handle = str(author.get("uniqueId") or "")
    creator = CreatorInfo(
        external_user_id=str(author.get("id") or ""),
        handle=handle,
        display_name=str(author.get("nickname") or handle),
        avatar_url=_first_str(author.get("avatarLarger"), author.get("avatarMedium"), author.get("avatarThumb")),
        verified=bool(author.get("verified")),
        stats=_creator_stats(item.get("authorStats")),
    )

    create_time = parse_count(item.get("createTime"))
    return VideoRecord(
        external_id=video_id,
        page_url=page_url,
        media_url=_first_str(video.get("playAddr"), video.get("downloadAddr")),
        thumbnail_url=_first_str(video.get("cover"), video.get("originCover"), video.get("dynamicCover")),
        caption=str(item.get("desc") or ""),
        creator=creator,
        audio_track=AudioTrack(
            title=str(music.get("title") or ""),
            artist=str(music.get("authorName") or ""),
        ),
        engagement=Engagement(
            likes=parse_count(stats.get("diggCount")),
            comments=parse_count(stats.get("commentCount")),
            shares=parse_count(stats.get("shareCount")),
            views=parse_count(stats.get("playCount")),
        ),
        published_at=create_time or None,
    )


def _creator_stats(raw: Any) -> Optional[CreatorStats]:
    stats = _as_dict(raw)
    if not stats:
        return None
    return CreatorStats(
        follower_count=parse_count(stats.get("followerCount")),
        following_count=parse_count(stats.get("followingCount")),
        likes_count=parse_count(stats.get("heartCount") or stats.get("heart")),
        video_count=parse_count(stats.get("videoCount")),
    )


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_str(*values: Any) -> str:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""
