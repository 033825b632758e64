"""Extracted video record types and the extractor interface"""
import enum
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

MAX_SEARCH_RESULTS = 50


class SearchMode(str, enum.Enum):
    KEYWORD = "keyword"
    HASHTAG = "hashtag"


@dataclass
class CreatorStats:
    follower_count: int = 0
    following_count: int = 0
    likes_count: int = 0
    video_count: int = 0


@dataclass
class CreatorInfo:
    """Video author; ``handle`` is the natural key for account matching"""
    external_user_id: str = ""
    handle: str = ""
    display_name: str = ""
    avatar_url: str = ""
    verified: bool = False
    stats: Optional[CreatorStats] = None


@dataclass
class AudioTrack:
    title: str = ""
    artist: str = ""


@dataclass
class Engagement:
    likes: int = 0
    comments: int = 0
    shares: int = 0
    views: int = 0


@dataclass
class VideoRecord:
    """A video as extracted from TikTok.

    Empty ``media_url``/``thumbnail_url`` mean the field could not be
    extracted and is unusable; counts are zero when unavailable.
    ``captured_at`` is the extraction time, ``published_at`` the source
    publish time when the page state carries it.
    """
    external_id: str
    page_url: str = ""
    media_url: str = ""
    thumbnail_url: str = ""
    caption: str = ""
    creator: CreatorInfo = field(default_factory=CreatorInfo)
    audio_track: AudioTrack = field(default_factory=AudioTrack)
    engagement: Engagement = field(default_factory=Engagement)
    captured_at: int = field(default_factory=lambda: int(time.time()))
    published_at: Optional[int] = None


class BaseExtractor(ABC):
    """Extractor interface"""

    platform_name: str = ""

    @abstractmethod
    async def search(
        self,
        mode: str,
        query: str,
        limit: int = 10,
    ) -> List[VideoRecord]:
        pass

    @abstractmethod
    async def extract_by_url(self, url: str) -> VideoRecord:
        pass

    @staticmethod
    def clamp_limit(limit: int) -> int:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = 10
        return max(1, min(limit, MAX_SEARCH_RESULTS))
