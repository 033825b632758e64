"""Video extractors"""
from tiktok_ingest.extractors.base import (
    AudioTrack,
    BaseExtractor,
    CreatorInfo,
    CreatorStats,
    Engagement,
    MAX_SEARCH_RESULTS,
    SearchMode,
    VideoRecord,
)
from tiktok_ingest.extractors.browser import BrowserManager
from tiktok_ingest.extractors.tiktok import TikTokExtractor

__all__ = [
    "AudioTrack",
    "BaseExtractor",
    "BrowserManager",
    "CreatorInfo",
    "CreatorStats",
    "Engagement",
    "MAX_SEARCH_RESULTS",
    "SearchMode",
    "TikTokExtractor",
    "VideoRecord",
]
