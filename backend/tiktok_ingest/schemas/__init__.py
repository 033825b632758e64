"""API request/response models"""
from tiktok_ingest.schemas.video import (
    AudioTrackResponse,
    CreatorResponse,
    CreatorStatsResponse,
    EngagementResponse,
    SearchResponse,
    VideoResponse,
)
from tiktok_ingest.schemas.imports import (
    AccountSummaryResponse,
    ImportJobResponse,
    ImportListResponse,
    ImportOutcomeResponse,
    ImportRequest,
    PostSummaryResponse,
    UserSummaryResponse,
)

__all__ = [
    "AudioTrackResponse",
    "CreatorResponse",
    "CreatorStatsResponse",
    "EngagementResponse",
    "SearchResponse",
    "VideoResponse",
    "AccountSummaryResponse",
    "ImportJobResponse",
    "ImportListResponse",
    "ImportOutcomeResponse",
    "ImportRequest",
    "PostSummaryResponse",
    "UserSummaryResponse",
]
