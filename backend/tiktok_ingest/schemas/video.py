"""Search response models"""
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialized with camelCase keys; accepts either spelling on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class CreatorStatsResponse(CamelModel):
    follower_count: int = 0
    following_count: int = 0
    likes_count: int = 0
    video_count: int = 0


class CreatorResponse(CamelModel):
    external_user_id: str = ""
    handle: str
    display_name: str = ""
    avatar_url: str = ""
    verified: bool = False
    stats: Optional[CreatorStatsResponse] = None


class AudioTrackResponse(CamelModel):
    title: str = ""
    artist: str = ""


class EngagementResponse(CamelModel):
    likes: int = 0
    comments: int = 0
    shares: int = 0
    views: int = 0


class VideoResponse(CamelModel):
    """One extracted video"""
    external_id: str
    page_url: str = ""
    media_url: str = ""
    thumbnail_url: str = ""
    caption: str = ""
    creator: CreatorResponse
    audio_track: AudioTrackResponse
    engagement: EngagementResponse
    captured_at: int
    published_at: Optional[int] = None


class SearchResponse(CamelModel):
    """Search/trending/hashtag listing"""
    query: str
    type: str
    count: int
    videos: List[VideoResponse]
