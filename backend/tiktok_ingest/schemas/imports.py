"""Import request/response models"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from tiktok_ingest.models import ImportStatus
from tiktok_ingest.schemas.video import CamelModel


class ImportRequest(CamelModel):
    """Import a single video by URL"""
    url: str = Field(..., min_length=1, max_length=1000)

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://www.tiktok.com/@scout2015/video/6718335390845095173",
            }
        }


class UserSummaryResponse(CamelModel):
    id: str
    username: str
    display_name: str


class PostSummaryResponse(CamelModel):
    id: str
    title: str
    video_url: str


class ImportOutcomeResponse(CamelModel):
    success: bool
    message: str
    account_created: Optional[bool] = None
    post_created: Optional[bool] = None
    duplicate: bool = False
    user: Optional[UserSummaryResponse] = None
    post: Optional[PostSummaryResponse] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class AccountSummaryResponse(CamelModel):
    id: str
    handle: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    verified: bool = False


class ImportJobResponse(CamelModel):
    """One row of the import ledger"""
    id: str
    external_video_id: str
    source_url: str
    status: ImportStatus
    error_message: Optional[str] = None
    resulting_post_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    creator_account: Optional[AccountSummaryResponse] = None


class ImportListResponse(CamelModel):
    total: int
    data: List[ImportJobResponse]
