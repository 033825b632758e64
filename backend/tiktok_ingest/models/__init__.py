"""Database models"""
from tiktok_ingest.models.app_user import AppUser
from tiktok_ingest.models.creator_account import CreatorAccount
from tiktok_ingest.models.import_job import ImportJob, ImportStatus
from tiktok_ingest.models.post import Post, IMPORT_CATEGORY

__all__ = [
    "AppUser",
    "CreatorAccount",
    "ImportJob",
    "ImportStatus",
    "Post",
    "IMPORT_CATEGORY",
]
