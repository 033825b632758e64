"""Post model"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text, JSON, ForeignKey

from tiktok_ingest.database import Base

IMPORT_CATEGORY = "tiktok-import"


class Post(Base):
    """User-facing post created by a successful import"""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("app_users.id"), nullable=False, index=True)

    type = Column(String(32), default="video")
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    media_urls = Column(JSON, default=list)
    hashtags = Column(JSON, default=list)
    category = Column(String(64), nullable=True, index=True)
    visibility = Column(String(32), default="public")

    created_at = Column(DateTime, default=datetime.utcnow)
