"""Creator account model"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from tiktok_ingest.database import Base


class CreatorAccount(Base):
    """Local mirror of a TikTok creator, keyed by handle"""
    __tablename__ = "creator_accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    handle = Column(String(255), nullable=False, unique=True, index=True)
    external_user_id = Column(String(64), default="")
    display_name = Column(String(255), default="")
    avatar_url = Column(String(1000), default="")
    verified = Column(Boolean, default=False)
    signature = Column(Text, default="")

    follower_count = Column(Integer, default=0)
    following_count = Column(Integer, default=0)
    likes_count = Column(Integer, default=0)
    video_count = Column(Integer, default=0)

    app_user_id = Column(String(36), ForeignKey("app_users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    app_user = relationship("AppUser")
    import_jobs = relationship("ImportJob", back_populates="creator_account")
