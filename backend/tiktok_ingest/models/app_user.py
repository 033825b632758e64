"""Application user model"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text

from tiktok_ingest.database import Base


class AppUser(Base):
    """Platform user; imported creators get one synthesized on first import"""
    __tablename__ = "app_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(255), default="")
    last_name = Column(String(255), default="")
    profile_image = Column(String(1000), nullable=True)
    bio = Column(Text, default="")

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
