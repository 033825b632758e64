"""Import job model (dedup ledger)"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Enum, Text, ForeignKey
from sqlalchemy.orm import relationship

from tiktok_ingest.database import Base


class ImportStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportJob(Base):
    """One import attempt per external video; never deleted"""
    __tablename__ = "import_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    creator_account_id = Column(String(36), ForeignKey("creator_accounts.id"), nullable=False, index=True)
    external_video_id = Column(String(64), nullable=False, unique=True)
    source_url = Column(String(1000), nullable=False)

    status = Column(Enum(ImportStatus), default=ImportStatus.PENDING, index=True)
    error_message = Column(Text, nullable=True)
    resulting_post_id = Column(String(36), ForeignKey("posts.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator_account = relationship("CreatorAccount", back_populates="import_jobs")
