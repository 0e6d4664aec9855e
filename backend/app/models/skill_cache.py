from sqlalchemy import Column, DateTime, Integer, Text
from sqlalchemy.sql import func

from ..database import Base


class SkillCacheEntry(Base):
    """
    Cached skill list for one candidate.

    A row is always a complete snapshot (JSON array of skill names, possibly empty).
    No row, or a row past expires_at, means "unknown": read the store.
    """
    __tablename__ = "skill_cache_entries"

    candidate_id = Column(Integer, primary_key=True)
    skills_json = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<SkillCacheEntry(candidate={self.candidate_id}, expires_at={self.expires_at})>"
