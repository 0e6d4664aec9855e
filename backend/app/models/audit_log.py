from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    hr_user_id = Column(Integer, nullable=False)
    action = Column(String(64), nullable=False)  # candidate.list | candidate.view | candidate.unlock
    target_type = Column(String(32), nullable=False)
    target_id = Column(String(128), nullable=False)
    meta_json = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
