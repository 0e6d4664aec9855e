from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..database import Base

UNLOCK_TYPE_CONTACT = "contact"


class Unlock(Base):
    """
    A paid reveal of a candidate's contact for one company.

    Rows are written only by the unlock engine and are never updated or deleted.
    """
    __tablename__ = "unlocks"
    __table_args__ = (
        UniqueConstraint("company_id", "candidate_id", "unlock_type", name="uq_unlocks_company_candidate_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    hr_user_id = Column(Integer, ForeignKey("hr_users.id"), nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False)
    unlock_type = Column(String(20), nullable=False, default=UNLOCK_TYPE_CONTACT)
    cost = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CompanyQuota(Base):
    """Quota ledger row: one per provisioned company."""
    __tablename__ = "company_quotas"

    company_id = Column(Integer, ForeignKey("companies.id"), primary_key=True)
    unlock_quota_total = Column(Integer, nullable=False, default=0)
    unlock_quota_used = Column(Integer, nullable=False, default=0)
    period_start = Column(Date, nullable=True)
    period_end = Column(Date, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<CompanyQuota(company={self.company_id}, used={self.unlock_quota_used}/{self.unlock_quota_total})>"
