from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    hr_users = relationship("HRUser", back_populates="company")


class HRUser(Base):
    __tablename__ = "hr_users"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    tg_user_id = Column(BigInteger, unique=True, nullable=False)
    tg_username = Column(String(64), nullable=True)
    display_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="recruiter")  # owner / admin / recruiter
    status = Column(String(20), nullable=False, default="pending")  # pending / active / blocked
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    company = relationship("Company", back_populates="hr_users")
