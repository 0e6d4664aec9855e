from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    public_slug = Column(String(64), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    desired_role = Column(String(255), nullable=True)
    english_level = Column(String(32), nullable=True)  # e.g. B2, C1
    expected_salary_min_cny = Column(Integer, nullable=True)
    expected_salary_max_cny = Column(Integer, nullable=True)
    availability_days = Column(Integer, nullable=True)
    timezone = Column(String(64), nullable=True)
    bc_experience = Column(Boolean, nullable=False, default=False)
    summary = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    # Only "active" candidates are visible to HR reads.
    status = Column(String(20), nullable=False, default="active", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), index=True)

    skills = relationship("CandidateSkill", back_populates="candidate", cascade="all, delete-orphan")
    contact = relationship("CandidateContact", back_populates="candidate", uselist=False)


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False)


class CandidateSkill(Base):
    __tablename__ = "candidate_skills"

    candidate_id = Column(Integer, ForeignKey("candidates.id"), primary_key=True)
    skill_id = Column(Integer, ForeignKey("skills.id"), primary_key=True)

    candidate = relationship("Candidate", back_populates="skills")
    skill = relationship("Skill")


class CandidateContact(Base):
    __tablename__ = "candidate_contacts"

    candidate_id = Column(Integer, ForeignKey("candidates.id"), primary_key=True)
    tg_username = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    candidate = relationship("Candidate", back_populates="contact")
