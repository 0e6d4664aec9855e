from .audit_log import AuditLog
from .candidate import Candidate, CandidateContact, CandidateSkill, Skill
from .company import Company, HRUser
from .skill_cache import SkillCacheEntry
from .unlock import CompanyQuota, Unlock

__all__ = [
    "AuditLog",
    "Candidate",
    "CandidateContact",
    "CandidateSkill",
    "Company",
    "CompanyQuota",
    "HRUser",
    "Skill",
    "SkillCacheEntry",
    "Unlock",
]
