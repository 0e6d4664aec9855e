"""
Candidate Store

Thin wrapper over a SQLAlchemy session exposing exactly the queries the unlock
engine and the read service need. It never commits: transaction boundaries belong
to the caller.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import and_, exists, func, insert, or_, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..database import SQLITE_BUSY_TIMEOUT_MS
from ..models.candidate import Candidate, CandidateContact, CandidateSkill, Skill
from ..models.unlock import UNLOCK_TYPE_CONTACT, CompanyQuota, Unlock
from ..schemas.candidate import CandidateContact as ContactOut
from ..schemas.candidate import CandidateListFilter

logger = logging.getLogger(__name__)

ACTIVE = "active"

_LOCK_TIMEOUT_MARKERS = ("database is locked", "lock timeout", "lock wait timeout")


def _like_pattern(term: str) -> str:
    """Substring pattern with LIKE wildcards in the term matched literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass(frozen=True)
class QuotaSnapshot:
    total: int
    used: int

    @property
    def remaining(self) -> int:
        return max(self.total - self.used, 0)


@dataclass(frozen=True)
class CandidateRow:
    id: int
    slug: str
    display_name: str
    desired_role: str | None
    english_level: str | None
    expected_salary_min_cny: int | None
    expected_salary_max_cny: int | None
    availability_days: int | None
    timezone: str | None
    bc_experience: bool
    summary: str | None
    rating: int | None
    unlocked_contact: bool


class CandidateStore:
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        bind = self.db.get_bind()
        return str(getattr(bind.dialect, "name", "") or "").lower()

    # -------------------- unlock path --------------------

    def find_candidate_id_by_slug(self, slug: str) -> int | None:
        return self.db.execute(
            select(Candidate.id)
            .where(Candidate.public_slug == slug, Candidate.status == ACTIVE)
            .limit(1)
        ).scalar_one_or_none()

    def lock_quota_row(self, company_id: int) -> QuotaSnapshot | None:
        """
        Row-locking read of the company's quota ledger.

        Must run inside the unlock transaction. Returns None when the company has
        no ledger row. Store failures propagate.
        """
        if self.dialect == "sqlite":
            # SQLite ignores FOR UPDATE; a no-op write takes the database write lock
            # and makes concurrent unlocks queue here (busy_timeout).
            touched = self.db.execute(
                update(CompanyQuota)
                .where(CompanyQuota.company_id == company_id)
                .values(unlock_quota_used=CompanyQuota.unlock_quota_used)
                .execution_options(synchronize_session=False)
            )
            if touched.rowcount == 0:
                return None

        row = self.db.execute(
            select(CompanyQuota.unlock_quota_total, CompanyQuota.unlock_quota_used)
            .where(CompanyQuota.company_id == company_id)
            .with_for_update()
        ).first()
        if row is None:
            return None
        return QuotaSnapshot(total=int(row[0] or 0), used=int(row[1] or 0))

    def insert_unlock_if_absent(self, company_id: int, hr_user_id: int, candidate_id: int) -> bool:
        """Insert the contact unlock fact; False when it already existed."""
        values = {
            "company_id": company_id,
            "hr_user_id": hr_user_id,
            "candidate_id": candidate_id,
            "unlock_type": UNLOCK_TYPE_CONTACT,
            "cost": 1,
        }
        conflict_cols = ["company_id", "candidate_id", "unlock_type"]
        dialect = self.dialect
        if dialect == "postgresql":
            stmt = postgresql.insert(Unlock).values(**values).on_conflict_do_nothing(index_elements=conflict_cols)
        elif dialect == "sqlite":
            stmt = sqlite.insert(Unlock).values(**values).on_conflict_do_nothing(index_elements=conflict_cols)
        elif dialect in {"mysql", "mariadb"}:
            stmt = insert(Unlock).values(**values).prefix_with("IGNORE")
        else:
            already = self.db.execute(
                select(
                    exists().where(
                        Unlock.company_id == company_id,
                        Unlock.candidate_id == candidate_id,
                        Unlock.unlock_type == UNLOCK_TYPE_CONTACT,
                    )
                )
            ).scalar()
            if already:
                return False
            stmt = insert(Unlock).values(**values)
        result = self.db.execute(stmt)
        return (result.rowcount or 0) > 0

    def increment_quota_used(self, company_id: int, delta: int = 1) -> bool:
        """Conditional increment; False when it would push used above total."""
        result = self.db.execute(
            update(CompanyQuota)
            .where(
                CompanyQuota.company_id == company_id,
                CompanyQuota.unlock_quota_used + delta <= CompanyQuota.unlock_quota_total,
            )
            .values(
                unlock_quota_used=CompanyQuota.unlock_quota_used + delta,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1

    def set_lock_timeout(self, seconds: float) -> None:
        """
        Bound the quota lock wait for the current transaction.

        Pair with reset_lock_timeout() once the lock is held: the MySQL and SQLite
        settings live on the connection, not the transaction.
        """
        dialect = self.dialect
        ms = max(int(seconds * 1000), 1)
        if dialect == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = {ms}"))
        elif dialect in {"mysql", "mariadb"}:
            # Whole seconds only.
            self.db.execute(text(f"SET SESSION innodb_lock_wait_timeout = {max(math.ceil(seconds), 1)}"))
        elif dialect == "sqlite":
            self.db.execute(text(f"PRAGMA busy_timeout = {ms}"))

    def reset_lock_timeout(self) -> None:
        dialect = self.dialect
        if dialect in {"mysql", "mariadb"}:
            self.db.execute(text("SET SESSION innodb_lock_wait_timeout = DEFAULT"))
        elif dialect == "sqlite":
            self.db.execute(text(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}"))

    @staticmethod
    def is_lock_timeout(error: Exception) -> bool:
        """True for a lock wait given up by the database (busy, lock_timeout, innodb wait)."""
        message = str(error).lower()
        return any(marker in message for marker in _LOCK_TIMEOUT_MARKERS)

    def get_contact(self, candidate_id: int) -> ContactOut | None:
        row = self.db.execute(
            select(CandidateContact.tg_username, CandidateContact.email, CandidateContact.phone)
            .where(CandidateContact.candidate_id == candidate_id)
            .limit(1)
        ).first()
        if row is None:
            return None
        return ContactOut(tg_username=row[0], email=row[1], phone=row[2])

    def get_quota(self, company_id: int) -> CompanyQuota | None:
        return self.db.get(CompanyQuota, company_id)

    # -------------------- read path --------------------

    def list_skills(self, candidate_ids: Iterable[int]) -> list[tuple[int, str]]:
        """(candidate_id, skill name) pairs for the given candidates, in a stable order."""
        ids = sorted({int(i) for i in candidate_ids})
        if not ids:
            return []
        rows = self.db.execute(
            select(CandidateSkill.candidate_id, Skill.name)
            .join(Skill, Skill.id == CandidateSkill.skill_id)
            .where(CandidateSkill.candidate_id.in_(ids))
            .order_by(CandidateSkill.candidate_id, Skill.name)
        ).all()
        return [(int(r[0]), r[1]) for r in rows]

    def _unlocked_expr(self, company_id: int):
        return exists().where(
            Unlock.company_id == company_id,
            Unlock.candidate_id == Candidate.id,
            Unlock.unlock_type == UNLOCK_TYPE_CONTACT,
        )

    def _candidate_columns(self, company_id: int):
        return (
            Candidate.id,
            Candidate.public_slug,
            Candidate.display_name,
            Candidate.desired_role,
            Candidate.english_level,
            Candidate.expected_salary_min_cny,
            Candidate.expected_salary_max_cny,
            Candidate.availability_days,
            Candidate.timezone,
            Candidate.bc_experience,
            Candidate.summary,
            Candidate.rating,
            self._unlocked_expr(company_id).label("unlocked_contact"),
        )

    @staticmethod
    def _to_row(r) -> CandidateRow:
        return CandidateRow(
            id=int(r[0]),
            slug=r[1],
            display_name=r[2],
            desired_role=r[3],
            english_level=r[4],
            expected_salary_min_cny=r[5],
            expected_salary_max_cny=r[6],
            availability_days=r[7],
            timezone=r[8],
            bc_experience=bool(r[9]),
            summary=r[10],
            rating=r[11],
            unlocked_contact=bool(r[12]),
        )

    def list_candidates_page(self, filters: CandidateListFilter) -> list[CandidateRow]:
        stmt = select(*self._candidate_columns(filters.company_id)).where(Candidate.status == ACTIVE)

        if filters.english:
            stmt = stmt.where(Candidate.english_level == filters.english)
        if filters.bc_experience is not None:
            stmt = stmt.where(Candidate.bc_experience == filters.bc_experience)
        if filters.availability_days_max is not None:
            stmt = stmt.where(Candidate.availability_days <= filters.availability_days_max)
        # Salary band: candidate's expected range must overlap the requested one.
        if filters.salary_min is not None:
            stmt = stmt.where(
                or_(
                    Candidate.expected_salary_max_cny.is_(None),
                    Candidate.expected_salary_max_cny >= filters.salary_min,
                )
            )
        if filters.salary_max is not None:
            stmt = stmt.where(
                or_(
                    Candidate.expected_salary_min_cny.is_(None),
                    Candidate.expected_salary_min_cny <= filters.salary_max,
                )
            )
        if filters.skill:
            stmt = stmt.where(
                exists().where(
                    and_(
                        CandidateSkill.candidate_id == Candidate.id,
                        CandidateSkill.skill_id == Skill.id,
                        func.lower(Skill.name) == filters.skill.strip().lower(),
                    )
                )
            )
        if filters.q:
            pattern = _like_pattern(filters.q.strip().lower())
            stmt = stmt.where(
                or_(
                    func.lower(Candidate.display_name).like(pattern, escape="\\"),
                    func.lower(func.coalesce(Candidate.desired_role, "")).like(pattern, escape="\\"),
                    func.lower(func.coalesce(Candidate.summary, "")).like(pattern, escape="\\"),
                )
            )

        stmt = (
            stmt.order_by(Candidate.updated_at.desc(), Candidate.id.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        )
        return [self._to_row(r) for r in self.db.execute(stmt).all()]

    def get_candidate_with_unlock_flag(self, company_id: int, slug: str) -> CandidateRow | None:
        r = self.db.execute(
            select(*self._candidate_columns(company_id))
            .where(Candidate.public_slug == slug, Candidate.status == ACTIVE)
            .limit(1)
        ).first()
        return self._to_row(r) if r is not None else None
