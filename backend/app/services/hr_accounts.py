"""
HR accounts

get_or_create_hr_user() maps a Telegram identity to an HR user. The first login
of an unknown Telegram id provisions, in a single transaction, a new company,
its quota ledger row and the HR user itself.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import DEFAULT_UNLOCK_QUOTA, HR_DEFAULT_STATUS
from ..models.company import Company, HRUser
from ..models.unlock import CompanyQuota

logger = logging.getLogger(__name__)

HR_STATUSES = {"active", "pending", "blocked"}


@dataclass(frozen=True)
class HRAccount:
    hr_user_id: int
    company_id: int
    status: str
    role: str
    created: bool = False


def _find(db: Session, tg_user_id: int) -> HRAccount | None:
    row = db.execute(
        select(HRUser.id, HRUser.company_id, HRUser.status, HRUser.role).where(HRUser.tg_user_id == tg_user_id)
    ).first()
    if row is None:
        return None
    return HRAccount(hr_user_id=row[0], company_id=row[1], status=row[2], role=row[3])


def get_or_create_hr_user(
    db: Session,
    tg_user_id: int,
    username: str | None,
    display_name: str,
    *,
    default_status: str = HR_DEFAULT_STATUS,
    default_quota: int = DEFAULT_UNLOCK_QUOTA,
) -> HRAccount:
    existing = _find(db, tg_user_id)
    if existing is not None:
        return existing

    status = default_status if default_status in HR_STATUSES else "pending"
    try:
        company = Company(name=uuid.uuid4().hex, status="active")
        db.add(company)
        db.flush()
        db.add(
            CompanyQuota(
                company_id=company.id,
                unlock_quota_total=max(int(default_quota), 0),
                unlock_quota_used=0,
            )
        )
        user = HRUser(
            company_id=company.id,
            tg_user_id=tg_user_id,
            tg_username=username or None,
            display_name=display_name,
            role="recruiter",
            status=status,
        )
        db.add(user)
        db.commit()
    except IntegrityError:
        # A concurrent first login for the same Telegram id won the insert.
        db.rollback()
        existing = _find(db, tg_user_id)
        if existing is None:
            raise
        return existing
    except BaseException:
        db.rollback()
        raise

    logger.info(f"Provisioned HR user={user.id} company={company.id} status={status} quota={default_quota}")
    return HRAccount(
        hr_user_id=user.id,
        company_id=company.id,
        status=status,
        role=user.role,
        created=True,
    )
