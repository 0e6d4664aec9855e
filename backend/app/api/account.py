from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.company import Company, HRUser
from ..services.candidate_store import CandidateStore
from ..utils.dependencies import HRClaims, require_active_hr
from ..utils.error_handlers import NotFoundError, handle_database_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Account"])


def _date_or_empty(value) -> str:
    return value.isoformat() if value else ""


@router.get("/me")
def get_me(
    db: Session = Depends(get_db),
    claims: HRClaims = Depends(require_active_hr),
):
    try:
        hr_user = db.get(HRUser, claims.hr_user_id)
        company = db.get(Company, claims.company_id)
        quota = CandidateStore(db).get_quota(claims.company_id)
    except SQLAlchemyError as e:
        raise handle_database_error(e, "loading account")

    if not hr_user or not company:
        raise NotFoundError("Account not found")

    configured = quota is not None
    total = int(quota.unlock_quota_total or 0) if configured else 0
    used = int(quota.unlock_quota_used or 0) if configured else 0

    return {
        "user": {
            "id": hr_user.id,
            "company_id": hr_user.company_id,
            "status": hr_user.status,
            "role": hr_user.role,
            "display_name": hr_user.display_name,
            "tg_username": hr_user.tg_username,
        },
        "company": {
            "id": company.id,
            "name": company.name,
            "status": company.status,
        },
        "quota": {
            "configured": configured,
            "unlock_quota_total": total,
            "unlock_quota_used": used,
            "unlock_quota_remaining": max(total - used, 0),
            "period_start": _date_or_empty(quota.period_start) if configured else "",
            "period_end": _date_or_empty(quota.period_end) if configured else "",
        },
    }
