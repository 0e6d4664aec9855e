import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..config import READ_TIMEOUT_S, UNLOCK_TIMEOUT_S
from ..database import get_db
from ..schemas.candidate import CandidateListFilter
from ..services.audit_log import AuditLogService
from ..services.candidate_reads import CandidateReadService
from ..services.candidate_store import CandidateStore
from ..services.unlock_engine import unlock_contact
from ..utils.deadline import deadline_after
from ..utils.dependencies import HRClaims, get_audit_service, get_read_service, require_active_hr
from ..utils.validation import optional_bool, optional_int, optional_str, parse_pagination, validate_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/candidates", tags=["Candidates"])


@router.get("")
def list_candidates(
    q: str | None = Query(default=None),
    skill: str | None = Query(default=None),
    english: str | None = Query(default=None),
    bc_experience: str | None = Query(default=None, description="true/false"),
    availability_days_max: str | None = Query(default=None),
    salary_min: str | None = Query(default=None),
    salary_max: str | None = Query(default=None),
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None),
    db: Session = Depends(get_db),
    claims: HRClaims = Depends(require_active_hr),
    reads: CandidateReadService = Depends(get_read_service),
    audit: AuditLogService = Depends(get_audit_service),
):
    page_n, size_n, limit, offset = parse_pagination(page, page_size)
    filters = CandidateListFilter(
        company_id=claims.company_id,
        q=optional_str(q),
        skill=optional_str(skill),
        english=optional_str(english),
        bc_experience=optional_bool(bc_experience),
        availability_days_max=optional_int(availability_days_max),
        salary_min=optional_int(salary_min),
        salary_max=optional_int(salary_max),
        limit=limit,
        offset=offset,
    )

    items = reads.list_candidates(CandidateStore(db), filters, deadline=deadline_after(READ_TIMEOUT_S))

    audit.log_hr(
        company_id=claims.company_id,
        hr_user_id=claims.hr_user_id,
        action="candidate.list",
        target_type="company",
        target_id=str(claims.company_id),
        meta={"page": page_n, "page_size": size_n},
    )
    return {"items": [c.model_dump() for c in items], "page": page_n, "page_size": size_n}


@router.get("/{slug}")
def get_candidate(
    slug: str,
    db: Session = Depends(get_db),
    claims: HRClaims = Depends(require_active_hr),
    reads: CandidateReadService = Depends(get_read_service),
    audit: AuditLogService = Depends(get_audit_service),
):
    slug = validate_slug(slug)
    detail = reads.get_candidate_detail(
        CandidateStore(db), claims.company_id, slug, deadline=deadline_after(READ_TIMEOUT_S)
    )

    audit.log_hr(
        company_id=claims.company_id,
        hr_user_id=claims.hr_user_id,
        action="candidate.view",
        target_type="candidate",
        target_id=slug,
    )
    return detail.model_dump()


@router.post("/{slug}/unlock")
def unlock_candidate_contact(
    slug: str,
    db: Session = Depends(get_db),
    claims: HRClaims = Depends(require_active_hr),
    audit: AuditLogService = Depends(get_audit_service),
):
    slug = validate_slug(slug)
    contact = unlock_contact(
        db,
        company_id=claims.company_id,
        hr_user_id=claims.hr_user_id,
        slug=slug,
        deadline=deadline_after(UNLOCK_TIMEOUT_S),
    )

    audit.log_hr(
        company_id=claims.company_id,
        hr_user_id=claims.hr_user_id,
        action="candidate.unlock",
        target_type="candidate",
        target_id=slug,
    )
    return contact.model_dump()
