from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.audit_log import get_audit_logs
from ..utils.dependencies import HRClaims, require_active_hr
from ..utils.validation import parse_pagination

router = APIRouter(prefix="/api", tags=["Audit"])


@router.get("/audit-logs")
def list_audit_logs(
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None),
    db: Session = Depends(get_db),
    claims: HRClaims = Depends(require_active_hr),
):
    page_n, size_n, limit, offset = parse_pagination(page, page_size)
    items = get_audit_logs(db, company_id=claims.company_id, limit=limit, offset=offset)
    return {
        "items": items,
        "page": page_n,
        "page_size": size_n,
        "total": len(items),
    }
