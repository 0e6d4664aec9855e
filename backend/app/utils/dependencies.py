from dataclasses import dataclass

from fastapi import Depends, Request

from ..config import AUDIT_QUEUE_SIZE, AUDIT_WORKERS, AUTH_COOKIE_NAME
from ..services.audit_log import AuditLogService
from ..services.candidate_reads import CandidateReadService
from ..services.skill_cache import SkillCache
from ..services.skill_resolver import SkillResolver
from .error_handlers import ForbiddenError, UnauthorizedError, get_error_message
from .jwt import decode_access_token
from .telegram import TelegramVerifier, build_verifier


@dataclass(frozen=True)
class HRClaims:
    hr_user_id: int
    company_id: int
    status: str
    role: str


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _token_from_request(request: Request) -> str | None:
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def get_current_hr(request: Request) -> HRClaims:
    token = _token_from_request(request)
    if not token:
        raise UnauthorizedError(get_error_message("unauthorized"))

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedError(get_error_message("invalid_token"), code="invalid_token")

    hr_user_id = _to_int(payload.get("hr_user_id"))
    company_id = _to_int(payload.get("company_id"))
    if not hr_user_id or not company_id:
        raise UnauthorizedError(get_error_message("invalid_token"), code="invalid_token")

    return HRClaims(
        hr_user_id=hr_user_id,
        company_id=company_id,
        status=str(payload.get("status") or "active"),
        role=str(payload.get("role") or ""),
    )


def require_active_hr(claims: HRClaims = Depends(get_current_hr)) -> HRClaims:
    if claims.status == "active":
        return claims
    if claims.status == "pending":
        raise ForbiddenError(get_error_message("pending_approval"), code="pending_approval")
    raise ForbiddenError(get_error_message("blocked"), code="blocked")


_read_service: CandidateReadService | None = None
_audit_service: AuditLogService | None = None
_telegram_verifier: TelegramVerifier | None = None


def get_read_service() -> CandidateReadService:
    global _read_service
    if _read_service is None:
        _read_service = CandidateReadService(SkillResolver(SkillCache()))
    return _read_service


def get_audit_service() -> AuditLogService:
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditLogService(max_queue=AUDIT_QUEUE_SIZE, workers=AUDIT_WORKERS)
    return _audit_service


def get_telegram_verifier() -> TelegramVerifier:
    global _telegram_verifier
    if _telegram_verifier is None:
        _telegram_verifier = build_verifier()
    return _telegram_verifier
