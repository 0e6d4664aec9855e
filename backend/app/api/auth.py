import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import AUTH_COOKIE_NAME, COOKIE_SECURE
from ..database import get_db
from ..schemas.auth import TelegramAuthData
from ..services.hr_accounts import get_or_create_hr_user
from ..utils.dependencies import get_telegram_verifier
from ..utils.error_handlers import UnauthorizedError, get_error_message, handle_database_error
from ..utils.jwt import ACCESS_TOKEN_EXPIRE_MINUTES, create_access_token
from ..utils.telegram import TelegramAuthError, TelegramVerifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/telegram/login")
def telegram_login(
    payload: TelegramAuthData,
    db: Session = Depends(get_db),
    verifier: TelegramVerifier = Depends(get_telegram_verifier),
):
    try:
        verifier.verify(payload)
    except TelegramAuthError as e:
        logger.warning(f"Rejected Telegram login for tg_user={payload.id}: {e}")
        raise UnauthorizedError(get_error_message("invalid_auth_data"), code="invalid_auth_data")

    try:
        account = get_or_create_hr_user(db, payload.id, payload.username, payload.display_name)
    except SQLAlchemyError as e:
        raise handle_database_error(e, "telegram login")

    token = create_access_token(
        {
            "hr_user_id": account.hr_user_id,
            "company_id": account.company_id,
            "status": account.status,
            "role": account.role,
        }
    )

    response = JSONResponse(
        {
            "success": True,
            "user_id": account.hr_user_id,
            "status": account.status,
        }
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        secure=COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
    return response
