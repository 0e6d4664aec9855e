"""
Telegram login widget verification.

The login route only depends on the TelegramVerifier interface; the concrete
verifier is picked from config (HMAC check with the bot token, or accept-all
in dev mode).
"""

import hashlib
import hmac
import logging
import time
from typing import Callable

from ..config import TELEGRAM_BOT_TOKEN, TELEGRAM_DEV_MODE
from ..schemas.auth import TelegramAuthData

logger = logging.getLogger(__name__)

# Widget payloads older than this are rejected.
MAX_AUTH_AGE_S = 3600


class TelegramAuthError(Exception):
    """The widget payload could not be verified."""


class TelegramVerifier:
    def verify(self, data: TelegramAuthData) -> None:
        raise NotImplementedError


class DevModeVerifier(TelegramVerifier):
    def verify(self, data: TelegramAuthData) -> None:
        logger.debug(f"Telegram verification skipped (dev mode) for tg_user={data.id}")


def data_check_string(data: TelegramAuthData) -> str:
    params = {
        "id": str(data.id),
        "first_name": data.first_name,
        "auth_date": str(data.auth_date),
    }
    for key in ("last_name", "username", "photo_url"):
        value = getattr(data, key)
        if value:
            params[key] = value
    return "\n".join(f"{key}={params[key]}" for key in sorted(params))


def sign(data: TelegramAuthData, bot_token: str) -> str:
    """Hash the widget would send for this payload and bot token."""
    secret = hmac.new(b"TelegramBotTokenWithGetMe", bot_token.encode(), hashlib.sha256).hexdigest()
    return hmac.new(secret.encode(), data_check_string(data).encode(), hashlib.sha256).hexdigest()


class HMACTelegramVerifier(TelegramVerifier):
    def __init__(self, bot_token: str, clock: Callable[[], float] = time.time):
        self.bot_token = bot_token
        self._clock = clock

    def verify(self, data: TelegramAuthData) -> None:
        if not self.bot_token:
            raise TelegramAuthError("bot_token_missing")
        if self._clock() - data.auth_date > MAX_AUTH_AGE_S:
            raise TelegramAuthError("auth_data_expired")
        if not hmac.compare_digest(sign(data, self.bot_token), data.hash or ""):
            raise TelegramAuthError("invalid_hash")


def build_verifier() -> TelegramVerifier:
    if TELEGRAM_DEV_MODE:
        logger.warning("Telegram verification is DISABLED (TELEGRAM_DEV_MODE=1)")
        return DevModeVerifier()
    if not TELEGRAM_BOT_TOKEN:
        logger.warning("TELEGRAM_BOT_TOKEN is empty; every Telegram login will be rejected")
    return HMACTelegramVerifier(TELEGRAM_BOT_TOKEN)
