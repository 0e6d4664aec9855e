import pytest

from backend.app.models import Company, CompanyQuota, HRUser
from backend.app.schemas.auth import TelegramAuthData
from backend.app.services.hr_accounts import get_or_create_hr_user
from backend.app.utils.dependencies import get_telegram_verifier
from backend.app.utils.telegram import (
    DevModeVerifier,
    HMACTelegramVerifier,
    TelegramAuthError,
    sign,
)

BOT_TOKEN = "123456:test-bot-token"
NOW = 1_760_000_000


def _payload(**overrides) -> dict:
    payload = {
        "id": 424242,
        "first_name": "Mia",
        "last_name": "Chen",
        "username": "mia_hr",
        "auth_date": NOW,
        "hash": "unused",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def dev_login(app):
    app.dependency_overrides[get_telegram_verifier] = lambda: DevModeVerifier()
    yield
    app.dependency_overrides.pop(get_telegram_verifier, None)


@pytest.fixture()
def hmac_login(app):
    verifier = HMACTelegramVerifier(BOT_TOKEN, clock=lambda: NOW + 60)
    app.dependency_overrides[get_telegram_verifier] = lambda: verifier
    yield verifier
    app.dependency_overrides.pop(get_telegram_verifier, None)


def test_first_login_provisions_company_quota_and_user(client, dev_login, db_session):
    resp = client.post("/auth/telegram/login", json=_payload())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "active"
    assert resp.cookies.get("hr_auth")

    user = db_session.get(HRUser, body["user_id"])
    assert user.tg_user_id == 424242
    assert user.tg_username == "mia_hr"
    assert user.display_name == "Mia Chen"
    assert user.status == "active"
    assert db_session.get(Company, user.company_id) is not None
    quota = db_session.get(CompanyQuota, user.company_id)
    assert (quota.unlock_quota_total, quota.unlock_quota_used) == (0, 0)


def test_login_cookie_authenticates_later_requests(client, dev_login):
    login = client.post("/auth/telegram/login", json=_payload())
    assert login.status_code == 200

    me = client.get("/api/me")

    assert me.status_code == 200
    body = me.json()
    assert body["user"]["id"] == login.json()["user_id"]
    assert body["quota"]["configured"] is True
    assert body["quota"]["unlock_quota_remaining"] == 0


def test_repeat_login_reuses_account(client, dev_login, db_session):
    first = client.post("/auth/telegram/login", json=_payload()).json()
    second = client.post("/auth/telegram/login", json=_payload(first_name="Renamed")).json()

    assert second["user_id"] == first["user_id"]
    assert db_session.query(Company).count() == 1
    assert db_session.query(HRUser).count() == 1
    assert db_session.query(CompanyQuota).count() == 1


def test_login_with_bad_hash_is_unauthorized(client, hmac_login, db_session):
    resp = client.post("/auth/telegram/login", json=_payload(hash="0" * 64))

    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_auth_data"
    assert resp.cookies.get("hr_auth") is None
    assert db_session.query(HRUser).count() == 0


def test_login_with_signed_payload(client, hmac_login):
    data = TelegramAuthData(**_payload())
    resp = client.post("/auth/telegram/login", json=_payload(hash=sign(data, BOT_TOKEN)))

    assert resp.status_code == 200
    assert resp.json()["status"] == "active"


def test_pending_default_status_blocks_access(client, db_session, token_for):
    account = get_or_create_hr_user(db_session, 777, "newbie", "Newbie", default_status="pending")

    assert account.created is True
    assert account.status == "pending"
    user = db_session.get(HRUser, account.hr_user_id)
    resp = client.get("/api/me", headers={"Authorization": f"Bearer {token_for(user)}"})
    assert resp.status_code == 403
    assert resp.json()["code"] == "pending_approval"


def test_get_or_create_is_idempotent(db_session):
    first = get_or_create_hr_user(db_session, 888, None, "Solo", default_quota=5)
    again = get_or_create_hr_user(db_session, 888, None, "Solo", default_quota=50)

    assert first.created is True
    assert again.created is False
    assert again.hr_user_id == first.hr_user_id
    assert again.company_id == first.company_id
    assert db_session.get(CompanyQuota, first.company_id).unlock_quota_total == 5


def test_unknown_default_status_falls_back_to_pending(db_session):
    account = get_or_create_hr_user(db_session, 999, "odd", "Odd", default_status="superuser")
    assert account.status == "pending"


def test_display_name_fallbacks():
    assert TelegramAuthData(id=1, first_name=" Ann ", last_name="").display_name == "Ann"
    assert TelegramAuthData(id=1, first_name="", username="ann_tg").display_name == "ann_tg"
    assert TelegramAuthData(id=7, first_name=None, username=None).display_name == "tg7"


class TestHMACVerifier:
    def _data(self, **overrides) -> TelegramAuthData:
        data = TelegramAuthData(**_payload(**overrides))
        return data.model_copy(update={"hash": sign(data, BOT_TOKEN)})

    def test_accepts_widget_signature(self):
        HMACTelegramVerifier(BOT_TOKEN, clock=lambda: NOW + 10).verify(self._data())

    def test_optional_fields_are_signed(self):
        data = self._data(photo_url="https://t.me/i/userpic/1.jpg")
        tampered = data.model_copy(update={"photo_url": "https://example.com/other.jpg"})

        verifier = HMACTelegramVerifier(BOT_TOKEN, clock=lambda: NOW)
        verifier.verify(data)
        with pytest.raises(TelegramAuthError, match="invalid_hash"):
            verifier.verify(tampered)

    def test_rejects_other_bot_token(self):
        with pytest.raises(TelegramAuthError, match="invalid_hash"):
            HMACTelegramVerifier("999:other", clock=lambda: NOW).verify(self._data())

    def test_rejects_stale_payload(self):
        with pytest.raises(TelegramAuthError, match="auth_data_expired"):
            HMACTelegramVerifier(BOT_TOKEN, clock=lambda: NOW + 3601).verify(self._data())

    def test_rejects_without_bot_token(self):
        with pytest.raises(TelegramAuthError, match="bot_token_missing"):
            HMACTelegramVerifier("", clock=lambda: NOW).verify(self._data())
