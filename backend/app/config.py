import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload (and not get
# stuck on old environment variables).
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

_TRUTHY = {"1", "true", "True", "yes", "YES"}

_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "hr_auth")
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "0") or "0").strip() in _TRUTHY

# -------------------- Telegram login --------------------
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
# Skips the widget signature check. Local development only.
TELEGRAM_DEV_MODE = (os.getenv("TELEGRAM_DEV_MODE", "0") or "0").strip() in _TRUTHY
# Status given to HR users created on first login: "active" or "pending".
HR_DEFAULT_STATUS = (os.getenv("HR_DEFAULT_STATUS", "active") or "active").strip()
# Unlock quota of the company auto-created on first login.
DEFAULT_UNLOCK_QUOTA = int(os.getenv("DEFAULT_UNLOCK_QUOTA", "0") or "0")

# -------------------- Skills cache --------------------
SKILLS_CACHE_TTL_S = int(os.getenv("SKILLS_CACHE_TTL_S", "86400") or "86400")
# Collapse concurrent misses for the same candidate into one store query.
SKILLS_SINGLE_FLIGHT = (os.getenv("SKILLS_SINGLE_FLIGHT", "0") or "0").strip() in _TRUTHY

# -------------------- Unlocks --------------------
# Upper bound for the whole unlock transaction, lock wait included.
UNLOCK_TIMEOUT_S = float(os.getenv("UNLOCK_TIMEOUT_S", "5") or "5")
# Budget for candidate list/detail reads (page fetch, skills cache, store fallback).
READ_TIMEOUT_S = float(os.getenv("READ_TIMEOUT_S", "5") or "5")

# -------------------- Audit log --------------------
AUDIT_QUEUE_SIZE = int(os.getenv("AUDIT_QUEUE_SIZE", "1000") or "1000")
AUDIT_WORKERS = int(os.getenv("AUDIT_WORKERS", "2") or "2")

# Comma separated extra CORS origins (the dashboard dev server is always allowed).
FRONTEND_ORIGINS = os.getenv("FRONTEND_ORIGINS", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
