import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api import account as account_api
from .api import audit as audit_api
from .api import auth as auth_api
from .api import candidates as candidates_api
from .config import FRONTEND_ORIGINS
from .database import init_db
from .logging_config import setup_logging
from .utils.dependencies import get_audit_service
from .utils.error_handlers import create_error_response, get_error_message, register_exception_handlers

app = FastAPI(title="HR Talent Platform API")

app.include_router(auth_api.router)
app.include_router(account_api.router)
app.include_router(candidates_api.router)
app.include_router(audit_api.router)

logger = logging.getLogger(__name__)

register_exception_handlers(app)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally."""
    logger.exception("Unhandled exception: %s", exc)
    return create_error_response(500, get_error_message("server_error"), code="internal")


@app.get("/healthz")
def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "service": "HR Talent Platform API",
        "ts": datetime.now(timezone.utc).isoformat(),
    }


_default_origins = ["http://localhost:3000", "http://localhost:3001"]
_extra_origins = [
    origin.strip()
    for origin in FRONTEND_ORIGINS.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *_extra_origins],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    setup_logging()
    init_db()
    get_audit_service().start()
    logger.info("Application started")


@app.on_event("shutdown")
def on_shutdown() -> None:
    get_audit_service().shutdown()
    logger.info("Application stopped")
