import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Test modules import backend.app at collection time; keep a developer .env out of it.
os.environ["DISABLE_DOTENV"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    We intentionally do NOT import `backend.app.main` so startup hooks (logging, audit workers)
    stay under the fixtures' control.
    """
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"

    from backend.app import database as db

    engine = db.build_engine(os.environ["DATABASE_URL"])
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies and services use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.api import account as account_api
    from backend.app.api import audit as audit_api
    from backend.app.api import auth as auth_api
    from backend.app.api import candidates as candidates_api
    from backend.app.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(account_api.router)
    fastapi_app.include_router(candidates_api.router)
    fastapi_app.include_router(audit_api.router)
    register_exception_handlers(fastapi_app)

    yield fastapi_app

    engine.dispose()


@pytest.fixture()
def audit_service(app: FastAPI):
    from backend.app.services.audit_log import AuditLogService
    from backend.app.utils.dependencies import get_audit_service

    service = AuditLogService(max_queue=100, workers=1)
    service.start()
    app.dependency_overrides[get_audit_service] = lambda: service
    yield service
    service.shutdown()


@pytest.fixture()
def client(app: FastAPI, audit_service) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Seeder:
    """Small helpers to put companies, HR users and candidates in the test DB."""

    def __init__(self, db):
        self.db = db
        self._tg_ids = 1000

    def company(self, *, quota_total: int | None = None, quota_used: int = 0, name: str = "Acme"):
        from backend.app.models import Company, CompanyQuota

        company = Company(name=name, status="active")
        self.db.add(company)
        self.db.commit()
        if quota_total is not None:
            self.db.add(
                CompanyQuota(
                    company_id=company.id,
                    unlock_quota_total=quota_total,
                    unlock_quota_used=quota_used,
                )
            )
            self.db.commit()
        return company

    def hr_user(self, company, *, status: str = "active", name: str = "Recruiter"):
        from backend.app.models import HRUser

        self._tg_ids += 1
        user = HRUser(
            company_id=company.id,
            tg_user_id=self._tg_ids,
            tg_username=f"hr{self._tg_ids}",
            display_name=name,
            role="recruiter",
            status=status,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def candidate(
        self,
        slug: str,
        *,
        skills: list[str] | None = None,
        contact: dict | None = None,
        status: str = "active",
        **fields,
    ):
        from backend.app.models import Candidate, CandidateContact, CandidateSkill, Skill

        fields.setdefault("display_name", slug.replace("-", " ").title())
        candidate = Candidate(public_slug=slug, status=status, **fields)
        self.db.add(candidate)
        self.db.commit()

        for name in skills or []:
            skill = self.db.query(Skill).filter(Skill.name == name).first()
            if skill is None:
                skill = Skill(name=name)
                self.db.add(skill)
                self.db.commit()
            self.db.add(CandidateSkill(candidate_id=candidate.id, skill_id=skill.id))
        if contact is not None:
            self.db.add(CandidateContact(candidate_id=candidate.id, **contact))
        self.db.commit()
        return candidate

    def quota(self, company_id: int):
        from backend.app.models import CompanyQuota

        self.db.expire_all()
        return self.db.get(CompanyQuota, company_id)

    def unlock_count(self, company_id: int, candidate_id: int | None = None) -> int:
        from backend.app.models import Unlock

        self.db.expire_all()
        q = self.db.query(Unlock).filter(Unlock.company_id == company_id)
        if candidate_id is not None:
            q = q.filter(Unlock.candidate_id == candidate_id)
        return q.count()


@pytest.fixture()
def seed(db_session) -> Seeder:
    return Seeder(db_session)


@pytest.fixture()
def token_for():
    from backend.app.utils.jwt import create_access_token

    def _token(hr_user, *, status: str | None = None) -> str:
        return create_access_token(
            {
                "hr_user_id": hr_user.id,
                "company_id": hr_user.company_id,
                "status": status or hr_user.status,
                "role": hr_user.role,
            }
        )

    return _token
