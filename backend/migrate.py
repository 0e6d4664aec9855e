#!/usr/bin/env python3
"""
Create all tables and, optionally, provision a company's unlock quota.

    python backend/migrate.py
    python backend/migrate.py --company-id 7 --quota-total 50
"""

import argparse
import sys
from pathlib import Path

from sqlalchemy import inspect

# Make `backend.app` importable when run as a script.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.app.database import SessionLocal, engine, init_db  # noqa: E402
from backend.app.models import Company, CompanyQuota  # noqa: E402

REQUIRED_TABLES = {
    "candidates",
    "skills",
    "candidate_skills",
    "candidate_contacts",
    "companies",
    "hr_users",
    "company_quotas",
    "unlocks",
    "audit_logs",
    "skill_cache_entries",
}


def provision_quota(company_id: int, total: int) -> bool:
    """Create or resize the quota ledger row. The used counter is never reset here."""
    db = SessionLocal()
    try:
        if db.get(Company, company_id) is None:
            print(f"✗ Company {company_id} does not exist")
            return False
        quota = db.get(CompanyQuota, company_id)
        if quota is None:
            db.add(CompanyQuota(company_id=company_id, unlock_quota_total=total, unlock_quota_used=0))
            print(f"✓ Quota created for company {company_id}: total={total}")
        else:
            quota.unlock_quota_total = total
            print(f"✓ Quota updated for company {company_id}: total={total}, used={quota.unlock_quota_used}")
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        print(f"✗ Failed to provision quota: {e}")
        return False
    finally:
        db.close()


def migrate(company_id: int | None = None, quota_total: int | None = None) -> bool:
    print("Initializing database with all models...")
    init_db()
    print("✓ Database initialized successfully")

    existing = set(inspect(engine).get_table_names())
    missing = REQUIRED_TABLES - existing
    if missing:
        print(f"✗ Missing tables: {', '.join(sorted(missing))}")
        return False
    print("✓ All tables present")

    if company_id is not None and quota_total is not None:
        return provision_quota(company_id, quota_total)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--company-id", type=int, default=None)
    parser.add_argument("--quota-total", type=int, default=None)
    args = parser.parse_args()
    success = migrate(args.company_id, args.quota_total)
    sys.exit(0 if success else 1)
