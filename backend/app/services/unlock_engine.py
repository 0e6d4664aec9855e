"""
Unlock Engine

unlock_contact() charges a company one quota unit to reveal a candidate's
contact, at most once per (company, candidate), never beyond the quota.

All unlocks of one company serialize on that company's quota ledger row
(SELECT ... FOR UPDATE). Under the lock the unlock fact is inserted with
ON CONFLICT DO NOTHING; only the request that actually inserted it pays.
Repeated unlocks return the contact without touching the quota.

When the quota is exactly exhausted and requests race for different
candidates, the first to take the lock wins. Which one that is depends on
lock acquisition order and is not deterministic.

Nothing here retries. Store errors roll the transaction back and propagate.
"""

import logging

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ..schemas.candidate import CandidateContact
from ..utils.error_handlers import (
    DeadlineExceededError,
    NotFoundError,
    QuotaExceededError,
    QuotaNotConfiguredError,
    get_error_message,
)
from ..utils.deadline import check_deadline, remaining
from .candidate_store import CandidateStore, QuotaSnapshot

logger = logging.getLogger(__name__)


def _lock_quota(store: CandidateStore, company_id: int, deadline: float | None) -> QuotaSnapshot | None:
    """Take the quota row lock, waiting no longer than the deadline allows."""
    if deadline is None:
        return store.lock_quota_row(company_id)

    store.set_lock_timeout(max(remaining(deadline), 0.001))
    try:
        return store.lock_quota_row(company_id)
    except OperationalError as e:
        if store.is_lock_timeout(e):
            logger.warning(f"Quota lock wait hit the deadline: company={company_id}")
            raise DeadlineExceededError(details={"step": "lock"}) from e
        raise
    finally:
        store.reset_lock_timeout()


def unlock_contact(
    db: Session,
    *,
    company_id: int,
    hr_user_id: int,
    slug: str,
    deadline: float | None = None,
) -> CandidateContact:
    """
    Unlock a candidate's contact for a company and return it.

    Raises:
        NotFoundError: slug does not resolve to an active candidate (quota untouched),
            or the candidate has no contact row.
        QuotaNotConfiguredError: the company has no quota ledger row.
        QuotaExceededError: first-time unlock while used >= total.
        DeadlineExceededError: the deadline passed before commit, or the quota
            lock wait ran into it.
    """
    store = CandidateStore(db)

    candidate_id = store.find_candidate_id_by_slug(slug)
    if candidate_id is None:
        raise NotFoundError(get_error_message("candidate_not_found"))

    charged = False
    try:
        check_deadline(deadline, "begin")
        quota = _lock_quota(store, company_id, deadline)
        if quota is None:
            raise QuotaNotConfiguredError(details={"company_id": company_id})
        check_deadline(deadline, "locked")

        inserted = store.insert_unlock_if_absent(company_id, hr_user_id, candidate_id)
        if inserted:
            if quota.used >= quota.total:
                raise QuotaExceededError(details={"total": quota.total, "used": quota.used})
            if not store.increment_quota_used(company_id, 1):
                # The lock makes this unreachable unless the ledger was edited out of band.
                raise QuotaExceededError(details={"total": quota.total, "used": quota.used})
            charged = True

        check_deadline(deadline, "commit")
        db.commit()
    except BaseException:
        db.rollback()
        raise

    if charged:
        logger.info(f"Unlock charged: company={company_id} candidate={candidate_id} hr_user={hr_user_id}")
    else:
        logger.debug(f"Unlock already present: company={company_id} candidate={candidate_id}")

    contact = store.get_contact(candidate_id)
    if contact is None:
        raise NotFoundError(get_error_message("contact_not_found"))
    return contact
