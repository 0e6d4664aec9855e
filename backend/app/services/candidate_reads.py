"""
Candidate Read Service

Builds candidate cards for the list and detail views: page/row from the store,
skills through the cache-aside resolver, contact only when already unlocked.
"""

import logging

from ..schemas.candidate import CandidateCard, CandidateDetail, CandidateListFilter
from ..utils.deadline import check_deadline
from ..utils.error_handlers import NotFoundError, get_error_message
from .candidate_store import CandidateRow, CandidateStore
from .skill_resolver import SkillResolver

logger = logging.getLogger(__name__)


def _row_to_card(row: CandidateRow, skills: list[str]) -> dict:
    return {
        "slug": row.slug,
        "display_name": row.display_name,
        "desired_role": row.desired_role,
        "english_level": row.english_level,
        "expected_salary_min_cny": row.expected_salary_min_cny,
        "expected_salary_max_cny": row.expected_salary_max_cny,
        "availability_days": row.availability_days,
        "timezone": row.timezone,
        "bc_experience": row.bc_experience,
        "summary": row.summary,
        "unlocked_contact": row.unlocked_contact,
        "skills": list(skills),
    }


class CandidateReadService:
    def __init__(self, resolver: SkillResolver):
        self.resolver = resolver

    def list_candidates(
        self,
        store: CandidateStore,
        filters: CandidateListFilter,
        deadline: float | None = None,
    ) -> list[CandidateCard]:
        check_deadline(deadline, "page_fetch")
        rows = store.list_candidates_page(filters)
        if not rows:
            return []

        skills = self.resolver.resolve(store, [r.id for r in rows], deadline=deadline)
        return [CandidateCard(**_row_to_card(r, skills.get(r.id, []))) for r in rows]

    def get_candidate_detail(
        self,
        store: CandidateStore,
        company_id: int,
        slug: str,
        deadline: float | None = None,
    ) -> CandidateDetail:
        check_deadline(deadline, "row_fetch")
        row = store.get_candidate_with_unlock_flag(company_id, slug)
        if row is None:
            raise NotFoundError(get_error_message("candidate_not_found"))

        skills = self.resolver.resolve(store, [row.id], deadline=deadline)
        detail = CandidateDetail(**_row_to_card(row, skills.get(row.id, [])))

        if row.unlocked_contact:
            detail.contact = store.get_contact(row.id)
            if detail.contact is None:
                logger.warning(f"Candidate {row.id} is unlocked for company {company_id} but has no contact row")
        return detail
