"""
Skill Cache

Key/value cache of candidate id -> ordered list of skill names with a TTL,
kept in the `skill_cache_entries` table.

The cache is a non-authoritative accelerator: every failure is logged and
reported as a miss (reads) or False (writes), never raised to the caller.
Each call uses its own short session so cache traffic never joins the
caller's transaction.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from sqlalchemy import delete, select

from .. import database
from ..models.skill_cache import SkillCacheEntry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _decode_skills(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        return None
    return value


class SkillCache:
    def __init__(self, session_factory: Callable | None = None, clock: Callable[[], datetime] = _utcnow):
        self._session_factory = session_factory
        self._clock = clock

    def _session(self):
        # Resolve lazily so a patched database.SessionLocal (tests) is honoured.
        factory = self._session_factory or database.SessionLocal
        return factory()

    def get_batch(self, candidate_ids: Iterable[int]) -> tuple[dict[int, list[str]], list[int]]:
        """
        Read all ids in one query.

        Returns (hits, misses). Absent, expired and undecodable entries are misses;
        a failed read turns the whole batch into misses.
        """
        ids = list(dict.fromkeys(int(i) for i in candidate_ids))
        if not ids:
            return {}, []

        now = self._clock()
        hits: dict[int, list[str]] = {}
        try:
            with self._session() as db:
                entries = db.execute(
                    select(SkillCacheEntry.candidate_id, SkillCacheEntry.skills_json, SkillCacheEntry.expires_at)
                    .where(SkillCacheEntry.candidate_id.in_(ids))
                ).all()
        except Exception as e:
            logger.warning(f"Skill cache read error, treating {len(ids)} ids as misses: {e}")
            return {}, ids

        for candidate_id, skills_json, expires_at in entries:
            if expires_at is None or now >= _as_utc(expires_at):
                continue
            skills = _decode_skills(skills_json)
            if skills is None:
                logger.warning(f"Skill cache corruption for candidate {candidate_id}: invalid JSON")
                continue
            hits[int(candidate_id)] = skills

        misses = [i for i in ids if i not in hits]
        logger.debug(f"Skill cache: {len(hits)} hit(s), {len(misses)} miss(es)")
        return hits, misses

    def set_batch(self, skills_by_id: dict[int, list[str]], ttl_seconds: int) -> bool:
        """Write complete snapshots for every id in one transaction. Best-effort."""
        if not skills_by_id:
            return True

        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        ids = [int(i) for i in skills_by_id]
        try:
            with self._session() as db:
                db.execute(delete(SkillCacheEntry).where(SkillCacheEntry.candidate_id.in_(ids)))
                db.add_all(
                    SkillCacheEntry(
                        candidate_id=int(candidate_id),
                        skills_json=json.dumps(list(skills), ensure_ascii=False),
                        expires_at=expires_at,
                    )
                    for candidate_id, skills in skills_by_id.items()
                )
                db.commit()
            return True
        except Exception as e:
            logger.warning(f"Skill cache storage error: {e}")
            return False

    def invalidate(self, candidate_id: int) -> bool:
        """
        Drop the cached skills of one candidate.
        Call whenever that candidate's skill set changes.
        """
        try:
            with self._session() as db:
                count = db.execute(
                    delete(SkillCacheEntry).where(SkillCacheEntry.candidate_id == int(candidate_id))
                ).rowcount
                db.commit()
        except Exception as e:
            logger.warning(f"Skill cache invalidation error: {e}")
            return False
        logger.info(f"Invalidated {count} skill cache entries for candidate={candidate_id}")
        return True

    def clear_expired(self) -> int:
        """
        Delete entries past their TTL.

        Returns:
            Number of entries deleted.
        """
        try:
            with self._session() as db:
                count = db.execute(
                    delete(SkillCacheEntry).where(SkillCacheEntry.expires_at <= self._clock())
                ).rowcount
                db.commit()
        except Exception as e:
            logger.warning(f"Skill cache cleanup error: {e}")
            return 0
        logger.info(f"Cleared {count} expired skill cache entries")
        return count
