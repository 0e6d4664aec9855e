"""
Skill cache-aside resolver.

resolve(store, ids) always returns a complete mapping id -> skill names:
cache hits are used as-is, misses are loaded from the store in one query and
written back with a fixed TTL before returning.

Candidates with no skills resolve to [] and are cached as such, so they are
not re-queried on every read.
"""

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as WaitTimeout
from typing import Iterable

from ..config import SKILLS_CACHE_TTL_S, SKILLS_SINGLE_FLIGHT
from ..utils.deadline import check_deadline, remaining
from ..utils.error_handlers import DeadlineExceededError
from .candidate_store import CandidateStore
from .skill_cache import SkillCache

logger = logging.getLogger(__name__)


class _InFlight:
    """Per-key map of loads in progress: candidate_id -> Future of its skills."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[int, Future] = {}

    def claim(self, ids: list[int]) -> tuple[dict[int, Future], dict[int, Future]]:
        """Split ids into (owned, waiting): owned futures must be settled by the caller."""
        owned: dict[int, Future] = {}
        waiting: dict[int, Future] = {}
        with self._lock:
            for candidate_id in ids:
                fut = self._pending.get(candidate_id)
                if fut is None:
                    fut = Future()
                    self._pending[candidate_id] = fut
                    owned[candidate_id] = fut
                else:
                    waiting[candidate_id] = fut
        return owned, waiting

    def release(self, owned: dict[int, Future]) -> None:
        with self._lock:
            for candidate_id, fut in owned.items():
                if self._pending.get(candidate_id) is fut:
                    del self._pending[candidate_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


def group_skills(candidate_ids: Iterable[int], rows: Iterable[tuple[int, str]]) -> dict[int, list[str]]:
    """Group (candidate_id, name) rows; every requested id gets an entry, possibly []."""
    grouped: dict[int, list[str]] = {int(i): [] for i in candidate_ids}
    for candidate_id, name in rows:
        if candidate_id in grouped:
            grouped[candidate_id].append(name)
    return grouped


class SkillResolver:
    def __init__(
        self,
        cache: SkillCache,
        ttl_seconds: int = SKILLS_CACHE_TTL_S,
        single_flight: bool = SKILLS_SINGLE_FLIGHT,
    ):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._inflight = _InFlight() if single_flight else None

    def resolve(
        self,
        store: CandidateStore,
        candidate_ids: Iterable[int],
        deadline: float | None = None,
    ) -> dict[int, list[str]]:
        ids = list(dict.fromkeys(int(i) for i in candidate_ids))
        if not ids:
            return {}

        check_deadline(deadline, "skills_cache_read")
        hits, misses = self.cache.get_batch(ids)
        resolved = dict(hits)
        if misses:
            check_deadline(deadline, "skills_store_fetch")
            if self._inflight is None:
                resolved.update(self._load(store, misses))
            else:
                resolved.update(self._load_single_flight(store, misses, deadline))
        return {candidate_id: resolved.get(candidate_id, []) for candidate_id in ids}

    def invalidate(self, candidate_id: int) -> bool:
        return self.cache.invalidate(candidate_id)

    def _load(self, store: CandidateStore, misses: list[int]) -> dict[int, list[str]]:
        loaded = group_skills(misses, store.list_skills(misses))
        if not self.cache.set_batch(loaded, self.ttl_seconds):
            logger.warning(f"Skill cache write-back failed for {len(loaded)} candidate(s); serving from store")
        return loaded

    def _load_single_flight(
        self, store: CandidateStore, misses: list[int], deadline: float | None = None
    ) -> dict[int, list[str]]:
        owned, waiting = self._inflight.claim(misses)
        result: dict[int, list[str]] = {}
        if owned:
            try:
                loaded = self._load(store, list(owned))
            except BaseException as e:
                for fut in owned.values():
                    fut.set_exception(e)
                raise
            else:
                for candidate_id, fut in owned.items():
                    fut.set_result(loaded[candidate_id])
                result.update(loaded)
            finally:
                self._inflight.release(owned)

        for candidate_id, fut in waiting.items():
            try:
                result[candidate_id] = list(fut.result(timeout=remaining(deadline)))
            except WaitTimeout:
                raise DeadlineExceededError(details={"step": "skills_inflight_wait"}) from None
        if waiting:
            logger.debug(f"Skill loads joined in flight: {len(waiting)}")
        return result
