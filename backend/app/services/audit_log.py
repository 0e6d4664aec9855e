"""
Audit log service.

HR actions are recorded off the request path: log_hr() only enqueues onto a
bounded queue, and a small pool of worker threads writes the rows. A full
queue drops the event with a warning; write failures are logged and counted.
Nothing is lost silently: stats() exposes processed/failed/dropped counters.
"""

import json
import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy.orm import Session

from .. import database
from ..models.audit_log import AuditLog

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class AuditEvent:
    company_id: int
    hr_user_id: int
    action: str
    target_type: str
    target_id: str
    meta: dict[str, Any] = field(default_factory=dict)


class AuditLogService:
    def __init__(self, *, max_queue: int = 1000, workers: int = 2, session_factory: Callable | None = None):
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, max_queue))
        self._workers_count = max(1, workers)
        self._session_factory = session_factory
        self._threads: list[threading.Thread] = []
        self._stats_lock = threading.Lock()
        self._stats = {"enqueued": 0, "processed": 0, "failed": 0, "dropped": 0}
        self._running = False

    def _session(self) -> Session:
        factory = self._session_factory or database.SessionLocal
        return factory()

    def _bump(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        for i in range(self._workers_count):
            t = threading.Thread(target=self._worker, name=f"audit-writer-{i}", daemon=True)
            t.start()
            self._threads.append(t)
        logger.info(f"Audit log service started with {self._workers_count} worker(s)")

    def shutdown(self, timeout: float = 5.0) -> None:
        """Drain queued events, then stop the workers."""
        if not self._running:
            return
        self._running = False
        for _ in self._threads:
            self._queue.put(_STOP)
        for t in self._threads:
            t.join(timeout=timeout)
            if t.is_alive():
                logger.warning(f"Audit worker {t.name} did not stop within {timeout}s")
        self._threads = []
        logger.info(f"Audit log service stopped: {self.stats()}")

    def stats(self) -> dict[str, int]:
        with self._stats_lock:
            return dict(self._stats, queued=self._queue.qsize())

    def log_hr(
        self,
        *,
        company_id: int,
        hr_user_id: int,
        action: str,
        target_type: str,
        target_id: str,
        meta: dict[str, Any] | None = None,
    ) -> bool:
        """Enqueue an audit event without blocking. Returns False when it was dropped."""
        event = AuditEvent(
            company_id=int(company_id),
            hr_user_id=int(hr_user_id),
            action=action,
            target_type=target_type,
            target_id=str(target_id),
            meta=dict(meta or {}),
        )
        if not self._running:
            logger.warning(f"Audit log service not running, dropping {action}")
            self._bump("dropped")
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(f"Audit queue full, dropping {action} for company={company_id}")
            self._bump("dropped")
            return False
        self._bump("enqueued")
        return True

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(item)
                self._bump("processed")
            except Exception:
                logger.exception(f"Failed to write audit event {getattr(item, 'action', '?')}")
                self._bump("failed")
            finally:
                self._queue.task_done()

    def _write(self, event: AuditEvent) -> None:
        db = self._session()
        try:
            db.add(
                AuditLog(
                    company_id=event.company_id,
                    hr_user_id=event.hr_user_id,
                    action=event.action,
                    target_type=event.target_type,
                    target_id=event.target_id,
                    meta_json=json.dumps(event.meta, ensure_ascii=False, default=str),
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def flush(self) -> None:
        """Block until every queued event has been handled."""
        self._queue.join()


def get_audit_logs(db: Session, *, company_id: int, limit: int, offset: int) -> list[dict[str, Any]]:
    rows = (
        db.query(AuditLog)
        .filter(AuditLog.company_id == company_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    items = []
    for row in rows:
        try:
            meta = json.loads(row.meta_json or "{}")
        except json.JSONDecodeError:
            meta = {}
        items.append(
            {
                "id": row.id,
                "hr_user_id": row.hr_user_id,
                "action": row.action,
                "target_type": row.target_type,
                "target_id": row.target_id,
                "meta": meta,
                "created_at": row.created_at.isoformat() if row.created_at else None,
            }
        )
    return items
