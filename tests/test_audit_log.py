import json

from backend.app import database
from backend.app.models import AuditLog
from backend.app.services.audit_log import AuditLogService, get_audit_logs


def _failing_session():
    raise RuntimeError("audit store unavailable")


def _event(**overrides) -> dict:
    event = {
        "company_id": 1,
        "hr_user_id": 2,
        "action": "candidate.view",
        "target_type": "candidate",
        "target_id": "anna-k",
    }
    event.update(overrides)
    return event


def test_events_are_written_by_workers(app):
    service = AuditLogService(max_queue=10, workers=2)
    service.start()
    try:
        assert service.log_hr(**_event(meta={"page": 1})) is True
        assert service.log_hr(**_event(action="candidate.unlock")) is True
        service.flush()
    finally:
        service.shutdown()

    db = database.SessionLocal()
    try:
        rows = db.query(AuditLog).order_by(AuditLog.id).all()
    finally:
        db.close()
    assert sorted(r.action for r in rows) == ["candidate.unlock", "candidate.view"]
    metas = [json.loads(r.meta_json) for r in rows]
    assert {"page": 1} in metas

    stats = service.stats()
    assert stats["enqueued"] == 2
    assert stats["processed"] == 2
    assert stats["failed"] == 0


def test_not_running_service_drops_events(app):
    service = AuditLogService(max_queue=10, workers=1)
    assert service.log_hr(**_event()) is False
    assert service.stats()["dropped"] == 1


def test_full_queue_drops_without_blocking(app):
    service = AuditLogService(max_queue=2, workers=1)
    # Running but with no workers pulling, so the queue fills up.
    service._running = True

    results = [service.log_hr(**_event(target_id=str(i))) for i in range(4)]

    assert results == [True, True, False, False]
    stats = service.stats()
    assert stats["dropped"] == 2
    assert stats["queued"] == 2


def test_write_failures_are_counted(app):
    service = AuditLogService(max_queue=10, workers=1, session_factory=_failing_session)
    service.start()
    try:
        service.log_hr(**_event())
        service.flush()
    finally:
        service.shutdown()

    stats = service.stats()
    assert stats["failed"] == 1
    assert stats["processed"] == 0


def test_shutdown_drains_queue(app):
    service = AuditLogService(max_queue=50, workers=1)
    service.start()
    for i in range(20):
        service.log_hr(**_event(target_id=str(i)))
    service.shutdown()

    assert service.stats()["processed"] == 20
    assert service.log_hr(**_event()) is False


def test_get_audit_logs_is_scoped_to_company(app):
    db = database.SessionLocal()
    try:
        db.add(AuditLog(company_id=1, hr_user_id=2, action="candidate.list", target_type="company", target_id="1", meta_json="{}"))
        db.add(AuditLog(company_id=1, hr_user_id=2, action="candidate.view", target_type="candidate", target_id="x", meta_json="not json"))
        db.add(AuditLog(company_id=2, hr_user_id=3, action="candidate.view", target_type="candidate", target_id="y", meta_json="{}"))
        db.commit()

        items = get_audit_logs(db, company_id=1, limit=10, offset=0)
        page = get_audit_logs(db, company_id=1, limit=1, offset=1)
    finally:
        db.close()

    assert [i["action"] for i in items] == ["candidate.view", "candidate.list"]
    assert items[0]["meta"] == {}
    assert len(page) == 1
    assert page[0]["action"] == "candidate.list"
