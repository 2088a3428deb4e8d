import logging
from datetime import datetime

from sqlalchemy.exc import OperationalError

from apartment_admin.auth.session import AdminSession
from apartment_admin.models.models import AuditLog
from apartment_admin.services.audit import audit_log, list_audit_logs


def test_audit_log_records_actor_and_values(db_session, actor):
    receipt = audit_log(
        db_session,
        actor,
        action="update",
        entity_type="flat",
        entity_id="flat-1",
        description="Flat updated: 3",
        old_value={"floor": 1},
        new_value={"floor": 2},
    )

    assert receipt.ok is True
    assert receipt.recorded is True
    entry = db_session.get(AuditLog, receipt.entry_id)
    assert entry.user_id == actor.user_id
    assert entry.user_email == actor.email
    assert entry.ip_address == "127.0.0.1"
    assert entry.old_value == '{"floor": 1}'
    assert entry.new_value == '{"floor": 2}'


def test_system_actor_is_recorded_without_user(db_session):
    receipt = audit_log(db_session, AdminSession.system(), "update", "due", "batch", "Late fees applied to 0 dues")

    assert db_session.get(AuditLog, receipt.entry_id).user_id is None


def test_audit_failure_is_logged_and_reported_ok(db_session, actor, monkeypatch, caplog):
    def _failing_commit():
        raise OperationalError("INSERT", {}, Exception("disk full"))

    monkeypatch.setattr(db_session, "commit", _failing_commit)

    with caplog.at_level(logging.ERROR, logger="apartment_admin.services.audit"):
        receipt = audit_log(db_session, actor, "delete", "expense", "exp-1", "Expense deleted")

    assert receipt.ok is True
    assert receipt.recorded is False
    assert "Audit write dropped" in caplog.text
    assert db_session.query(AuditLog).count() == 0


def test_list_audit_logs_filters_and_paginates(db_session, actor):
    for index in range(5):
        audit_log(db_session, actor, "create", "due", f"due-{index}", f"Due created {index}")
    audit_log(db_session, actor, "approve", "expense", "exp-1", "Expense approved")

    dues, total = list_audit_logs(db_session, entity_type="due", limit=2, offset=0)
    approvals, approval_total = list_audit_logs(db_session, action="approve")
    by_entity, _ = list_audit_logs(db_session, entity_id="due-3")
    future, future_total = list_audit_logs(db_session, start=datetime(2100, 1, 1))

    assert total == 5
    assert len(dues) == 2
    assert approval_total == 1
    assert approvals[0].entity_id == "exp-1"
    assert [entry.description for entry in by_entity] == ["Due created 3"]
    assert future == [] and future_total == 0


def test_unserializable_value_is_dropped_not_raised(db_session, actor, caplog):
    class Unprintable:
        def __str__(self):
            raise ValueError("no text form")

    with caplog.at_level(logging.ERROR, logger="apartment_admin.services.audit"):
        receipt = audit_log(db_session, actor, "update", "due", "due-1", "Due updated", new_value={"odd": Unprintable()})

    assert receipt.ok is True
    assert receipt.recorded is False
    assert "Audit entry could not be built" in caplog.text
    assert db_session.query(AuditLog).count() == 0
