"""
Tests for the vault audit trail.

Tests cover:
- JSON-lines output with event ids and user context
- Filtering by event type and severity
- Singleton replacement
"""

import json
import re

from credvault.core import audit_log as audit_mod
from credvault.core.audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)


def test_log_file_name(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    assert re.fullmatch(r"audit_\d{4}-\d{2}-\d{2}\.log", logger.log_file.name)
    assert logger.log_file.parent == tmp_path


def test_log_event_writes_json_line(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    event_id = logger.log_event(
        EventType.CREDENTIAL_ADDED,
        EventSeverity.INFO,
        "Vault: Credential added for example.com",
        details={"id": "abc"},
    )

    lines = logger.log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "security_event"
    assert record["event_id"] == event_id
    assert record["event_type"] == "vault.credential.added"
    assert record["severity"] == "info"
    assert record["details"] == {"id": "abc"}
    assert "hostname" in record["user_context"]


def test_log_vault_event_prefix(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    logger.log_vault_event(EventType.VAULT_EXPORTED, "Exported 3 credentials")
    [event] = logger.query_events()
    assert event["message"] == "Vault: Exported 3 credentials"
    assert event["severity"] == EventSeverity.INFO.value


def test_explicit_user_context(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    logger.log_event(EventType.VAULT_CLEARED, EventSeverity.INVESTIGATE, "cleared",
                     user_context={"os_user": "tester"})
    assert logger.query_events()[0]["user_context"] == {"os_user": "tester"}


def test_query_filters(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    logger.log_vault_event(EventType.VAULT_UNLOCKED, "ok")
    logger.log_event(EventType.VAULT_UNLOCK_FAILED, EventSeverity.ALERT, "bad secret")
    logger.log_event(EventType.VAULT_ERROR, EventSeverity.ALERT, "bad blob")

    assert len(logger.query_events()) == 3
    assert len(logger.query_events(event_types=[EventType.VAULT_UNLOCKED])) == 1
    assert len(logger.query_events(severity=EventSeverity.ALERT)) == 2
    assert len(logger.query_events(
        event_types=[EventType.VAULT_ERROR], severity=EventSeverity.ALERT
    )) == 1


def test_query_limit_keeps_latest(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    for i in range(5):
        logger.log_vault_event(EventType.CREDENTIAL_ACCESSED, f"lookup {i}")
    events = logger.query_events(limit=2)
    assert [e["message"] for e in events] == ["Vault: lookup 3", "Vault: lookup 4"]


def test_query_skips_foreign_lines(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    logger.log_vault_event(EventType.VAULT_UNLOCKED, "ok")
    with open(logger.log_file, "a", encoding="utf-8") as fh:
        fh.write("not json\n")
        fh.write(json.dumps({"event": "something_else"}) + "\n")
    assert len(logger.query_events()) == 1


def test_query_without_file(tmp_path):
    logger = AuditLogger(log_dir=tmp_path)
    logger.log_file.unlink(missing_ok=True)
    assert logger.query_events() == []


def test_singleton_replacement(tmp_path):
    custom = AuditLogger(log_dir=tmp_path / "custom")
    set_audit_logger(custom)
    assert get_audit_logger() is custom


def test_singleton_built_from_config(tmp_path):
    from credvault.config import get_config

    set_audit_logger(None)
    logger = get_audit_logger()
    assert logger.log_dir == get_config().audit_dir
    assert audit_mod._audit_logger is logger
