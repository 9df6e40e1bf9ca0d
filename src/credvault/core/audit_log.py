# Core - Audit Logging
#
# Append-only, structured audit trail for every vault security event.
# Events are rendered as JSON lines by structlog and written to a daily
# file (audit_YYYY-MM-DD.log) under the configured audit directory.
#
# Never pass secrets, passwords, derived keys, hashes or ciphertext in
# ``details``. Entry identifiers and counts are fine.

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "credvault.audit"


class EventType(str, Enum):
    """Types of vault events that can be logged."""

    # Master secret
    VAULT_CREATED = "vault.created"
    VAULT_UNLOCKED = "vault.unlocked"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"

    # Credential access
    CREDENTIAL_ADDED = "vault.credential.added"
    CREDENTIAL_UPDATED = "vault.credential.updated"
    CREDENTIAL_DELETED = "vault.credential.deleted"
    CREDENTIAL_ACCESSED = "vault.credential.accessed"

    # Bulk operations
    VAULT_EXPORTED = "vault.exported"
    VAULT_IMPORTED = "vault.imported"
    VAULT_CLEARED = "vault.cleared"
    VAULT_ERROR = "vault.error"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity, logged only
    - INVESTIGATE: Something unusual worth a look
    - ALERT: A security check failed (e.g. wrong master secret)
    - CRITICAL: Data could not be read or written
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Features:
    - Structured JSON logging (structlog)
    - Automatic timestamp and event ID
    - OS user / host context capture
    - Simple forensic querying of today's log file
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._setup_file_handler()

        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    @property
    def log_file(self) -> Path:
        today = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"audit_{today}.log"

    def _setup_file_handler(self):
        """Attach a daily file handler, replacing any previous one."""
        audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for handler in list(audit_logger.handlers):
            audit_logger.removeHandler(handler)
            handler.close()

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog renders JSON

        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        audit_logger.propagate = False

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a vault event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets)
            user_context: User context (defaults to OS user / hostname)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info("security_event", **event_data)

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> str:
        """Log an informational vault event (never log actual passwords!)."""
        return self.log_event(
            event_type=event_type,
            severity=EventSeverity.INFO,
            message=f"Vault: {message}",
            details=details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, platform)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }

    def query_events(
        self,
        event_types: Optional[List[EventType]] = None,
        severity: Optional[EventSeverity] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Read back events from today's log file, oldest first.

        Args:
            event_types: Only return events of these types
            severity: Only return events of this severity
            limit: Maximum number of events to return
        """
        if not self.log_file.exists():
            return []

        wanted = {t.value for t in event_types} if event_types else None
        events: List[Dict[str, Any]] = []
        with open(self.log_file, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    continue  # foreign line
                if record.get("event") != "security_event":
                    continue
                if wanted is not None and record.get("event_type") not in wanted:
                    continue
                if severity is not None and record.get("severity") != severity.value:
                    continue
                events.append(record)
        return events[-limit:]


# ── Singleton ────────────────────────────────────────────────────────

_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        from ..config import get_config

        _audit_logger = AuditLogger(log_dir=get_config().audit_dir)
    return _audit_logger


def set_audit_logger(instance: Optional[AuditLogger]) -> None:
    """Replace the singleton (for testing)."""
    global _audit_logger
    _audit_logger = instance
