# Core Module - Shared Utilities
#
# Shared functionality across credvault modules:
# - Audit logging
# - SQLite connection helper

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .db import connect

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    # Storage
    "connect",
]
