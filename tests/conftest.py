"""
Shared pytest fixtures for the credvault test suite.

Autouse fixtures below isolate tests from live data and keep them fast:
  - Config        -> temp data directory (no ./data/credvault.db writes)
  - Audit logger  -> temp directory      (no entries in the real audit log)
  - PBKDF2        -> 1,000 iterations    (production uses 100,000)
"""

import pytest

from credvault.config import VaultConfig, set_config
from credvault.core.audit_log import AuditLogger, set_audit_logger
from credvault.vault import CredentialStore, MasterSecretGate, MemoryStore

@pytest.fixture(autouse=True)
def _isolate_config(tmp_path):
    """Point the global config at a temp data directory for every test."""
    data_dir = tmp_path / "data"
    set_config(VaultConfig(
        data_dir=data_dir,
        db_path=data_dir / "credvault.db",
        audit_dir=data_dir / "audit_logs",
    ))
    yield
    set_config(None)


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Redirect the global AuditLogger to a temp directory for every test."""
    import credvault.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    set_audit_logger(AuditLogger(log_dir=tmp_path / "audit_logs"))
    yield
    set_audit_logger(old_logger)


@pytest.fixture(autouse=True)
def _fast_kdf(monkeypatch):
    """Cut PBKDF2 cost so the suite doesn't spend minutes deriving keys."""
    import credvault.vault.kdf as kdf_mod

    monkeypatch.setattr(kdf_mod, "PBKDF2_ITERATIONS", 1_000)


@pytest.fixture
def kv():
    return MemoryStore()


@pytest.fixture
def clock():
    """Deterministic epoch-ms clock: 1_700_000_000_000, +1000 per call."""
    state = {"now": 1_700_000_000_000}

    def _now():
        state["now"] += 1000
        return state["now"]

    return _now


@pytest.fixture
def secret():
    return "Sup3r$ecret!"


@pytest.fixture
def store(kv, clock):
    return CredentialStore(kv, clock=clock)


@pytest.fixture
def gate(kv):
    return MasterSecretGate(kv)


@pytest.fixture
def audit():
    from credvault.core import get_audit_logger

    return get_audit_logger()
