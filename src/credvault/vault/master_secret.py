# Vault - Master Secret Verification
#
# Stores a one-way hash of the master secret in Settings and checks
# candidates against it. The hash is NOT the vault key: the key is
# re-derived from the plaintext secret (with its own random salt) on
# every vault operation.
#
# Known weakness: the verification hash is unsalted SHA-256, so equal
# secrets hash equally across installations and a stolen settings record
# is open to precomputed guessing. The export cipher key is derived from
# this exact value, so salting it would break existing export files.

import base64
import hashlib
import hmac
from typing import Optional

from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from .settings import load_settings, save_settings
from .storage import MASTER_PASSWORD_VERIFIED_KEY, KeyValueStore
from .validation import Validator, require_valid


def hash_secret(secret: str) -> str:
    """Base64 SHA-256 of the secret, as stored in ``masterPasswordHash``."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("utf-8")


class MasterSecretGate:
    """
    Sets and verifies the master secret.

    Verification only flips the persisted "verified" marker that
    presentation layers read. It never caches the secret or the vault
    key; callers keep supplying the secret to every CredentialStore call.
    """

    def __init__(self, store: KeyValueStore, audit: Optional[AuditLogger] = None):
        self.store = store
        self._audit = audit

    @property
    def audit(self) -> AuditLogger:
        if self._audit is None:
            self._audit = get_audit_logger()
        return self._audit

    def set_secret(self, secret: str, *, enforce_policy: bool = True) -> None:
        """
        Hash the secret into Settings, keeping all other settings.

        Raises:
            ValidationFailure: If ``enforce_policy`` and the secret is weak
        """
        if enforce_policy:
            require_valid(Validator.validate_master_password(secret), "Master password")

        settings = load_settings(self.store)
        settings.master_password_hash = hash_secret(secret)
        save_settings(self.store, settings)

        self.audit.log_vault_event(EventType.VAULT_CREATED, "Master password set")

    def verify(self, secret: str) -> bool:
        """Compare against the stored hash; on success set the verified marker."""
        stored = load_settings(self.store).master_password_hash
        ok = bool(stored) and hmac.compare_digest(hash_secret(secret).encode("utf-8"), stored.encode("utf-8"))

        if ok:
            self.set_verified(True)
            self.audit.log_vault_event(EventType.VAULT_UNLOCKED, "Master password verified")
        else:
            self.audit.log_event(
                event_type=EventType.VAULT_UNLOCK_FAILED,
                severity=EventSeverity.ALERT,
                message="Vault: master password verification failed",
                details={"secret_set": bool(stored)},
            )
        return ok

    def is_secret_set(self) -> bool:
        return load_settings(self.store).master_password_hash != ""

    def is_verified(self) -> bool:
        return bool(self.store.get(MASTER_PASSWORD_VERIFIED_KEY))

    def set_verified(self, verified: bool) -> None:
        self.store.set(MASTER_PASSWORD_VERIFIED_KEY, bool(verified))
