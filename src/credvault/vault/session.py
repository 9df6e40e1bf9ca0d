# Vault - Session
#
# Caller-owned holder for the master secret during one session. The
# engine never stores the secret; whoever owns the session passes
# ``session.secret`` into each CredentialStore call.
#
# Auto-lock is not enforced here. Settings.auto_lock_timeout is for the
# caller to act on (e.g. call lock() after inactivity).

from typing import Optional

from .errors import InvalidMasterSecret
from .master_secret import MasterSecretGate


class VaultSession:
    """Volatile, in-memory master secret for one user session."""

    def __init__(self):
        self._secret: Optional[str] = None

    @property
    def is_unlocked(self) -> bool:
        return self._secret is not None

    @property
    def secret(self) -> str:
        """The session's master secret.

        Raises:
            InvalidMasterSecret: If the session is locked
        """
        if self._secret is None:
            raise InvalidMasterSecret("Please set your master password first")
        return self._secret

    def unlock(self, gate: MasterSecretGate, secret: str) -> bool:
        """Verify ``secret`` and keep it for the session if it matches."""
        if gate.verify(secret):
            self._secret = secret
            return True
        return False

    def lock(self) -> None:
        self._secret = None
