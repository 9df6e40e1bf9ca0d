# Vault - Failure Taxonomy
#
# Every failure the engine reports belongs to exactly one FailureKind.
# Callers branch on ``error.kind`` (or the exception class), never on
# message text.

from enum import Enum
from typing import Any, Dict, List, Optional


class FailureKind(str, Enum):
    """Kinds of failure surfaced by the vault engine."""
    CRYPTO = "crypto"          # key derivation, seal or open failed
    STORAGE = "storage"        # key/value persistence failed
    VALIDATION = "validation"  # input rejected by policy rules
    IMPORT = "import"          # an exported record could not be restored


class VaultError(Exception):
    """Base class for all vault failures."""

    kind: FailureKind = FailureKind.CRYPTO

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class CryptoFailure(VaultError):
    """Key derivation, sealing or opening failed."""
    kind = FailureKind.CRYPTO


class InvalidMasterSecret(CryptoFailure):
    """The vault blob did not open under the supplied master secret.

    AES-GCM cannot tell a wrong key from tampered data, so both end up
    here.
    """

    def __init__(self, message: str = "Invalid master password", details=None):
        super().__init__(message, details)


class StorageFailure(VaultError):
    """The underlying key/value store failed or held malformed data."""
    kind = FailureKind.STORAGE


class ValidationFailure(VaultError):
    """Input was rejected by a validation rule."""
    kind = FailureKind.VALIDATION

    def __init__(self, message: str, errors: Optional[List[str]] = None, details=None):
        super().__init__(message, details)
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ImportFailure(VaultError):
    """An export envelope could not be restored; nothing was persisted."""
    kind = FailureKind.IMPORT
