# Vault Module - Encrypted Credential Store
#
# Whole-collection AES-256-GCM encryption under a PBKDF2-derived key,
# deterministic AES-CBC re-encryption of passwords for export files,
# master secret verification and site/domain lookup.

from .commands import CommandDispatcher, CommandResult
from .credential_store import CredentialStore
from .errors import (
    CryptoFailure,
    FailureKind,
    ImportFailure,
    InvalidMasterSecret,
    StorageFailure,
    ValidationFailure,
    VaultError,
)
from .master_secret import MasterSecretGate
from .models import CredentialEntry, ExportEnvelope, ExportedCredential, PageCredential, Settings
from .session import VaultSession
from .storage import KeyValueStore, MemoryStore, SQLiteStore

__all__ = [
    "CommandDispatcher",
    "CommandResult",
    "CredentialStore",
    "CredentialEntry",
    "ExportEnvelope",
    "ExportedCredential",
    "PageCredential",
    "Settings",
    "MasterSecretGate",
    "VaultSession",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    # Failures
    "VaultError",
    "FailureKind",
    "CryptoFailure",
    "InvalidMasterSecret",
    "StorageFailure",
    "ValidationFailure",
    "ImportFailure",
]
