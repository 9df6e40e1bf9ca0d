# credvault: local credential vault
#
# Username/password records for arbitrary sites, encrypted at rest under
# a key derived from the user's master secret, with lookup by site.

__version__ = "1.0.0"
__author__ = "credvault contributors"
__description__ = "Local encrypted credential vault"

from .core import EventSeverity, EventType, get_audit_logger
from .vault import CommandDispatcher, CredentialStore, MasterSecretGate, VaultSession

__all__ = [
    "__version__",
    "CommandDispatcher",
    "CredentialStore",
    "MasterSecretGate",
    "VaultSession",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
