# Vault - Command Surface
#
# The closed set of operations exposed to the message-routing layer.
# Each command is a frozen dataclass carrying its own typed payload;
# CommandDispatcher maps every command type to exactly one handler and
# turns engine failures into a CommandResult tagged with a FailureKind.
#
# Commands that touch the vault blob carry the master secret explicitly.

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from .credential_store import CredentialStore, EnvelopeInput
from .errors import FailureKind, VaultError
from .generator import DEFAULT_LENGTH, StrengthReport, check_strength, generate_password
from .master_secret import MasterSecretGate
from .models import CredentialEntry, PageCredential, Settings

logger = logging.getLogger(__name__)


# ── Commands ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GetAll:
    secret: str


@dataclass(frozen=True)
class Add:
    entry: CredentialEntry
    secret: str


@dataclass(frozen=True)
class Update:
    entry: CredentialEntry
    secret: str


@dataclass(frozen=True)
class Delete:
    entry_id: str
    secret: str


@dataclass(frozen=True)
class FindByDomain:
    domain: str
    secret: str


@dataclass(frozen=True)
class FindByDomainAndUsername:
    domain: str
    username: str
    secret: str


@dataclass(frozen=True)
class SetMasterSecret:
    secret: str


@dataclass(frozen=True)
class VerifyMasterSecret:
    secret: str


@dataclass(frozen=True)
class IsMasterSecretSet:
    pass


@dataclass(frozen=True)
class IsMasterSecretVerified:
    pass


@dataclass(frozen=True)
class GetSettings:
    pass


@dataclass(frozen=True)
class SaveSettings:
    settings: Settings


@dataclass(frozen=True)
class ExportAll:
    secret: str


@dataclass(frozen=True)
class ImportAll:
    envelope: EnvelopeInput
    secret: str


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class GeneratePassword:
    length: int = DEFAULT_LENGTH
    lowercase: bool = True
    uppercase: bool = True
    numbers: bool = True
    symbols: bool = True


@dataclass(frozen=True)
class CheckPasswordStrength:
    password: str


@dataclass(frozen=True)
class RecordUse:
    domain: str
    username: str
    secret: str


@dataclass(frozen=True)
class SaveFromPage:
    request: PageCredential
    secret: str


COMMAND_TYPES = (
    GetAll, Add, Update, Delete, FindByDomain, FindByDomainAndUsername,
    SetMasterSecret, VerifyMasterSecret, IsMasterSecretSet, IsMasterSecretVerified,
    GetSettings, SaveSettings, ExportAll, ImportAll, ClearAll,
    GeneratePassword, CheckPasswordStrength, RecordUse, SaveFromPage,
)


# ── Result ──────────────────────────────────────────────────────────


@dataclass
class CommandResult:
    ok: bool
    value: Any = None
    failure: Optional[FailureKind] = None
    message: str = ""
    errors: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: Any = None) -> "CommandResult":
        return cls(ok=True, value=value)

    @classmethod
    def from_error(cls, error: VaultError) -> "CommandResult":
        return cls(
            ok=False,
            failure=error.kind,
            message=error.message,
            errors=list(getattr(error, "errors", [])),
        )

    def to_dict(self) -> dict:
        data = {"ok": self.ok, "value": _plain(self.value)}
        if not self.ok:
            data["failure"] = self.failure.value if self.failure else None
            data["message"] = self.message
            data["errors"] = self.errors
        return data


def _plain(value: Any) -> Any:
    """JSON-ready form of a handler's return value."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, StrengthReport):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


# ── Dispatcher ──────────────────────────────────────────────────────


class CommandDispatcher:
    """Runs commands against one CredentialStore and MasterSecretGate."""

    def __init__(self, store: CredentialStore, gate: Optional[MasterSecretGate] = None):
        self.store = store
        self.gate = gate or MasterSecretGate(store.store, audit=store.audit)
        self._handlers: Dict[Type, Callable[[Any], Any]] = {
            GetAll: lambda c: self.store.get_all(c.secret),
            Add: lambda c: self.store.add(c.entry, c.secret),
            Update: lambda c: self.store.update(c.entry, c.secret),
            Delete: lambda c: self.store.delete(c.entry_id, c.secret),
            FindByDomain: lambda c: self.store.find_by_domain(c.domain, c.secret),
            FindByDomainAndUsername: lambda c: self.store.find_by_domain_and_username(
                c.domain, c.username, c.secret
            ),
            SetMasterSecret: lambda c: self.gate.set_secret(c.secret),
            VerifyMasterSecret: lambda c: self.gate.verify(c.secret),
            IsMasterSecretSet: lambda c: self.gate.is_secret_set(),
            IsMasterSecretVerified: lambda c: self.gate.is_verified(),
            GetSettings: lambda c: self.store.get_settings(),
            SaveSettings: lambda c: self.store.save_settings(c.settings),
            ExportAll: lambda c: self.store.export_all(c.secret),
            ImportAll: lambda c: self.store.import_all(c.envelope, c.secret),
            ClearAll: lambda c: self.store.clear_all(),
            GeneratePassword: lambda c: generate_password(
                c.length,
                lowercase=c.lowercase,
                uppercase=c.uppercase,
                numbers=c.numbers,
                symbols=c.symbols,
            ),
            CheckPasswordStrength: lambda c: check_strength(c.password),
            RecordUse: lambda c: self.store.record_use(c.domain, c.username, c.secret),
            SaveFromPage: lambda c: self.store.save_from_page(c.request, c.secret),
        }
        missing = set(COMMAND_TYPES) - set(self._handlers)
        if missing:
            raise RuntimeError(f"Unhandled command types: {sorted(t.__name__ for t in missing)}")

    def dispatch(self, command: Any) -> CommandResult:
        """
        Run one command.

        Raises:
            TypeError: If ``command`` is not one of COMMAND_TYPES
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command type: {type(command).__name__}")

        try:
            return CommandResult.success(handler(command))
        except VaultError as exc:
            logger.info("%s failed: %s (%s)", type(command).__name__, exc.message, exc.kind.value)
            return CommandResult.from_error(exc)
