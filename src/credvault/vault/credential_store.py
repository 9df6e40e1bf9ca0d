# Vault - Credential Store
#
# Orchestrates the full read → decrypt → mutate → encrypt → write cycle
# over the single vault blob, plus export/import envelope handling.
#
# Security:
# - The master secret is passed into every call and never kept here
# - Every call re-derives the vault key from scratch (no key cache)
# - A failed open is reported as InvalidMasterSecret; wrong secret and
#   tampered blob are indistinguishable
# - Passwords never reach the audit log
#
# Concurrency: each mutation is an unguarded get() then set() on the
# key/value store. Two concurrent mutations race and the later write
# silently wins.

import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from . import domains
from .encryption import VaultBlob, open_blob, seal
from .errors import CryptoFailure, ImportFailure, InvalidMasterSecret, StorageFailure, ValidationFailure
from .export_cipher import decrypt_password, encrypt_password, export_cipher_params
from .models import (
    EXPORT_FORMAT_VERSION,
    CredentialEntry,
    ExportedCredential,
    ExportEnvelope,
    PageCredential,
    Settings,
    new_entry_id,
    now_ms,
)
from .settings import load_settings, save_settings
from .storage import PASSWORDS_KEY, KeyValueStore
from .validation import Validator

logger = logging.getLogger(__name__)

EnvelopeInput = Union[ExportEnvelope, Dict[str, Any], str, bytes]


def validate_entry(entry: CredentialEntry) -> None:
    """
    Check an entry before it is written by add/update.

    Raises:
        ValidationFailure: Listing every violated rule
    """
    errors: List[str] = []
    # Any non-empty host (x.com, 10.0.0.1); the label regex in
    # Validator.validate_domain is for typed form input only.
    if not domains.normalize(entry.domain):
        errors.append("Domain is required")
    errors += Validator.validate_username(entry.username).errors
    if entry.full_url:
        errors += Validator.validate_url(entry.full_url).errors
    if not entry.password:
        errors.append("Password is required")
    if errors:
        raise ValidationFailure(
            f"Credential is invalid: {'; '.join(errors)}",
            errors=errors,
            details={"id": entry.id},
        )


class CredentialStore:
    """
    Encrypted credential collection over a key/value store.

    Args:
        store: Key/value persistence handle
        audit: Audit logger (defaults to the global one)
        random_bytes: Randomness for vault salts and nonces
        clock: Epoch-millisecond clock used for export timestamps and usage tracking
    """

    def __init__(
        self,
        store: KeyValueStore,
        audit: Optional[AuditLogger] = None,
        random_bytes: Callable[[int], bytes] = os.urandom,
        clock: Callable[[], int] = now_ms,
    ):
        self.store = store
        self._audit = audit
        self.random_bytes = random_bytes
        self.clock = clock

    @property
    def audit(self) -> AuditLogger:
        if self._audit is None:
            self._audit = get_audit_logger()
        return self._audit

    # ── Read / write cycle ──────────────────────────────────────────

    def get_all(self, secret: str) -> List[CredentialEntry]:
        """
        Open the vault blob and return every entry.

        Returns an empty list when nothing has been stored yet.

        Raises:
            InvalidMasterSecret: Wrong secret or tampered blob
            StorageFailure: The store failed, or decrypted data is not a collection
        """
        raw = self.store.get(PASSWORDS_KEY)
        if raw is None:
            return []

        try:
            plaintext = open_blob(VaultBlob.from_dict(raw), secret)
        except CryptoFailure as exc:
            self.audit.log_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.ALERT,
                message="Vault: failed to decrypt credentials",
                details={"reason": exc.message},
            )
            raise InvalidMasterSecret() from exc

        try:
            records = json.loads(plaintext.decode("utf-8"))
            if not isinstance(records, list):
                raise StorageFailure("Decrypted vault is not a list of credentials")
            return [CredentialEntry.model_validate(r) for r in records]
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            raise StorageFailure("Decrypted vault contents are malformed") from exc

    def persist(self, entries: List[CredentialEntry], secret: str) -> None:
        """Serialize, seal and replace the stored vault blob unconditionally."""
        payload = json.dumps([e.to_dict() for e in entries]).encode("utf-8")
        blob = seal(payload, secret, random_bytes=self.random_bytes)
        self.store.set(PASSWORDS_KEY, blob.to_dict())
        logger.debug("Persisted %d credentials", len(entries))

    # ── CRUD ────────────────────────────────────────────────────────

    def add(self, entry: CredentialEntry, secret: str) -> CredentialEntry:
        """
        Append an entry and persist.

        Raises:
            ValidationFailure: Malformed entry or duplicate identifier
        """
        validate_entry(entry)
        entries = self.get_all(secret)
        if any(e.id == entry.id for e in entries):
            raise ValidationFailure(
                "A credential with this id already exists",
                errors=["Duplicate id"],
                details={"id": entry.id},
            )

        entries.append(entry)
        self.persist(entries, secret)

        self.audit.log_vault_event(
            EventType.CREDENTIAL_ADDED,
            f"Credential added for {entry.domain}",
            details={"id": entry.id, "domain": entry.domain},
        )
        return entry

    def update(self, entry: CredentialEntry, secret: str) -> bool:
        """
        Replace the entry with the same id.

        Returns False, without writing anything, when no entry has that id.

        Raises:
            ValidationFailure: Malformed entry
        """
        validate_entry(entry)
        return self._replace(entry, secret)

    def _replace(self, entry: CredentialEntry, secret: str) -> bool:
        entries = self.get_all(secret)
        for index, existing in enumerate(entries):
            if existing.id == entry.id:
                entries[index] = entry
                break
        else:
            logger.debug("update: no credential with id %s", entry.id)
            return False

        self.persist(entries, secret)
        self.audit.log_vault_event(
            EventType.CREDENTIAL_UPDATED,
            f"Credential updated for {entry.domain}",
            details={"id": entry.id, "domain": entry.domain},
        )
        return True

    def delete(self, entry_id: str, secret: str) -> int:
        """Remove every entry with this id and persist. Returns how many were removed."""
        entries = self.get_all(secret)
        kept = [e for e in entries if e.id != entry_id]
        self.persist(kept, secret)

        removed = len(entries) - len(kept)
        self.audit.log_vault_event(
            EventType.CREDENTIAL_DELETED,
            "Credential deleted",
            details={"id": entry_id, "removed": removed},
        )
        return removed

    # ── Lookup ──────────────────────────────────────────────────────

    def find_by_domain(self, domain: str, secret: str) -> List[CredentialEntry]:
        """Entries whose normalized domain equals the normalized query.

        No matches is a normal outcome and returns [].
        """
        matches = domains.filter_by_domain(self.get_all(secret), domain)
        self.audit.log_vault_event(
            EventType.CREDENTIAL_ACCESSED,
            f"Lookup by domain {domains.normalize(domain)}",
            details={"matches": len(matches)},
        )
        return matches

    def find_by_domain_and_username(
        self, domain: str, username: str, secret: str
    ) -> Optional[CredentialEntry]:
        """First entry on the same domain or base domain with this exact username."""
        match = domains.first_by_domain_and_username(self.get_all(secret), domain, username)
        self.audit.log_vault_event(
            EventType.CREDENTIAL_ACCESSED,
            f"Lookup by domain and username on {domains.normalize(domain)}",
            details={"found": match is not None},
        )
        return match

    def record_use(self, domain: str, username: str, secret: str) -> Optional[CredentialEntry]:
        """Bump last-used and use count on the matching entry, if any."""
        entry = self.find_by_domain_and_username(domain, username, secret)
        if entry is None:
            return None
        entry.last_used = self.clock()
        entry.use_count += 1
        self._replace(entry, secret)
        return entry

    def save_from_page(self, request: PageCredential, secret: str) -> CredentialEntry:
        """Upsert credentials captured from a login form, keyed by domain + username."""
        existing = self.find_by_domain_and_username(request.domain, request.username, secret)
        if existing is not None:
            existing.password = request.password
            existing.last_used = self.clock()
            self._replace(existing, secret)
            return existing

        now = self.clock()
        entry = CredentialEntry(
            id=new_entry_id(),
            domain=request.domain,
            full_url=request.full_url,
            username=request.username,
            password=request.password,
            created_at=now,
            last_used=now,
            use_count=1,
        )
        return self.add(entry, secret)

    # ── Settings ────────────────────────────────────────────────────

    def get_settings(self) -> Settings:
        return load_settings(self.store)

    def save_settings(self, settings: Settings) -> None:
        save_settings(self.store, settings)

    # ── Export / import ─────────────────────────────────────────────

    def export_all(self, secret: str) -> ExportEnvelope:
        """
        Export every entry with its password re-encrypted under the export cipher.

        The export key comes from the current settings hash and the IV from
        the export timestamp; both are embedded in the envelope.

        Raises:
            ValidationFailure: No master password has been set, so there is
                no settings hash for import to rebuild the key from
            InvalidMasterSecret: Wrong secret or tampered blob
        """
        entries = self.get_all(secret)
        settings = self.get_settings()
        if not settings.master_password_hash:
            raise ValidationFailure(
                "Set a master password before exporting",
                errors=["Master password is not set"],
            )
        exported_at = self.clock()
        key, iv = export_cipher_params(settings.master_password_hash, exported_at)

        exported = [
            ExportedCredential(
                **{
                    **entry.model_dump(),
                    "password": encrypt_password(entry.password, key, iv),
                    "encrypted": True,
                }
            )
            for entry in entries
        ]

        self.audit.log_vault_event(
            EventType.VAULT_EXPORTED,
            f"Exported {len(exported)} credentials",
            details={"count": len(exported), "exported_at": exported_at},
        )
        return ExportEnvelope(
            passwords=exported,
            settings=settings,
            exported_at=exported_at,
            version=EXPORT_FORMAT_VERSION,
        )

    def import_all(self, envelope: EnvelopeInput, secret: str) -> int:
        """
        Replace the vault with the envelope's entries, sealed under ``secret``.

        Tagged entries are decrypted with the key and IV rebuilt from the
        envelope's own settings hash and timestamp; untagged (legacy)
        entries pass through unchanged. The envelope's settings, when
        present, then overwrite local settings.

        Every entry is decrypted before anything is written: one failure
        aborts the whole import.

        Returns:
            Number of credentials imported

        Raises:
            ImportFailure: Unparseable envelope, undecryptable entry or duplicate ids
        """
        parsed = parse_envelope(envelope)
        restored: Optional[List[CredentialEntry]] = None

        if parsed.passwords is not None:
            restored = self._restore_entries(parsed)

        if restored is not None:
            self.persist(restored, secret)
        if parsed.settings is not None:
            self.save_settings(parsed.settings)

        count = len(restored or [])
        self.audit.log_vault_event(
            EventType.VAULT_IMPORTED,
            f"Imported {count} credentials",
            details={
                "count": count,
                "exported_at": parsed.exported_at,
                "settings_replaced": parsed.settings is not None,
            },
        )
        return count

    def _restore_entries(self, envelope: ExportEnvelope) -> List[CredentialEntry]:
        restored: List[CredentialEntry] = []
        seen_ids = set()
        cipher_params = None

        for index, item in enumerate(envelope.passwords or []):
            if item.id in seen_ids:
                raise ImportFailure(
                    "Import contains duplicate credential ids",
                    details={"index": index, "id": item.id},
                )
            seen_ids.add(item.id)

            if not item.encrypted:
                restored.append(item.to_entry())
                continue

            if cipher_params is None:
                hash_seed = envelope.settings.master_password_hash if envelope.settings else ""
                if not hash_seed or envelope.exported_at is None:
                    raise ImportFailure(
                        "Encrypted credentials need the export timestamp and settings hash",
                        details={"index": index, "id": item.id},
                    )
                try:
                    cipher_params = export_cipher_params(hash_seed, envelope.exported_at)
                except CryptoFailure as exc:
                    raise ImportFailure(
                        f"Export parameters are unusable: {exc.message}",
                        details={"index": index, "id": item.id},
                    ) from exc

            key, iv = cipher_params
            try:
                password = decrypt_password(item.password, key, iv)
            except CryptoFailure as exc:
                self.audit.log_event(
                    event_type=EventType.VAULT_ERROR,
                    severity=EventSeverity.ALERT,
                    message="Vault: import aborted, credential could not be decrypted",
                    details={"index": index, "id": item.id},
                )
                raise ImportFailure(
                    "Failed to decrypt imported passwords. Please check your master password.",
                    details={"index": index, "id": item.id},
                ) from exc
            restored.append(item.to_entry(password))

        return restored

    def clear_all(self) -> None:
        """Wipe every key: vault blob, settings and the verified marker."""
        self.store.clear()
        self.audit.log_event(
            event_type=EventType.VAULT_CLEARED,
            severity=EventSeverity.INVESTIGATE,
            message="Vault: all data cleared",
        )


def parse_envelope(envelope: EnvelopeInput) -> ExportEnvelope:
    """
    Accept an ExportEnvelope, a decoded dict or raw JSON text.

    Raises:
        ImportFailure: If the document is not a valid export envelope
    """
    if isinstance(envelope, ExportEnvelope):
        return envelope
    try:
        if isinstance(envelope, (str, bytes)):
            return ExportEnvelope.model_validate_json(envelope)
        return ExportEnvelope.model_validate(envelope)
    except ValidationError as exc:
        raise ImportFailure(
            "Import file is not a valid export",
            details={"errors": exc.error_count()},
        ) from exc
