# Vault - Data Models
#
# Credential records, settings and the export envelope. Field names are
# snake_case in Python and camelCase on the wire (persisted collection,
# settings record and export files all share the same JSON shape).
#
# Timestamps are integer epoch milliseconds.

import time
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EXPORT_FORMAT_VERSION = "1.0"


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def new_entry_id() -> str:
    return str(uuid.uuid4())


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict:
        """Serialize with wire (camelCase) keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CredentialEntry(_WireModel):
    """A stored username/password record for one site.

    ``domain`` is kept exactly as entered; matching compares normalized
    copies and never rewrites it.
    """

    id: str = Field(default_factory=new_entry_id)
    domain: str
    full_url: str = Field("", alias="fullUrl")
    username: str
    password: str
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    last_used: int = Field(default_factory=now_ms, alias="lastUsed")
    use_count: int = Field(0, alias="useCount", ge=0)
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    group_id: Optional[str] = Field(None, alias="groupId")

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: List[str]) -> List[str]:
        # ordered set: keep first occurrence
        return list(dict.fromkeys(tags))


class ExportedCredential(CredentialEntry):
    """A credential as it appears in an export file.

    When ``encrypted`` is set, ``password`` holds base64 export-cipher
    ciphertext. Entries without the flag come from the older plaintext
    export format and carry the password as-is.
    """

    encrypted: bool = Field(False, alias="__encrypted")

    def to_entry(self, password: Optional[str] = None) -> CredentialEntry:
        """Drop the export flag, optionally swapping in a new password."""
        data = self.model_dump(exclude={"encrypted"})
        if password is not None:
            data["password"] = password
        return CredentialEntry(**data)


class Settings(_WireModel):
    """User settings, stored unencrypted next to the vault blob."""

    master_password_hash: str = Field("", alias="masterPasswordHash")
    auto_fill_enabled: bool = Field(True, alias="autoFillEnabled")
    auto_lock_timeout: int = Field(300, alias="autoLockTimeout", ge=0)
    biometric_enabled: bool = Field(False, alias="biometricEnabled")
    theme: Literal["light", "dark"] = "light"


class ExportEnvelope(_WireModel):
    """Versioned export document.

    ``exported_at`` doubles as the export-cipher nonce seed and
    ``settings.master_password_hash`` as its key seed; both are required
    to reverse the password encryption on import.
    """

    passwords: Optional[List[ExportedCredential]] = None
    settings: Optional[Settings] = None
    exported_at: Optional[int] = Field(None, alias="exportedAt")
    version: str = EXPORT_FORMAT_VERSION

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


class PageCredential(_WireModel):
    """Credentials captured from a login form, keyed by domain + username."""

    domain: str
    full_url: str = Field("", alias="fullUrl")
    username: str
    password: str
