# Vault - Encryption Service
#
# At-rest format for the whole credential collection:
#   master secret + fresh salt → key (PBKDF2, see kdf.py)
#   key + fresh 12-byte nonce → AES-256-GCM ciphertext
#
# A new salt and nonce are drawn on every seal, so sealing the same
# plaintext twice never yields the same blob.

import base64
import binascii
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CryptoFailure
from .kdf import SALT_LENGTH, derive_key, generate_salt

NONCE_LENGTH = 12  # 96-bit nonce for GCM


def encode_for_storage(data: bytes) -> str:
    """Encode binary data for JSON storage (base64)."""
    return base64.b64encode(data).decode("utf-8")


def decode_from_storage(data: str) -> bytes:
    """Decode base64-encoded data from storage."""
    return base64.b64decode(data.encode("utf-8"), validate=True)


@dataclass(frozen=True)
class VaultBlob:
    """The single persisted, encrypted form of the credential collection."""

    ciphertext: bytes
    iv: bytes
    salt: bytes

    def to_dict(self) -> Dict[str, str]:
        return {
            "data": encode_for_storage(self.ciphertext),
            "iv": encode_for_storage(self.iv),
            "salt": encode_for_storage(self.salt),
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "VaultBlob":
        """
        Parse a stored ``{data, iv, salt}`` record.

        Raises:
            CryptoFailure: If the record is missing fields or is not base64.
                A mangled blob is reported the same way as a failed open.
        """
        if not isinstance(raw, dict):
            raise CryptoFailure("Vault blob is not a record")
        try:
            blob = cls(
                ciphertext=decode_from_storage(raw["data"]),
                iv=decode_from_storage(raw["iv"]),
                salt=decode_from_storage(raw["salt"]),
            )
        except (KeyError, TypeError, AttributeError, binascii.Error) as exc:
            raise CryptoFailure("Vault blob is malformed") from exc

        if len(blob.iv) != NONCE_LENGTH or len(blob.salt) != SALT_LENGTH:
            raise CryptoFailure(
                "Vault blob has unexpected nonce or salt length",
                details={"iv_length": len(blob.iv), "salt_length": len(blob.salt)},
            )
        return blob


def seal(
    plaintext: bytes,
    secret: str,
    *,
    random_bytes: Callable[[int], bytes] = os.urandom,
) -> VaultBlob:
    """
    Encrypt plaintext under the master secret using AES-256-GCM.

    Args:
        plaintext: Serialized credential collection
        secret: Master secret (never stored)
        random_bytes: Source of randomness for salt and nonce

    Returns:
        VaultBlob with ciphertext, nonce and salt

    Raises:
        CryptoFailure: If key derivation or encryption fails
    """
    salt = generate_salt(random_bytes)
    nonce = random_bytes(NONCE_LENGTH)
    key = derive_key(secret, salt)

    try:
        ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    except (TypeError, ValueError, OverflowError) as exc:
        raise CryptoFailure("Vault encryption failed") from exc

    return VaultBlob(ciphertext=ciphertext, iv=nonce, salt=salt)


def open_blob(blob: VaultBlob, secret: str) -> bytes:
    """
    Decrypt a vault blob.

    Raises:
        CryptoFailure: If the secret is wrong or the blob was altered.
            GCM authentication cannot tell these apart.
    """
    key = derive_key(secret, blob.salt)

    try:
        return AESGCM(key).decrypt(blob.iv, blob.ciphertext, None)
    except InvalidTag as exc:
        raise CryptoFailure("Vault authentication failed") from exc
    except (TypeError, ValueError) as exc:
        raise CryptoFailure("Vault decryption failed") from exc
