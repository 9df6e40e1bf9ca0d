# Vault - Key Derivation
#
# Master secret + random salt → 256-bit AES key (PBKDF2-HMAC-SHA256).
#
# The iteration count and hash are fixed policy. Changing either makes
# every previously sealed vault blob unreadable, so a change needs a
# versioned blob format first. Every seal/open derives from scratch;
# there is no session key cache.

import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import CryptoFailure

PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32   # 256 bits for AES-256
SALT_LENGTH = 16  # 128-bit salt, stored alongside each vault blob


def derive_key(secret: str, salt: bytes) -> bytes:
    """
    Derive an encryption key from the master secret using PBKDF2.

    Args:
        secret: User's master secret
        salt: Random salt (stored with the vault blob)

    Returns:
        256-bit key for AES-256-GCM

    Raises:
        CryptoFailure: If derivation fails (e.g. empty salt)
    """
    if not salt:
        raise CryptoFailure("Key derivation requires a non-empty salt")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    try:
        return kdf.derive(secret.encode("utf-8"))
    except (TypeError, ValueError) as exc:
        raise CryptoFailure("Key derivation failed") from exc


def generate_salt(random_bytes=os.urandom) -> bytes:
    """Generate a cryptographically random salt."""
    return random_bytes(SALT_LENGTH)
