# Vault - Export Cipher
#
# Deterministic AES-256-CBC applied only to the password field of each
# exported record, so the rest of the export file stays readable.
#
#   key = SHA-256(stored master-secret verification hash)
#   iv  = export timestamp, 8 bytes little-endian, zero padded to 16
#
# Every record in one export shares the same key and IV. That is the
# price of being able to reverse the export from nothing but the file's
# own ``exportedAt`` and settings hash. CBC carries no integrity tag: a
# wrong key or IV usually trips the PKCS7 padding check, but can also
# decode to garbage without any error.

import binascii
import hashlib
import struct

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .encryption import decode_from_storage, encode_for_storage
from .errors import CryptoFailure

IV_LENGTH = 16
BLOCK_SIZE_BITS = 128


def derive_export_key(master_password_hash: str) -> bytes:
    """Hash the stored verification hash into a 256-bit AES key."""
    return hashlib.sha256(master_password_hash.encode("utf-8")).digest()


def derive_export_iv(exported_at: int) -> bytes:
    """Low 8 bytes: timestamp little-endian. High 8 bytes: zero."""
    if exported_at < 0:
        raise CryptoFailure("Export timestamp must not be negative")
    return struct.pack("<Q", exported_at & 0xFFFFFFFFFFFFFFFF) + bytes(IV_LENGTH - 8)


def encrypt_password(password: str, key: bytes, iv: bytes) -> str:
    """Encrypt one password field; returns base64 ciphertext."""
    padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
    padded = padder.update(password.encode("utf-8")) + padder.finalize()

    try:
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    except ValueError as exc:
        raise CryptoFailure("Invalid export key or IV") from exc

    return encode_for_storage(encryptor.update(padded) + encryptor.finalize())


def decrypt_password(ciphertext_b64: str, key: bytes, iv: bytes) -> str:
    """
    Decrypt one password field.

    Raises:
        CryptoFailure: On bad base64, bad block length, bad padding or
            non-UTF-8 output. Success does NOT prove the key was right.
    """
    try:
        ciphertext = decode_from_storage(ciphertext_b64)
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except (binascii.Error, ValueError, TypeError, AttributeError) as exc:
        # UnicodeDecodeError is a ValueError
        raise CryptoFailure("Export ciphertext could not be decrypted") from exc


def export_cipher_params(master_password_hash: str, exported_at: int):
    """(key, iv) pair shared by every record of one export."""
    return derive_export_key(master_password_hash), derive_export_iv(exported_at)
