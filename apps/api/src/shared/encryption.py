"""
Refresh token encryption at rest.

Tokens are sealed with AES-256-GCM. The stored value is the base64 encoding
of ``nonce || ciphertext || tag`` where the nonce is 12 random bytes drawn
per call and the 16-byte tag is the one appended by ``AESGCM.encrypt``.

The key string is used directly as key material: its UTF-8 bytes are
truncated or padded with ASCII ``"0"`` to exactly 32 bytes. No KDF or salt is
applied, so rows written by earlier deployments keep decrypting with the
same ``ENCRYPTION_KEY``.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.shared.exceptions import TokenDecryptionError, TokenEncryptionError

KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_FILLER = b"0"


def normalize_key(key: str) -> bytes:
    """Normalize a key string to exactly 32 bytes of AES key material."""
    return key.encode("utf-8")[:KEY_LENGTH].ljust(KEY_LENGTH, KEY_FILLER)


def encrypt_token(token: str, key: str) -> str:
    """
    Encrypt a token for storage.

    Args:
        token: Plaintext token (e.g. a Xero refresh token)
        key: Shared encryption key

    Returns:
        Base64 text holding nonce, ciphertext and authentication tag

    Raises:
        TokenEncryptionError: If no key is configured
    """
    if not key:
        raise TokenEncryptionError("Encryption key not configured")

    nonce = os.urandom(NONCE_LENGTH)
    sealed = AESGCM(normalize_key(key)).encrypt(nonce, token.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt_token(encrypted_data: str, key: str) -> str:
    """
    Decrypt a token produced by :func:`encrypt_token`.

    Raises:
        TokenEncryptionError: If no key is configured
        TokenDecryptionError: If the blob is malformed, was tampered with,
            or was sealed under a different key
    """
    if not key:
        raise TokenEncryptionError("Encryption key not configured")

    try:
        combined = base64.b64decode(encrypted_data, validate=True)
    except (binascii.Error, ValueError):
        raise TokenDecryptionError("Encrypted token is not valid base64")

    if len(combined) < NONCE_LENGTH + TAG_LENGTH:
        raise TokenDecryptionError("Encrypted token is too short")

    nonce, sealed = combined[:NONCE_LENGTH], combined[NONCE_LENGTH:]
    try:
        plaintext = AESGCM(normalize_key(key)).decrypt(nonce, sealed, None)
    except InvalidTag:
        raise TokenDecryptionError(
            "Failed to decrypt token: authentication tag mismatch"
        )

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise TokenDecryptionError("Decrypted token is not valid UTF-8")
