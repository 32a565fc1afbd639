"""AES-256-GCM encryption for individual secret fields at rest."""

import base64
import binascii
import logging
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sshvault.credentials.keys import KeyProvider
from sshvault.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

NONCE_LEN = 12  # 96 bits
TAG_LEN = 16    # 128 bits


def seal(key: bytes, plaintext: bytes) -> tuple[bytes, bytes, bytes]:
    """Encrypt *plaintext* under *key*. Returns ``(nonce, tag, ciphertext)``."""
    nonce = secrets.token_bytes(NONCE_LEN)
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    # AESGCM appends the tag; callers keep it apart from the ciphertext
    return nonce, sealed[-TAG_LEN:], sealed[:-TAG_LEN]


def open_sealed(key: bytes, nonce: bytes, tag: bytes, ciphertext: bytes) -> bytes:
    """Inverse of :func:`seal`.

    Raises:
        AuthenticationError: if the tag does not verify.
    """
    if len(nonce) != NONCE_LEN or len(tag) != TAG_LEN:
        raise AuthenticationError("Decryption failed: malformed nonce or tag")
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as exc:
        raise AuthenticationError("Decryption failed: invalid or tampered token") from exc


class FieldCipher:
    """Encrypts host / username / password values for storage.

    Tokens are ``base64(nonce || tag || ciphertext)``, one opaque string per
    column. Every call draws a fresh nonce, so equal plaintexts never produce
    equal tokens.

    The key is resolved on construction: a generated key is written to disk
    before anything is encrypted with it.
    """

    def __init__(self, key_provider: KeyProvider) -> None:
        self._key = key_provider.get_key()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext* and return the base64 token."""
        nonce, tag, ciphertext = seal(self._key, plaintext.encode("utf-8"))
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        """Decrypt *token* and return the original plaintext string.

        Raises:
            AuthenticationError: if the token is truncated, not base64, or
                fails tag verification.
        """
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise AuthenticationError("Decryption failed: token is not valid base64") from exc
        if len(raw) < NONCE_LEN + TAG_LEN:
            raise AuthenticationError("Decryption failed: token too short")
        nonce = raw[:NONCE_LEN]
        tag = raw[NONCE_LEN:NONCE_LEN + TAG_LEN]
        ciphertext = raw[NONCE_LEN + TAG_LEN:]
        return open_sealed(self._key, nonce, tag, ciphertext).decode("utf-8")
