"""
Credential encryption for merchant mail settings

AES-GCM with a per-value key derived from the service secret via
PBKDF2-HMAC-SHA256. Tokens are url-safe base64 of salt + nonce + ciphertext.
"""

import base64
import logging
import os
import secrets
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .protocols import CredentialDecryptionError

logger = logging.getLogger(__name__)

SALT_BYTES = 16
NONCE_BYTES = 12
KDF_ITERATIONS = 100000


class CredentialCipher:
    """Encrypts and decrypts stored mail credentials"""

    def __init__(self, secret: Optional[str] = None):
        """
        Args:
            secret: Service secret; ENCRYPTION_KEY when omitted
        """
        self._secret = self._get_secret(secret)

    def _get_secret(self, provided: Optional[str]) -> bytes:
        if provided:
            return provided.encode()

        env_key = os.getenv("ENCRYPTION_KEY")
        if env_key:
            return env_key.encode()

        # Stored credentials will not survive a restart with this key
        logger.warning("No ENCRYPTION_KEY found, generating temporary key (NOT for production!)")
        return secrets.token_urlsafe(32).encode()

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=KDF_ITERATIONS,
        )
        return kdf.derive(self._secret)

    def encrypt(self, plain_text: str) -> str:
        salt = os.urandom(SALT_BYTES)
        nonce = os.urandom(NONCE_BYTES)
        cipher_text = AESGCM(self._derive_key(salt)).encrypt(nonce, plain_text.encode(), None)
        return base64.urlsafe_b64encode(salt + nonce + cipher_text).decode()

    def decrypt(self, token: str) -> str:
        try:
            raw = base64.urlsafe_b64decode(token.encode())
        except (ValueError, TypeError) as e:
            raise CredentialDecryptionError(f"Malformed credential token: {e}")

        if len(raw) <= SALT_BYTES + NONCE_BYTES:
            raise CredentialDecryptionError("Credential token too short")

        salt = raw[:SALT_BYTES]
        nonce = raw[SALT_BYTES:SALT_BYTES + NONCE_BYTES]
        cipher_text = raw[SALT_BYTES + NONCE_BYTES:]
        try:
            plain = AESGCM(self._derive_key(salt)).decrypt(nonce, cipher_text, None)
        except InvalidTag:
            raise CredentialDecryptionError("Credential could not be decrypted with the current key")
        return plain.decode()
