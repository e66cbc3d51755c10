"""
Secret encryption and log redaction for Feelin Pay.

CRITICAL SECURITY REQUIREMENTS:
- NEVER store Google OAuth tokens in plaintext in the DB or logs
- All encrypt/decrypt operations MUST use this module
- Any log field whose name contains token/secret/key MUST be redacted

Encryption uses a Fernet key derived from the ENCRYPTION_KEY environment
variable (PBKDF2-HMAC-SHA256).

Usage:
    from feelin_pay.platform.secrets import encrypt_secret, decrypt_secret

    # Encrypt a delegated token before storing it on the owner row
    encrypted = await encrypt_secret(access_token)

    # Decrypt after reading it back
    access_token = await decrypt_secret(owner.google_access_token_encrypted)
"""

import base64
import hashlib
import logging
import os
import re
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

_KDF_SALT = b"feelin-pay-token-salt"
_KDF_ITERATIONS = 100000

# Patterns for detecting secrets in log field names
SECRET_PATTERNS = [
    re.compile(r"(access[_-]?token)", re.IGNORECASE),
    re.compile(r"(refresh[_-]?token)", re.IGNORECASE),
    re.compile(r"(credential[_-]?token)", re.IGNORECASE),
    re.compile(r"(bearer[_-]?token)", re.IGNORECASE),
    re.compile(r"(client[_-]?secret)", re.IGNORECASE),
    re.compile(r"(private[_-]?key)", re.IGNORECASE),
    re.compile(r"(encryption[_-]?key)", re.IGNORECASE),
    re.compile(r"(password)", re.IGNORECASE),
    re.compile(r"(database[_-]?url)", re.IGNORECASE),
    re.compile(r"(credentials)", re.IGNORECASE),
]

# Secret value shapes to redact from free-text messages
SECRET_VALUE_PATTERNS = [
    re.compile(r"(Bearer\s+[a-zA-Z0-9._-]+)"),
    re.compile(r"(ya29\.[a-zA-Z0-9._-]+)"),  # Google OAuth access tokens
    re.compile(r"(1//[a-zA-Z0-9._-]{20,})"),  # Google OAuth refresh tokens
]

REDACTED_VALUE = "[REDACTED]"


class EncryptionError(Exception):
    """Raised when encryption/decryption operations fail."""
    pass


class SecretsManager:
    """Encrypts and decrypts stored secrets with a locally derived Fernet key."""

    def __init__(self, encryption_key: Optional[str] = None):
        self._encryption_key = encryption_key
        self._fernet: Optional[Fernet] = None
        self._initialized = False

    def _initialize(self):
        """Lazy initialization of the cipher."""
        if self._initialized:
            return

        encryption_key = self._encryption_key or os.getenv("ENCRYPTION_KEY")
        if not encryption_key:
            logger.warning("No encryption configuration found. Set ENCRYPTION_KEY.")
            self._initialized = True
            return

        derived_key = hashlib.pbkdf2_hmac(
            "sha256",
            encryption_key.encode(),
            _KDF_SALT,
            _KDF_ITERATIONS,
            dklen=32,
        )
        self._fernet = Fernet(base64.urlsafe_b64encode(derived_key))
        self._initialized = True
        logger.info("Token encryption initialized")

    def _get_fernet(self) -> Fernet:
        self._initialize()
        if self._fernet is None:
            raise EncryptionError("No encryption backend configured")
        return self._fernet

    async def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a plaintext string.

        Raises:
            ValueError: If plaintext is empty
            EncryptionError: If no key is configured
        """
        if not plaintext:
            raise ValueError("Cannot encrypt empty string")
        return self._get_fernet().encrypt(plaintext.encode("utf-8")).decode("utf-8")

    async def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt an encrypted string.

        Raises:
            ValueError: If ciphertext is empty
            EncryptionError: If no key is configured or the ciphertext is invalid
        """
        if not ciphertext:
            raise ValueError("Cannot decrypt empty string")
        try:
            return self._get_fernet().decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            raise EncryptionError("Invalid ciphertext or wrong encryption key")


# Singleton instance
_secrets_manager = SecretsManager()


async def encrypt_secret(plaintext: str) -> str:
    """Encrypt a secret for storage."""
    return await _secrets_manager.encrypt(plaintext)


async def decrypt_secret(ciphertext: str) -> str:
    """Decrypt a stored secret."""
    return await _secrets_manager.decrypt(ciphertext)


def is_secret_key(key: str) -> bool:
    """Check if a field name likely holds a secret."""
    return any(pattern.search(key) for pattern in SECRET_PATTERNS)


def redact_value(value: Any) -> Any:
    """Redact secret-shaped substrings from a string value."""
    if not isinstance(value, str):
        return value

    result = value
    for pattern in SECRET_VALUE_PATTERNS:
        result = pattern.sub(REDACTED_VALUE, result)
    return result


def redact_secrets(data: Any, _depth: int = 0) -> Any:
    """
    Recursively redact secrets from a data structure.

    Usage:
        safe = redact_secrets({"access_token": "ya29.abc", "owner_id": "o-1"})
    """
    # Prevent infinite recursion
    if _depth > 10:
        return data

    if isinstance(data, dict):
        return {
            key: REDACTED_VALUE if is_secret_key(key) else redact_secrets(value, _depth + 1)
            for key, value in data.items()
        }

    if isinstance(data, list):
        return [redact_secrets(item, _depth + 1) for item in data]

    if isinstance(data, str):
        return redact_value(data)

    return data


class SecretRedactingFilter(logging.Filter):
    """
    Logging filter that redacts secrets from log records.

    Usage:
        handler.addFilter(SecretRedactingFilter())
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_value(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = redact_secrets(record.args)
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    redact_value(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        # Redact extra fields
        for key in list(record.__dict__.keys()):
            if is_secret_key(key):
                setattr(record, key, REDACTED_VALUE)

        return True


def validate_encryption_configured() -> bool:
    """True if ENCRYPTION_KEY is set."""
    return bool(os.getenv("ENCRYPTION_KEY"))
