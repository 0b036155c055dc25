"""
Encryption service for carrier credentials

Carrier passwords are stored with Fernet (AES) using a key derived from SECRET_KEY.
Also provides log sanitization for carrier payloads that carry customer PII.
"""
import base64
import logging
import re
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from app.core.config import settings

logger = logging.getLogger(__name__)

# Salt for key derivation
_ENCRYPTION_SALT = b"kargo_backoffice_carrier_credentials_v1"

# Cached Fernet instance
_fernet: Optional[Fernet] = None


def _get_fernet() -> Fernet:
    """Get or create Fernet instance with derived key."""
    global _fernet

    if _fernet is None:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_ENCRYPTION_SALT,
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(settings.SECRET_KEY.encode()))
        _fernet = Fernet(key)

    return _fernet


def encrypt_credential(plaintext: str) -> str:
    """
    Encrypt a carrier credential.

    Args:
        plaintext: The secret to encrypt

    Returns:
        Base64-encoded encrypted string
    """
    if not plaintext:
        return ""

    try:
        encrypted = _get_fernet().encrypt(plaintext.encode())
        return encrypted.decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError("Failed to encrypt credential")


def decrypt_credential(ciphertext: str) -> str:
    """
    Decrypt a carrier credential.

    Args:
        ciphertext: Base64-encoded encrypted string

    Returns:
        Decrypted plaintext
    """
    if not ciphertext:
        return ""

    try:
        decrypted = _get_fernet().decrypt(ciphertext.encode())
        return decrypted.decode()
    except InvalidToken:
        logger.error("Decryption failed: Invalid token (wrong key or corrupted data)")
        raise ValueError("Failed to decrypt credential - invalid token")


def sanitize_for_logging(text: str, max_length: int = 500) -> str:
    """
    Remove PII from text for safe logging.

    Args:
        text: Text that may contain PII
        max_length: Maximum length of result

    Returns:
        Sanitized text safe for logging
    """
    if not text:
        return ""

    sanitized = text[:max_length]

    patterns = [
        # Credentials inside SOAP envelopes
        (r'<(Sifre|WebPassword)>.*?</\1>', r'<\1>[SECRET]</\1>'),
        # Turkish mobile numbers (05xx xxx xx xx, +90 5xx ...)
        (r'(\+?90[-.\s]?)?0?5\d{2}[-.\s]?\d{3}[-.\s]?\d{2}[-.\s]?\d{2}\b', '[PHONE]'),
        (r'\b\d{10,11}\b', '[PHONE]'),
        # Emails
        (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', '[EMAIL]'),
    ]

    for pattern, replacement in patterns:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

    return sanitized
