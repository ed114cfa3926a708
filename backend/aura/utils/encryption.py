"""Encryption utilities for values kept in the local session store"""
import logging
from typing import Optional, Union
from cryptography.fernet import Fernet, InvalidToken

from aura.core.errors import configuration_error

logger = logging.getLogger(__name__)

KEY_HINT = (
    "Generate one with: python -c \"from cryptography.fernet import Fernet; "
    "print(Fernet.generate_key().decode())\""
)


def build_cipher(key: Union[str, bytes, None]) -> Fernet:
    """Create a Fernet cipher from a configured key

    Raises:
        AuraError(CONFIGURATION): If the key is missing or malformed
    """
    if not key:
        raise configuration_error(f"ENCRYPTION_KEY environment variable is required. {KEY_HINT}")

    key_bytes = key if isinstance(key, bytes) else key.encode()
    try:
        return Fernet(key_bytes)
    except ValueError as e:
        raise configuration_error(
            f"Invalid ENCRYPTION_KEY format: {e}. "
            f"The key must be 32 bytes, base64-encoded (URL-safe), resulting in 44 characters. {KEY_HINT}"
        )


def encrypt(cipher: Fernet, plaintext: str) -> str:
    """Encrypt a string"""
    if not plaintext:
        return ""
    return cipher.encrypt(plaintext.encode()).decode()


def decrypt(cipher: Fernet, ciphertext: str) -> Optional[str]:
    """Decrypt a string

    Raises:
        ValueError: If decryption fails (invalid token, wrong key, corrupted data)
    """
    if not ciphertext:
        return None
    try:
        return cipher.decrypt(ciphertext.encode()).decode()
    except InvalidToken as e:
        logger.error(f"Decryption failed: {type(e).__name__}")
        raise ValueError(f"Decryption failed: {type(e).__name__}") from e
