import base64
import hashlib
import logging
from cryptography.fernet import Fernet, InvalidToken
from ragadmin.core.config import settings

logger = logging.getLogger(__name__)

def _build_cipher(key: str) -> Fernet:
    """Use the key as a Fernet key when it is one, otherwise derive a Fernet key from it."""
    try:
        return Fernet(key)
    except ValueError:
        logger.warning("ENCRYPTION_KEY is not a Fernet key, deriving one from its SHA-256 digest")
        digest = hashlib.sha256(key.encode()).digest()
        return Fernet(base64.urlsafe_b64encode(digest))

_cipher = _build_cipher(settings.encryption_key)

def encrypt_data(data: str) -> str:
    """Encrypt sensitive string data."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed, refusing to store plaintext: {e}") from e

def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken as e:
        logger.error("Decryption failed, the stored secret was written with a different key")
        raise ValueError("Stored secret could not be decrypted with the configured ENCRYPTION_KEY") from e

def mask_secret(value: str, visible: int = 4) -> str:
    """Show only the last few characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
