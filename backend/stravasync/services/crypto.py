"""Fernet encryption for the Strava refresh token at rest."""
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from stravasync.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _fernet_for(key: str) -> Fernet:
    return Fernet(key.encode())


def get_fernet() -> Fernet | None:
    """None in development when ENCRYPTION_KEY is unset; tokens are then stored as-is."""
    if not settings.encryption_key:
        return None
    return _fernet_for(settings.encryption_key)


def encrypt_value(value: str) -> str:
    if not value:
        return ""
    fernet = get_fernet()
    return fernet.encrypt(value.encode()).decode() if fernet else value


def decrypt_value(encrypted: str) -> str:
    """Plaintext, or "" when the value was written under another key (rotated ENCRYPTION_KEY)."""
    if not encrypted:
        return ""
    fernet = get_fernet()
    if fernet is None:
        return encrypted
    try:
        return fernet.decrypt(encrypted.encode()).decode()
    except InvalidToken:
        logger.warning("Stored refresh token cannot be decrypted with the current ENCRYPTION_KEY")
        return ""
