import logging
from cryptography.fernet import Fernet, InvalidToken
from cvtrack.core.config import settings

logger = logging.getLogger(__name__)

if not settings.encryption_key:
    logger.warning("ENCRYPTION_KEY is not set; using an ephemeral key. Stored mailbox tokens will not survive a restart.")

_cipher = Fernet(settings.encryption_key or Fernet.generate_key())

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
    """Decrypt sensitive string data; values stored before encryption pass through."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        logger.warning("Decryption failed (possibly not encrypted)")
        return encrypted_data
