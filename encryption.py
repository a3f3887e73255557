import os
import logging

from cryptography.fernet import Fernet, InvalidToken
from dotenv import load_dotenv
from sqlalchemy.types import TypeDecorator, Text

load_dotenv()

logger = logging.getLogger(__name__)

_KEY = os.getenv("DB_ENCRYPTION_KEY")
_warned = False


def _get_fernet():
    global _warned
    if not _KEY:
        if not _warned:
            logger.warning("DB_ENCRYPTION_KEY is not set, free-text task fields are stored unencrypted")
            _warned = True
        return None
    return Fernet(_KEY)


class EncryptedString(TypeDecorator):
    """
    Encrypts free-text task fields (descriptions, notes) before they are written
    and decrypts them on load, so the database file only ever holds ciphertext.
    """
    impl = Text  # ciphertext is longer than the plaintext
    cache_ok = True

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.fernet = _get_fernet()

    def process_bind_param(self, value, dialect):
        if value is not None and self.fernet:
            if isinstance(value, str):
                value = value.encode("utf-8")
            return self.fernet.encrypt(value).decode("utf-8")
        return value

    def process_result_value(self, value, dialect):
        if value is not None and self.fernet:
            try:
                return self.fernet.decrypt(value.encode("utf-8")).decode("utf-8")
            except InvalidToken:
                # Rows written before a key was configured are still plaintext
                logger.debug("Returning undecryptable column value as stored")
                return value
        return value
