import hashlib
import secrets
from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from database import utcnow
from errors import AuthError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

RESET_TOKEN_TTL = timedelta(minutes=10)

# Hash checked against when the email is unknown, so both login failures cost one bcrypt round
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    pwd_context.verify("not-the-password", _DUMMY_HASH)


def create_access_token(user_id: int, settings: Settings) -> str:
    now = utcnow()
    payload = {
        "user_id": user_id,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user id carried by a session token, or raise ``AuthError``."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise AuthError("Not authorized to access this route")
    user_id = payload.get("user_id")
    if user_id is None:
        raise AuthError("Not authorized to access this route")
    return int(user_id)


def new_verification_token() -> str:
    return secrets.token_hex(20)


def new_reset_token():
    """Return ``(raw_token, token_hash, expires)``; only the hash and expiry are stored."""
    raw = secrets.token_hex(20)
    return raw, hash_reset_token(raw), utcnow() + RESET_TOKEN_TTL


def hash_reset_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
