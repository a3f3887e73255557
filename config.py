import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime configuration, read once at startup from the environment (and .env)."""

    database_url: str = "sqlite:///./tasks.db"
    secret_key: str = "devsecret"
    algorithm: str = "HS256"
    jwt_expire_days: int = 30
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    allowed_hosts: List[str] = field(default_factory=lambda: ["localhost", "127.0.0.1", "0.0.0.0"])
    client_url: str = "http://localhost:3000"
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from: str = "LVL.AI <no-reply@lvl.ai>"
    rate_limit_enabled: bool = True
    cookie_secure: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        secret = os.getenv("SECRET_KEY")
        if not secret:
            logger.warning("SECRET_KEY is not set, falling back to the development secret")
            secret = "devsecret"
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./tasks.db"),
            secret_key=secret,
            algorithm=os.getenv("ALGORITHM", "HS256"),
            jwt_expire_days=int(os.getenv("JWT_EXPIRE_DAYS", "30")),
            cors_origins=_env_list("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"),
            allowed_hosts=_env_list("ALLOWED_HOSTS", "localhost,127.0.0.1,0.0.0.0"),
            client_url=os.getenv("CLIENT_URL", "http://localhost:3000"),
            email_host=os.getenv("EMAIL_HOST") or None,
            email_port=int(os.getenv("EMAIL_PORT", "587")),
            email_user=os.getenv("EMAIL_USER") or None,
            email_pass=os.getenv("EMAIL_PASS") or None,
            email_from=os.getenv("EMAIL_FROM", "LVL.AI <no-reply@lvl.ai>"),
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            cookie_secure=_env_bool("COOKIE_SECURE", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
