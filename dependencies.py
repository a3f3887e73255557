import os
import re
from typing import Optional

from fastapi import Depends, Header, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from auth_utils import decode_access_token
from categories import CategorySpec
from config import Settings
from database import MAX_INTEGER
from errors import AuthError, ForbiddenError, NotFoundError, ValidationError
from mailer import Mailer
from models import User


# --- App-scoped singletons (built by create_app and kept on app.state) ---
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


# --- Database Dependency ---
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


# --- Auth Dependency ---
def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Bearer header first, then the ``token`` cookie."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    cookie = request.cookies.get("token")
    if cookie and cookie != "none":
        return cookie
    return None


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    token = _extract_token(request, authorization)
    if not token:
        raise AuthError("Not authorized to access this route")
    user = db.get(User, decode_access_token(token, settings))
    if user is None:
        raise AuthError("Not authorized to access this route")
    return user


# --- Ownership guard ---
def require_owned_task(spec: CategorySpec):
    """
    Build a dependency resolving ``task_id`` to a row of ``spec.model`` owned by the caller.

    Malformed ids give 400, missing rows 404 and rows of another user 403.
    The resolved row is returned so the route does not query it again.
    """

    def guard(
        task_id: str,
        db: Session = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        if not re.fullmatch(r"[0-9]+", task_id) or not 1 <= int(task_id) <= MAX_INTEGER:
            raise ValidationError(f"Invalid {spec.label} ID")
        task = db.get(spec.model, int(task_id))
        if task is None:
            raise NotFoundError(f"{spec.title_label} not found")
        if task.assignee_id != user.id:
            raise ForbiddenError(f"You can only modify your own {spec.label}s")
        return task

    return guard


# --- Rate Limiter ---
LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")

limiter = Limiter(key_func=get_remote_address)
