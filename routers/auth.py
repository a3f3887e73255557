import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth_utils import (
    create_access_token,
    dummy_verify,
    hash_password,
    hash_reset_token,
    new_reset_token,
    new_verification_token,
    verify_password,
)
from config import Settings
from database import utcnow
from dependencies import LOGIN_RATE_LIMIT, get_current_user, get_db, get_mailer, get_settings, limiter
from errors import AppError, AuthError, ConflictError, EmailDeliveryError, NotFoundError, ValidationError
from mailer import Mailer
from models import User
from schemas import CamelModel, UserPublic, strip_markup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _lower(value: str) -> str:
    return value.lower()


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    normalize_email = field_validator("email")(_lower)
    sanitize_name = field_validator("name")(strip_markup)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    normalize_email = field_validator("email")(_lower)


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None

    sanitize_name = field_validator("name")(strip_markup)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.lower() if value else value


class PasswordUpdate(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ForgotPassword(CamelModel):
    email: EmailStr

    normalize_email = field_validator("email")(_lower)


class ResetPassword(CamelModel):
    password: str = Field(..., min_length=6)


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


def _commit_or_conflict(db: Session, message: str) -> None:
    """Commit, turning a unique-email violation from a concurrent request into a 409."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(message)


def _public(user: User) -> dict:
    return UserPublic.model_validate(user, from_attributes=True).model_dump(by_alias=True)


def _token_response(user: User, response: Response, settings: Settings) -> dict:
    """Issue a session token, mirror it into the ``token`` cookie and build the response body."""
    token = create_access_token(user.id, settings)
    response.set_cookie(
        "token",
        token,
        max_age=settings.jwt_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"success": True, "token": token, "user": _public(user)}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Register a new user.

    Stores the password as a bcrypt hash, creates an email verification token
    and sends the welcome mail. A failed welcome mail does not undo the registration.

    Raises:
        ConflictError (409): the email is already registered.
    """
    if _email_taken(db, user.email):
        raise ConflictError("User already exists")

    db_user = User(
        name=user.name,
        email=user.email,
        hashed_password=hash_password(user.password),
        email_verification_token=new_verification_token(),
    )
    db.add(db_user)
    _commit_or_conflict(db, "User already exists")
    db.refresh(db_user)
    logger.info("Registered user %s", db_user.id)

    try:
        mailer.send_welcome_email(db_user.name, db_user.email, db_user.email_verification_token)
    except AppError:
        logger.warning("Welcome email for user %s could not be sent", db_user.id)

    return _token_response(db_user, response, settings)


@router.post("/login")
@limiter.limit(LOGIN_RATE_LIMIT)  # brute force protection
def login(
    request: Request,
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate a user and issue a JWT session token.

    Unknown email and wrong password fail identically, and both run one bcrypt check.

    Raises:
        AuthError (401): invalid credentials.
    """
    db_user = db.query(User).filter(User.email == credentials.email).first()
    if db_user is None:
        dummy_verify()
        logger.info("Failed login attempt for unknown account")
        raise AuthError("Invalid credentials")
    if not verify_password(credentials.password, db_user.hashed_password):
        logger.info("Failed login attempt for user %s", db_user.id)
        raise AuthError("Invalid credentials")
    return _token_response(db_user, response, settings)


@router.post("/logout")
def logout(response: Response, user: User = Depends(get_current_user)):
    # Stateless tokens stay valid until they expire; only the cookie is dropped
    response.set_cookie("token", "none", max_age=10, httponly=True)
    return {"success": True, "message": "User logged out successfully"}


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "user": _public(user)}


@router.put("/profile")
def update_profile(
    changes: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if changes.email and changes.email != user.email:
        if _email_taken(db, changes.email):
            raise ConflictError("Email is already in use")
        user.email = changes.email
    if changes.name:
        user.name = changes.name
    _commit_or_conflict(db, "Email is already in use")
    db.refresh(user)
    return {"success": True, "user": _public(user)}


@router.put("/password")
def update_password(
    passwords: PasswordUpdate,
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not verify_password(passwords.current_password, user.hashed_password):
        raise AuthError("Password is incorrect")
    user.hashed_password = hash_password(passwords.new_password)
    db.commit()
    logger.info("Password updated for user %s", user.id)
    body = _token_response(user, response, settings)
    body["message"] = "Password updated successfully"
    return body


@router.post("/forgot-password")
@limiter.limit(LOGIN_RATE_LIMIT)
def forgot_password(
    request: Request,
    payload: ForgotPassword,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Start a password reset.

    Only the sha256 of the mailed token is stored, together with a 10 minute expiry.
    If the mail cannot be delivered the reset is rolled back.

    Raises:
        NotFoundError (404): no account for this email.
        EmailDeliveryError (500): the reset mail could not be sent.
    """
    user = db.query(User).filter(User.email == payload.email).first()
    if user is None:
        raise NotFoundError("There is no user with that email")

    raw_token, token_hash, expires = new_reset_token()
    user.start_password_reset(token_hash, expires)
    db.commit()
    logger.info("Password reset requested for user %s", user.id)

    try:
        mailer.send_password_reset_email(user.email, raw_token)
    except EmailDeliveryError:
        user.clear_password_reset()
        db.commit()
        raise
    return {"success": True, "message": "Password reset token sent to email"}


@router.put("/reset-password/{token}")
def reset_password(
    token: str,
    payload: ResetPassword,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = (
        db.query(User)
        .filter(User.password_reset_token == hash_reset_token(token), User.password_reset_expires > utcnow())
        .first()
    )
    if user is None:
        raise ValidationError("Invalid or expired token")

    user.hashed_password = hash_password(payload.password)
    user.clear_password_reset()
    db.commit()
    logger.info("Password reset completed for user %s", user.id)
    body = _token_response(user, response, settings)
    body["message"] = "Password reset successful"
    return body


@router.get("/verify-email/{token}")
def verify_email(token: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email_verification_token == token).first()
    if user is None:
        raise ValidationError("Invalid verification token")
    user.is_email_verified = True
    user.email_verification_token = None
    db.commit()
    return {"success": True, "message": "Email verified successfully"}
