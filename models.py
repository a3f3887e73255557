from sqlalchemy import Column, Integer, String, DateTime, Boolean

from database import Base, utcnow


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    # bcrypt hash, never serialized
    hashed_password = Column(String, nullable=False)
    role = Column(String, default="user", nullable=False)
    avatar = Column(String)

    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String, index=True)
    # sha256 of the token that was mailed out
    password_reset_token = Column(String, index=True)
    password_reset_expires = Column(DateTime)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def start_password_reset(self, token_hash: str, expires):
        self.password_reset_token = token_hash
        self.password_reset_expires = expires

    def clear_password_reset(self):
        self.password_reset_token = None
        self.password_reset_expires = None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
