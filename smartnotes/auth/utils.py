"""
Authentication utilities for session-based auth.

The signed session cookie (Starlette SessionMiddleware) carries the user id;
every notes and assistant operation resolves it through get_current_user.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from fastapi import Request, Depends
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from smartnotes.database import get_db
from smartnotes.errors import Unauthenticated
from smartnotes.models import User

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is pure Python, no compiled bcrypt needed
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Malformed or unknown hash format
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def get_current_user_optional(
    request: Request, db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Get the current user from session if logged in.
    Returns None if not authenticated.
    """
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Get the current user from session.
    Raises Unauthenticated (401) if there is none.
    """
    user = get_current_user_optional(request, db)
    if not user:
        raise Unauthenticated()
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user by email and password.
    Returns the user if authentication succeeds, None otherwise.
    """
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user


def create_user(db: Session, email: str, password: str) -> User:
    """Register a new account. Raises ValueError with a readable message."""
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValueError("A valid email address is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if db.query(User).filter(User.email == email).first():
        raise ValueError("An account with this email already exists")

    user = User(email=email, password_hash=get_password_hash(password), is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created account {email}")
    return user


def safe_next_url(url: Optional[str], fallback: str = "/") -> str:
    """Post-login redirect target, restricted to local paths.

    Absolute and protocol-relative URLs (//host) fall back to `fallback`.
    """
    url = (url or "").strip()
    if not url.startswith("/") or url.startswith("//"):
        return fallback

    parsed = urlparse(url)
    if parsed.scheme or parsed.netloc:
        return fallback
    return url


def login_session(request: Request, user: User):
    request.session["user_id"] = user.id


def logout_session(request: Request):
    request.session.clear()
