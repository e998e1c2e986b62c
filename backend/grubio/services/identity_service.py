"""Identity provider: sign-up, sign-in, sign-out and session resolution.

Passwords are hashed with argon2id. A successful sign-in issues an opaque
bearer token (an AuthSession row); sign-out revokes it, after which every
request or live query carrying that token fails with SessionExpiredError.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

import argon2
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grubio.errors import AuthError, AuthErrorCode, NotFoundError, SessionExpiredError, ValidationError
from grubio.models.auth_session import AuthSession
from grubio.models.user import User
from grubio.schemas.user import UserIdentity

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)

AuthStateCallback = Callable[[Optional[UserIdentity]], None]


class AuthStateListener:
    """Handle returned by ``on_auth_state_changed``; ``cancel()`` unsubscribes."""

    def __init__(self, callback: AuthStateCallback):
        self.callback = callback

    def cancel(self) -> None:
        with _listeners_lock:
            if self in _auth_listeners:
                _auth_listeners.remove(self)


_auth_listeners: list[AuthStateListener] = []
_listeners_lock = threading.Lock()


def on_auth_state_changed(callback: AuthStateCallback) -> AuthStateListener:
    """Stream the current identity (or None after sign-out) to ``callback``."""
    listener = AuthStateListener(callback)
    with _listeners_lock:
        _auth_listeners.append(listener)
    return listener


def _emit_auth_state(identity: Optional[UserIdentity]) -> None:
    with _listeners_lock:
        listeners = list(_auth_listeners)
    for listener in listeners:
        try:
            listener.callback(identity)
        except Exception:
            logger.exception("Auth state listener raised")


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Never raises on mismatch."""
    try:
        return _hasher.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _open_session(db: Session, user: User) -> UserIdentity:
    auth_session = AuthSession(user_id=user.user_id)
    db.add(auth_session)
    db.commit()
    db.refresh(auth_session)
    identity = UserIdentity(
        user_id=user.user_id,
        email=user.email,
        display_name=user.display_name,
        token=auth_session.token,
    )
    _emit_auth_state(identity)
    return identity


def sign_up(db: Session, email: str, password: str, display_name: str = "") -> UserIdentity:
    """Create an account plus its user document and sign it in."""
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Please enter an email and password.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if db.query(User).filter(User.email == email).first():
        raise AuthError(AuthErrorCode.email_in_use, "That email is already registered. Try logging in instead.")

    user = User(email=email, display_name=(display_name or "").strip(), password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AuthError(AuthErrorCode.email_in_use, "That email is already registered. Try logging in instead.")
    db.refresh(user)
    logger.info("Signed up user %s (%s)", user.user_id, email)
    return _open_session(db, user)


def sign_in(db: Session, email: str, password: str) -> UserIdentity:
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Please enter an email and password.")
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise AuthError(AuthErrorCode.not_found, "No account found. Please sign up first.")
    if not verify_password(password, user.password_hash):
        raise AuthError(AuthErrorCode.wrong_password, "Incorrect password. Try again.")
    logger.info("Signed in user %s", user.user_id)
    return _open_session(db, user)


def sign_out(db: Session, token: str) -> None:
    """Revoke the session token. Unknown or already revoked tokens are ignored."""
    auth_session = db.query(AuthSession).filter(AuthSession.token == token).first()
    if not auth_session or not auth_session.is_active:
        return
    auth_session.revoked_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Signed out user %s", auth_session.user_id)
    _emit_auth_state(None)


def resolve_session(db: Session, token: Optional[str]) -> User:
    """Return the signed-in user for ``token`` or raise SessionExpiredError."""
    if not token:
        raise SessionExpiredError("You must be logged in.")
    auth_session = db.query(AuthSession).filter(AuthSession.token == token).first()
    if not auth_session or not auth_session.is_active:
        raise SessionExpiredError("Your session has ended. Please log in again.")
    return auth_session.user


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user
