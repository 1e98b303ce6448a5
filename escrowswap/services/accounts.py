"""Account registration, credential checks, e-mail verification and admin seeding."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from escrowswap.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    verify_password,
)
from escrowswap.models import User

if TYPE_CHECKING:
    from escrowswap.core.config import Settings

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
PHONE_MAX_LEN = 32


class AccountError(Exception):
    """Raised for a rejected account operation; `message` is shown to the user."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MissingFieldsError(AccountError):
    def __init__(self, message: str = "Missing fields.") -> None:
        super().__init__(message)


class InvalidAccountDataError(AccountError):
    pass


class DuplicateEmailError(AccountError):
    status_code = 409

    def __init__(self, message: str = "Email already exists.") -> None:
        super().__init__(message)


class EmailNotFoundError(AccountError):
    status_code = 404

    def __init__(self, message: str = "Email not found.") -> None:
        super().__init__(message)


class IncorrectPasswordError(AccountError):
    status_code = 401

    def __init__(self, message: str = "Incorrect password.") -> None:
        super().__init__(message)


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an e-mail so lookups and the unique index agree."""
    return (email or "").strip().lower()


def _validate_email(email: str) -> None:
    if len(email) > EMAIL_MAX_LEN or "@" not in email or email.startswith("@") or email.endswith("@"):
        raise InvalidAccountDataError("Invalid email address.")


def _validate_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise InvalidAccountDataError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )


def register_user(
    db: Session,
    email: str | None,
    password: str | None,
    phone: str | None = None,
    role: str = ROLE_USER,
    verified: bool = False,
) -> User:
    """
    Create an account. Raises MissingFieldsError, InvalidAccountDataError or
    DuplicateEmailError. The unique index on users.email is the final arbiter:
    a concurrent insert of the same e-mail also ends in DuplicateEmailError.
    """
    email = normalize_email(email)
    if not email or not password:
        raise MissingFieldsError()
    _validate_email(email)
    _validate_password(password)
    phone = (phone or "").strip() or None
    if phone is not None and len(phone) > PHONE_MAX_LEN:
        raise InvalidAccountDataError("Invalid phone number.")

    if db.query(User).filter(User.email == email).first() is not None:
        raise DuplicateEmailError()

    user = User(
        email=email,
        password_hash=hash_password(password),
        phone=phone,
        role=role,
        verified=verified,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateEmailError() from e
    db.refresh(user)
    logger.info("Registered user id=%s role=%s", user.id, user.role)
    return user


def authenticate(db: Session, email: str | None, password: str | None) -> User:
    """
    Return the user whose stored hash matches `password`.
    Raises MissingFieldsError, EmailNotFoundError or IncorrectPasswordError. Read-only.
    """
    email = normalize_email(email)
    if not email or not password:
        raise MissingFieldsError()
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        logger.info("Login rejected: unknown email")
        raise EmailNotFoundError()
    if not verify_password(password, user.password_hash):
        logger.info("Login rejected: bad password for user id=%s", user.id)
        raise IncorrectPasswordError()
    return user


def mark_verified(db: Session, email: str | None) -> User:
    """Set the verified flag for `email`. Raises MissingFieldsError or EmailNotFoundError."""
    email = normalize_email(email)
    if not email:
        raise MissingFieldsError()
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise EmailNotFoundError()
    if not user.verified:
        user.verified = True
        db.commit()
        logger.info("Verified email for user id=%s", user.id)
    return user


def ensure_admin_user(db: Session, settings: "Settings") -> bool:
    """
    Create the configured admin account if it does not exist yet.

    Returns True when a user was created. Does nothing unless both ADMIN_EMAIL
    and ADMIN_PASSWORD are set. Idempotent.
    """
    if not settings.ADMIN_EMAIL or settings.ADMIN_PASSWORD is None:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin seeding.")
        return False
    email = normalize_email(settings.ADMIN_EMAIL)
    if db.query(User).filter(User.email == email).first() is not None:
        logger.info("Admin already exists: %s", email)
        return False
    try:
        register_user(
            db,
            email,
            settings.ADMIN_PASSWORD.get_secret_value(),
            role=ROLE_ADMIN,
            verified=True,
        )
    except DuplicateEmailError:
        # Another worker seeded it first.
        logger.info("Admin already exists: %s", email)
        return False
    logger.info("Admin created: %s", email)
    return True
