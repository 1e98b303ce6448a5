"""Server-side login sessions referenced by a signed cookie."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt
from sqlalchemy.orm import Session

from escrowswap.core.security import (
    decode_session_cookie,
    encode_session_cookie,
    new_session_id,
)
from escrowswap.models import User, UserSession

if TYPE_CHECKING:
    from escrowswap.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    """A freshly created session and the cookie value that refers to it."""

    session_id: str
    cookie_value: str
    expires_at: datetime
    max_age_seconds: int


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored value is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def create_session(db: Session, user: User, settings: "Settings") -> IssuedSession:
    """Persist a new session for `user` and return the signed cookie value."""
    now = datetime.now(UTC)
    lifetime = timedelta(hours=settings.SESSION_MAX_AGE_HOURS)
    expires_at = now + lifetime
    sid = new_session_id()
    db.add(
        UserSession(
            id=sid,
            user_id=user.id,
            role=user.role,
            created_at=now,
            expires_at=expires_at,
        )
    )
    db.commit()
    logger.info("Session opened for user id=%s", user.id)
    return IssuedSession(
        session_id=sid,
        cookie_value=encode_session_cookie(sid, now, expires_at, settings),
        expires_at=expires_at,
        max_age_seconds=int(lifetime.total_seconds()),
    )


def _session_id_from_cookie(cookie_value: str | None, settings: "Settings") -> str | None:
    if not cookie_value:
        return None
    try:
        return decode_session_cookie(cookie_value, settings)
    except jwt.PyJWTError:
        return None


def resolve_session(
    db: Session,
    cookie_value: str | None,
    settings: "Settings",
) -> tuple[UserSession, User] | None:
    """
    Return (session row, user) for a valid, unexpired cookie, else None.
    A row past its expiry is treated as absent even before retention removes it.
    """
    sid = _session_id_from_cookie(cookie_value, settings)
    if sid is None:
        return None
    row = db.query(UserSession).filter(UserSession.id == sid).first()
    if row is None:
        return None
    if _as_utc(row.expires_at) <= datetime.now(UTC):
        return None
    user = db.query(User).filter(User.id == row.user_id).first()
    if user is None:
        return None
    return row, user


def destroy_session(db: Session, cookie_value: str | None, settings: "Settings") -> bool:
    """Delete the session the cookie refers to. Returns True if a row was removed."""
    sid = _session_id_from_cookie(cookie_value, settings)
    if sid is None:
        return False
    deleted = (
        db.query(UserSession)
        .filter(UserSession.id == sid)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Session closed")
    return bool(deleted)
