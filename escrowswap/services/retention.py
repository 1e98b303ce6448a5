"""Session retention: delete login sessions whose expiry has passed."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from escrowswap.models import UserSession

if TYPE_CHECKING:
    from escrowswap.core.config import Settings

logger = logging.getLogger(__name__)


def purge_expired_sessions(session: Session, settings: "Settings") -> int:
    """
    Delete session rows with expires_at in the past and return how many went.

    Expired rows are already refused at lookup; this only reclaims space.
    Idempotent: safe to run repeatedly.
    """
    if not settings.SESSION_RETENTION_ENABLED:
        logger.info("Retention is disabled (SESSION_RETENTION_ENABLED=false); skipping.")
        return 0

    cutoff = datetime.now(UTC)
    deleted_count = (
        session.query(UserSession)
        .filter(UserSession.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()

    if deleted_count > 0:
        logger.info(
            "Retention run: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
