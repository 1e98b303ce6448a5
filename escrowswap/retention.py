"""
CLI entrypoint for the session retention job. Run from cron, e.g.:

  python -m escrowswap.retention

Or hourly: 0 * * * * cd /path/to/escrowswap && .venv/bin/python -m escrowswap.retention
"""

import logging
import sys

from escrowswap.core.config import get_settings
from escrowswap.core.database import SessionLocal
from escrowswap.services.retention import purge_expired_sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run retention: delete expired login sessions."""
    settings = get_settings()
    db = SessionLocal()
    try:
        sessions_deleted = purge_expired_sessions(db, settings)
        logger.info("Retention completed: sessions_deleted=%s", sessions_deleted)
        return 0
    except Exception as e:
        logger.exception("Retention job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
