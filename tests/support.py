"""Shared helpers for tests that need real tables."""

from escrowswap.core.database import engine
from escrowswap.models import Base

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password-1"


def reset_database() -> None:
    """Drop and recreate every table in the in-memory test database."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
