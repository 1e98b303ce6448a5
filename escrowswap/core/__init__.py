"""Core app configuration and database."""

from escrowswap.core.config import get_settings, settings
from escrowswap.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
