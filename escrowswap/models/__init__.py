"""SQLAlchemy ORM models."""

from escrowswap.models.base import Base
from escrowswap.models.order import Order
from escrowswap.models.session import UserSession
from escrowswap.models.user import User

__all__ = ["Base", "Order", "User", "UserSession"]
