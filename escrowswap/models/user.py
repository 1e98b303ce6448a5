"""ORM model for application users (auth and roles)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from escrowswap.models.base import Base


class User(Base):
    """
    User account for session authentication and role-based access.

    role: 'admin' or 'user'
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    role = Column(String(32), nullable=False, default="user")
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
