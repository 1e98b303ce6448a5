"""ORM model for nominal buy/sell orders identified by a short code."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from escrowswap.models.base import Base

ORDER_STATUS_OPEN = "open"
ORDER_STATUS_PAID = "paid"
ORDER_STATUS_REFUND_REQUESTED = "refund_requested"


class Order(Base):
    """
    A trade session. `code` doubles as the chat-room key.

    status is a label recorded from client claims ('open', 'paid',
    'refund_requested'); nothing is settled.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(16), nullable=False, unique=True, index=True)
    type = Column(String(8), nullable=False)
    payment_address = Column(String(255), nullable=False)
    status = Column(String(32), nullable=False, default=ORDER_STATUS_OPEN)
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
