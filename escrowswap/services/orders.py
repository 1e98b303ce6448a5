"""Order registry: short order codes for nominal buy/sell trades."""

import logging
import secrets
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from escrowswap.models import Order
from escrowswap.models.order import (
    ORDER_STATUS_OPEN,
    ORDER_STATUS_PAID,
    ORDER_STATUS_REFUND_REQUESTED,
)

if TYPE_CHECKING:
    from escrowswap.core.config import Settings

logger = logging.getLogger(__name__)

# Upper-case letters and digits without 0/O and 1/I, so codes survive being read aloud.
ORDER_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ORDER_TYPES = frozenset({"buy", "sell"})
MAX_CODE_ATTEMPTS = 5


class OrderError(Exception):
    """Raised for a rejected order operation; `message` is shown to the user."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidOrderError(OrderError):
    pass


class OrderNotFoundError(OrderError):
    status_code = 404

    def __init__(self, message: str = "Order not found.") -> None:
        super().__init__(message)


class OrderCodeUnavailableError(OrderError):
    status_code = 503

    def __init__(self, message: str = "Could not allocate an order code; try again.") -> None:
        super().__init__(message)


def normalize_code(code: str | None) -> str:
    """Order codes are matched case-insensitively; clients often type them lower-case."""
    return (code or "").strip().upper()


def generate_order_code(length: int = 8) -> str:
    """Return a random code drawn from ORDER_CODE_ALPHABET."""
    return "".join(secrets.choice(ORDER_CODE_ALPHABET) for _ in range(length))


def create_order(
    db: Session,
    order_type: str,
    settings: "Settings",
    payment_address: str | None = None,
    created_by: int | None = None,
) -> Order:
    """
    Record a new order and return it with its code.

    Regenerates the code on a collision, up to MAX_CODE_ATTEMPTS times.
    """
    order_type = (order_type or "").strip().lower()
    if order_type not in ORDER_TYPES:
        raise InvalidOrderError("Order type must be 'buy' or 'sell'.")
    address = (payment_address or "").strip() or settings.DEFAULT_PAYMENT_ADDRESS

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        code = generate_order_code(settings.ORDER_CODE_LENGTH)
        if db.query(Order.id).filter(Order.code == code).first() is not None:
            continue
        order = Order(
            code=code,
            type=order_type,
            payment_address=address,
            status=ORDER_STATUS_OPEN,
            created_by=created_by,
        )
        db.add(order)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Order code collision on insert (attempt %s)", attempt)
            continue
        db.refresh(order)
        logger.info("Order created: code=%s type=%s", order.code, order.type)
        return order
    raise OrderCodeUnavailableError()


def get_order(db: Session, code: str | None) -> Order:
    """Look up an order by code. Raises OrderNotFoundError."""
    code = normalize_code(code)
    order = db.query(Order).filter(Order.code == code).first() if code else None
    if order is None:
        raise OrderNotFoundError()
    return order


def _set_status(db: Session, code: str | None, status: str) -> Order:
    order = get_order(db, code)
    if order.status != status:
        order.status = status
        db.commit()
        db.refresh(order)
    logger.info("Order %s status: %s", order.code, order.status)
    return order


def mark_paid(db: Session, code: str | None) -> Order:
    """Record a buyer's claim that payment was sent. Nothing is verified or settled."""
    return _set_status(db, code, ORDER_STATUS_PAID)


def request_refund(db: Session, code: str | None) -> Order:
    """Record a refund request. Nothing is verified or settled."""
    return _set_status(db, code, ORDER_STATUS_REFUND_REQUESTED)
