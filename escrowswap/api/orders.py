"""Order endpoints: create an order code, record paid / refund claims."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from escrowswap.api.auth import get_current_user
from escrowswap.core.config import Settings, get_settings
from escrowswap.core.database import get_db
from escrowswap.models import Order
from escrowswap.schemas.auth import CurrentUser
from escrowswap.schemas.orders import CreateOrderRequest, OrderResponse, OrderStatusResponse
from escrowswap.services.orders import (
    OrderError,
    create_order,
    get_order,
    mark_paid,
    request_refund,
)
from escrowswap.services.relay import RoomRelay

logger = logging.getLogger(__name__)

router = APIRouter()


def get_relay(request: Request) -> RoomRelay:
    """Dependency: the process-wide room relay held on the application state."""
    return request.app.state.relay


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        code=order.code,
        type=order.type,
        payment_address=order.payment_address,
        status=order.status,
    )


@router.post("/create-order", response_model=OrderResponse, status_code=201)
def post_create_order(
    body: CreateOrderRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OrderResponse:
    """
    Open a buy or sell order and return its code.

    The code identifies the trade and is the room key for the chat relay.
    When `trc20_address` is omitted the configured nominal address is used.
    """
    try:
        order = create_order(
            db,
            body.type,
            settings,
            payment_address=body.trc20_address,
            created_by=current_user.id,
        )
    except OrderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return _order_response(order)


@router.get("/order/{code}", response_model=OrderResponse)
def get_order_by_code(
    code: str,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> OrderResponse:
    """Return the order for `code` (case-insensitive)."""
    try:
        order = get_order(db, code)
    except OrderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return _order_response(order)


async def _change_status(
    action: Callable[[Session, str], Order],
    code: str,
    db: Session,
    relay: RoomRelay,
) -> OrderStatusResponse:
    try:
        order = await run_in_threadpool(action, db, code)
    except OrderError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    delivered = await relay.publish_order_update(order.code, order.status)
    logger.info("Order %s -> %s announced to %s member(s)", order.code, order.status, delivered)
    return OrderStatusResponse(code=order.code, status=order.status)


@router.post("/order/{code}/mark-paid", response_model=OrderStatusResponse)
async def post_mark_paid(
    code: str,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    relay: Annotated[RoomRelay, Depends(get_relay)],
) -> OrderStatusResponse:
    """Record that payment was sent (a claim only) and notify the order's room."""
    return await _change_status(mark_paid, code, db, relay)


@router.post("/order/{code}/refund", response_model=OrderStatusResponse)
async def post_refund(
    code: str,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    relay: Annotated[RoomRelay, Depends(get_relay)],
) -> OrderStatusResponse:
    """Record a refund request and notify the order's room."""
    return await _change_status(request_refund, code, db, relay)
