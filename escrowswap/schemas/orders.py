"""Request/response schemas for the order endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

OrderType = Literal["buy", "sell"]
OrderStatus = Literal["open", "paid", "refund_requested"]


class CreateOrderRequest(BaseModel):
    """Body for POST /api/create-order."""

    type: OrderType = Field(..., description="Trade direction")
    trc20_address: str | None = Field(
        default=None,
        max_length=255,
        description="Nominal payment address; the configured default is used when omitted.",
    )


class OrderResponse(BaseModel):
    """An order as returned to clients."""

    success: bool = True
    code: str
    type: OrderType
    payment_address: str
    status: OrderStatus


class OrderStatusResponse(BaseModel):
    """Acknowledgement for mark-paid / refund."""

    success: bool = True
    code: str
    status: OrderStatus
