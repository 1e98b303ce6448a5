"""Pydantic request/response schemas."""

from escrowswap.schemas.auth import (
    CurrentUser,
    LoginResponse,
    RegisterResponse,
    UserListItem,
    UsersListResponse,
    VerifyEmailRequest,
)
from escrowswap.schemas.common import ErrorResponse, SuccessResponse
from escrowswap.schemas.health import HealthResponse
from escrowswap.schemas.orders import (
    CreateOrderRequest,
    OrderResponse,
    OrderStatusResponse,
)
from escrowswap.schemas.relay import JoinEvent, MessageEvent, RelayFrame

__all__ = [
    "CreateOrderRequest",
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "JoinEvent",
    "LoginResponse",
    "MessageEvent",
    "OrderResponse",
    "OrderStatusResponse",
    "RegisterResponse",
    "RelayFrame",
    "SuccessResponse",
    "UserListItem",
    "UsersListResponse",
    "VerifyEmailRequest",
]
