"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginResponse(BaseModel):
    """JSON reply after a successful login; the session travels in the cookie."""

    success: bool = True
    role: str


class RegisterResponse(BaseModel):
    """JSON reply after a successful registration."""

    success: bool = True
    user_id: int


class VerifyEmailRequest(BaseModel):
    """Body for POST /verify-email."""

    email: str = Field(..., min_length=1, max_length=255, description="E-mail to mark verified")


class CurrentUser(BaseModel):
    """Authenticated user (id, email, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str


class UserListItem(BaseModel):
    """User entry for admin list (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    phone: str | None = None
    role: str
    verified: bool


class UsersListResponse(BaseModel):
    """Response for GET /api/users (admin only)."""

    success: bool = True
    users: list[UserListItem]
