"""Server-rendered pages behind the session gate."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from escrowswap.api.auth import require_page_user
from escrowswap.api.rendering import templates
from escrowswap.core.config import Settings, get_settings
from escrowswap.core.database import get_db
from escrowswap.models import User
from escrowswap.schemas.auth import CurrentUser
from escrowswap.services.accounts import ROLE_ADMIN

router = APIRouter()


@router.get("/")
def root() -> RedirectResponse:
    """Send visitors to the dashboard (which redirects to /login when needed)."""
    return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    user: Annotated[CurrentUser, Depends(require_page_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HTMLResponse:
    """Order creation and trade chat."""
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"user": user, "default_address": settings.DEFAULT_PAYMENT_ADDRESS},
    )


@router.get("/admin", response_class=HTMLResponse)
def admin(
    request: Request,
    user: Annotated[CurrentUser, Depends(require_page_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """User overview for admins; everyone else is turned away."""
    if user.role != ROLE_ADMIN:
        return PlainTextResponse("ACCESS DENIED", status_code=status.HTTP_403_FORBIDDEN)
    users = db.query(User).order_by(User.id).all()
    return templates.TemplateResponse(request, "admin.html", {"user": user, "users": users})
