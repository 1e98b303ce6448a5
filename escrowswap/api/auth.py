"""Login, registration, logout and the session dependencies that gate other routes."""

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from escrowswap.api.rendering import templates
from escrowswap.core.config import Settings, get_settings
from escrowswap.core.database import get_db
from escrowswap.models import User
from escrowswap.schemas.auth import (
    CurrentUser,
    LoginResponse,
    RegisterResponse,
    UserListItem,
    UsersListResponse,
    VerifyEmailRequest,
)
from escrowswap.schemas.common import SuccessResponse
from escrowswap.services.accounts import (
    ROLE_ADMIN,
    AccountError,
    authenticate,
    mark_verified,
    normalize_email,
    register_user,
)
from escrowswap.services.sessions import (
    IssuedSession,
    create_session,
    destroy_session,
    resolve_session,
)

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_CONTENT_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


class LoginRequiredError(Exception):
    """Raised by page dependencies; the app answers with a redirect to /login."""


def get_optional_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser | None:
    """Dependency: the user behind the session cookie, or None."""
    resolved = resolve_session(db, request.cookies.get(settings.SESSION_COOKIE_NAME), settings)
    if resolved is None:
        return None
    session_row, user = resolved
    return CurrentUser(id=user.id, email=user.email, role=session_row.role)


def require_page_user(
    user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> CurrentUser:
    """Dependency for pages: redirect to the login page without a valid session."""
    if user is None:
        raise LoginRequiredError()
    return user


def get_current_user(
    user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> CurrentUser:
    """Dependency for JSON APIs: 401 without a valid session."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )
    return user


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    if current_user.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return current_user


async def _read_fields(request: Request) -> tuple[dict[str, str], bool]:
    """
    Read a JSON object or an HTML form body into string fields.
    Returns (fields, is_json) so the caller can answer in kind.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSON: {e!s}") from e
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="JSON body must be an object.")
        # Numbers are accepted (e.g. phone); booleans are not text.
        fields = {
            k: str(v)
            for k, v in body.items()
            if isinstance(v, (str, int)) and not isinstance(v, bool)
        }
        return fields, True
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}, False
    raise HTTPException(
        status_code=415,
        detail="Content-Type must be application/json or a form submission.",
    )


def _set_session_cookie(response: Response, issued: IssuedSession, settings: Settings) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        issued.cookie_value,
        max_age=issued.max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request) -> HTMLResponse:
    """Render the login form."""
    return templates.TemplateResponse(request, "login.html", {"message": None})


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """
    Check e-mail and password and open a session.

    JSON bodies get `{success, role}` (or `{success: false, message}`); form posts
    are redirected to the dashboard (admins to /admin) or shown the form again
    with the error.
    """
    fields, is_json = await _read_fields(request)
    try:
        user = await run_in_threadpool(
            authenticate, db, fields.get("email"), fields.get("password")
        )
    except AccountError as e:
        if is_json:
            raise HTTPException(status_code=e.status_code, detail=e.message) from e
        return templates.TemplateResponse(
            request,
            "login.html",
            {"message": e.message, "email": fields.get("email", "")},
            status_code=e.status_code,
        )

    issued = await run_in_threadpool(create_session, db, user, settings)
    logger.info("Login: user id=%s role=%s", user.id, user.role)
    response: Response
    if is_json:
        response = JSONResponse(LoginResponse(role=user.role).model_dump())
    else:
        target = "/admin" if user.role == ROLE_ADMIN else "/dashboard"
        response = RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
    _set_session_cookie(response, issued, settings)
    return response


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request) -> HTMLResponse:
    """Render the registration form."""
    return templates.TemplateResponse(request, "register.html", {"message": None})


async def _register(request: Request, db: Session) -> Response:
    fields, is_json = await _read_fields(request)
    try:
        user = await run_in_threadpool(
            register_user,
            db,
            fields.get("email"),
            fields.get("password"),
            fields.get("phone"),
        )
    except AccountError as e:
        if is_json:
            raise HTTPException(status_code=e.status_code, detail=e.message) from e
        return templates.TemplateResponse(
            request,
            "register.html",
            {"message": e.message, "email": fields.get("email", "")},
            status_code=e.status_code,
        )
    if is_json:
        return JSONResponse(
            RegisterResponse(user_id=user.id).model_dump(),
            status_code=status.HTTP_201_CREATED,
        )
    return RedirectResponse("/login?registered=1", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Create an account from a JSON body or the registration form."""
    return await _register(request, db)


@router.post("/signup", response_model=RegisterResponse, status_code=201)
async def signup(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Alias of POST /register kept for clients that post to /signup."""
    return await _register(request, db)


@router.post("/verify-email", response_model=SuccessResponse)
def verify_email(
    body: VerifyEmailRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> SuccessResponse:
    """Mark an e-mail as verified. Users may verify their own address; admins any."""
    if current_user.role != ROLE_ADMIN and normalize_email(body.email) != current_user.email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only verify your own email.",
        )
    try:
        mark_verified(db, body.email)
    except AccountError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return SuccessResponse()


@router.get("/logout")
def logout(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RedirectResponse:
    """Close the session and return to the login page."""
    destroy_session(db, request.cookies.get(settings.SESSION_COOKIE_NAME), settings)
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


@router.get("/api/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (admin only)."""
    users = db.query(User).order_by(User.id).all()
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users])
