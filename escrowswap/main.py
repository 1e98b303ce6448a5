"""FastAPI application entrypoint. No business logic; only wiring, middleware and error shapes."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from escrowswap.api import router
from escrowswap.api.auth import LoginRequiredError
from escrowswap.api.rendering import STATIC_DIR
from escrowswap.core.config import settings
from escrowswap.core.database import SessionLocal, init_db
from escrowswap.schemas.common import ErrorResponse
from escrowswap.services.accounts import ensure_admin_user
from escrowswap.services.relay import RoomRelay

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables and seed the admin account before serving."""
    init_db()
    db = SessionLocal()
    try:
        ensure_admin_user(db, settings)
    finally:
        db.close()
    logger.info("EscrowSwap ready (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="EscrowSwap",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.relay = RoomRelay(max_message_length=settings.RELAY_MAX_MESSAGE_LENGTH)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
app.include_router(router)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(message=message).model_dump(),
        status_code=status_code,
        headers=headers,
    )


@app.exception_handler(LoginRequiredError)
async def login_required_handler(request: Request, exc: LoginRequiredError) -> RedirectResponse:
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return _error(exc.status_code, message, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Missing or invalid fields.")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error.")
