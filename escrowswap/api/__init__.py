"""HTTP and WebSocket routes."""

from fastapi import APIRouter

from escrowswap.api import auth, health, orders, pages, relay

router = APIRouter()
router.include_router(auth.router, tags=["auth"])
router.include_router(pages.router, tags=["pages"])
router.include_router(orders.router, prefix="/api", tags=["orders"])
router.include_router(health.router, prefix="/api/health", tags=["health"])
router.include_router(relay.router, tags=["relay"])
