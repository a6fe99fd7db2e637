"""API routes."""

from fastapi import APIRouter

from payment_relay.api.routes.admin import router as admin_router
from payment_relay.api.routes.push import router as push_router
from payment_relay.api.routes.webhooks import router as webhooks_router

api_router = APIRouter()

api_router.include_router(webhooks_router)
api_router.include_router(push_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
