"""
API v1 router setup
Organized into: admin (business-scoped) and provider portal (JWT) routes
"""
from fastapi import APIRouter

from app.api.v1.admin import bookings, providers, store_options
from app.api.v1.provider import invitations

api_v1_router = APIRouter()

# ============================================================================
# ADMIN ROUTES (business scope via X-Business-ID / businessId)
# ============================================================================
api_v1_router.include_router(providers.router)
api_v1_router.include_router(store_options.router)
api_v1_router.include_router(bookings.router)
api_v1_router.include_router(providers.slots_router)
api_v1_router.include_router(store_options.options_router)

# ============================================================================
# PROVIDER PORTAL ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(invitations.router)
