# ============================================================================
# FILE: app/api/v1/admin/providers.py
# Admin view of a provider's bookable slots
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.api.dependencies import get_db, get_optional_tenant_context
from app.core.tenant import TenantContext
from app.schemas.availability import AvailableSlotsResponse
from app.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/admin/providers", tags=["Admin - Providers"])
# Same handler at the unprefixed path used by booking clients
slots_router = APIRouter(prefix="/providers", tags=["Providers"])


@router.get("/{provider_id}/available-slots", response_model=AvailableSlotsResponse)
@slots_router.get("/{provider_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
        provider_id: UUID = Path(..., description="The provider ID"),
        date: Optional[str] = Query(None, description="Calendar date (YYYY-MM-DD)"),
        tenant: Optional[TenantContext] = Depends(get_optional_tenant_context),
        db: Session = Depends(get_db)
):
    """
    Get available 30-minute start times for a provider on a date.

    400 on a missing/malformed date, 404 for an unknown provider, 403 when
    the provider is inactive or belongs to another business.
    """
    slots = AvailabilityService.resolve_slots(db, provider_id, date, tenant)

    return AvailableSlotsResponse(
        provider_id=str(provider_id),
        date=date,
        available_slots=slots,
        count=len(slots)
    )
