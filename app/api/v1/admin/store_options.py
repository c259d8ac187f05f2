# ============================================================================
# FILE: app/api/v1/admin/store_options.py
# Business scheduling options (read + full-replace upsert)
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.api.dependencies import get_db, get_optional_tenant_context, get_tenant_context
from app.core.tenant import TenantContext
from app.schemas.scheduling_policy import SchedulingPolicyResponse, SchedulingPolicyUpdateRequest
from app.services.scheduling.policy_service import SchedulingPolicyService

router = APIRouter(prefix="/admin/store-options", tags=["Admin - Store Options"])
options_router = APIRouter(prefix="/store-options", tags=["Store Options"])


@router.get("", response_model=SchedulingPolicyResponse)
@options_router.get("", response_model=SchedulingPolicyResponse)
async def get_store_options(
        tenant: TenantContext = Depends(get_tenant_context),
        db: Session = Depends(get_db)
):
    """Get scheduling options for the business (defaults when never saved)"""
    options = SchedulingPolicyService.get_policy(db, tenant.business_id)
    return SchedulingPolicyResponse(options=options)


@router.put("", response_model=SchedulingPolicyResponse)
@options_router.put("", response_model=SchedulingPolicyResponse)
async def update_store_options(
        request: SchedulingPolicyUpdateRequest,
        tenant: Optional[TenantContext] = Depends(get_optional_tenant_context),
        db: Session = Depends(get_db)
):
    """
    Save scheduling options.

    The business comes from X-Business-ID / businessId, or the body's
    businessId. Absent fields reset to defaults; the response timeout is
    clamped to 5..1440 minutes instead of being rejected.
    """
    tenant = tenant or TenantContext.from_value(request.business_id)

    options = SchedulingPolicyService.upsert_policy(
        db,
        tenant.business_id,
        request.model_dump(exclude={"business_id"})
    )
    return SchedulingPolicyResponse(options=options)
