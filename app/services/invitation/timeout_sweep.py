# app/services/invitation/timeout_sweep.py
"""
Advances invitation chains past providers who never answered.

Only runs when scheduled (see INVITATION_TIMEOUT_SWEEP_ENABLED). A timed-out
invitation is declined through the same conditional update a provider decline
uses, so a provider answering at the same moment wins or loses cleanly.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import Conflict
from app.models.invitation import InvitationRecord, InvitationStatus
from app.schemas.scheduling_policy import SchedulingPolicyOptions
from app.services.invitation.invitation_service import InvitationService
from app.services.notification.notification_service import NotificationDispatcher
from app.services.scheduling.policy_service import SchedulingPolicyService

logger = logging.getLogger(__name__)

TIMED_OUT_NOTE = "Timed out"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(sent_at: Optional[datetime], timeout_minutes: int, now: datetime) -> bool:
    if sent_at is None:
        return False
    return _as_utc(now) >= _as_utc(sent_at) + timedelta(minutes=timeout_minutes)


def expire_stale_invitations(
        db: Session,
        now: Optional[datetime] = None,
        dispatcher: Optional[NotificationDispatcher] = None
) -> int:
    """Decline and advance every pending invitation past its business timeout"""
    now = now or datetime.now(timezone.utc)
    policies: Dict[UUID, SchedulingPolicyOptions] = {}

    pending: List[InvitationRecord] = db.query(InvitationRecord).filter(
        InvitationRecord.status == InvitationStatus.PENDING.value
    ).order_by(InvitationRecord.sent_at.asc()).all()

    expired = []
    for invitation in pending:
        if invitation.business_id not in policies:
            policies[invitation.business_id] = SchedulingPolicyService.get_policy(db, invitation.business_id)
        policy = policies[invitation.business_id]

        if not policy.requires_acceptance:
            continue
        if is_expired(invitation.sent_at, policy.accept_decline_timeout_minutes, now):
            expired.append(invitation.id)

    advanced = 0
    for invitation_id in expired:
        invitation = db.query(InvitationRecord).filter(InvitationRecord.id == invitation_id).first()
        if invitation is None or not invitation.is_pending():
            continue
        try:
            InvitationService.decline_and_advance(db, invitation, TIMED_OUT_NOTE, dispatcher, now)
            advanced += 1
        except Conflict:
            logger.info(f"Invitation {invitation_id} was answered before it timed out")

    if advanced:
        logger.info(f"Timed out {advanced} pending invitation(s)")
    return advanced
