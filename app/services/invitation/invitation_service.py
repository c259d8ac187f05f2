# ============================================================================
# FILE: app/services/invitation/invitation_service.py
# Persists the invitation chain and hands transition events to the dispatcher
# ============================================================================
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, InvalidInput, NotFound, PermissionDenied
from app.core.tenant import TenantContext
from app.models.booking import Booking
from app.models.invitation import InvitationRecord, InvitationStatus
from app.models.provider import Provider, ProviderStatus
from app.services.booking.booking_service import BookingService
from app.services.invitation import state_machine
from app.services.invitation.state_machine import CandidateProvider, ChainState, Transition
from app.services.notification.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

SUPERSEDED_NOTE = "Superseded: booking assigned"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_uuid(value: Any, label: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidInput(f"Invalid {label}")


class InvitationService:
    """Service layer for the accept/decline invitation chain"""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def active_candidates(db: Session, business_id: UUID) -> List[CandidateProvider]:
        providers: List[Provider] = db.query(Provider).filter(
            Provider.business_id == business_id,
            Provider.status == ProviderStatus.ACTIVE.value
        ).order_by(
            Provider.invitation_priority.desc(),
            Provider.created_at.asc()
        ).all()
        return [CandidateProvider.from_provider(p) for p in providers]

    @staticmethod
    def invitations_for_booking(db: Session, business_id: UUID, booking_id: UUID) -> List[InvitationRecord]:
        return db.query(InvitationRecord).filter(
            InvitationRecord.booking_id == booking_id,
            InvitationRecord.business_id == business_id
        ).order_by(InvitationRecord.sort_order.asc()).all()

    @staticmethod
    def list_pending_for_provider(db: Session, provider: Provider) -> List[Dict[str, Any]]:
        """Pending invitations for a provider, newest first, with booking details"""
        rows: List[InvitationRecord] = db.query(InvitationRecord).filter(
            InvitationRecord.provider_id == provider.id,
            InvitationRecord.business_id == provider.business_id,
            InvitationRecord.status == InvitationStatus.PENDING.value
        ).order_by(InvitationRecord.sent_at.desc()).all()

        if not rows:
            return []

        booking_ids = {row.booking_id for row in rows}
        bookings = {
            b.id: b for b in db.query(Booking).filter(
                Booking.id.in_(booking_ids),
                Booking.business_id == provider.business_id
            ).all()
        }

        result = []
        for row in rows:
            item: Dict[str, Any] = {
                "id": str(row.id),
                "booking_id": str(row.booking_id),
                "status": row.status,
                "sent_at": row.sent_at.isoformat() if row.sent_at else None,
            }
            booking = bookings.get(row.booking_id)
            if booking:
                summary = BookingService.to_summary(booking)
                item.update({
                    "service": summary["service"],
                    "date": summary["scheduled_date"],
                    "time": summary["scheduled_time"],
                    "address": summary["address"],
                    "apt_no": summary["apt_no"],
                    "total_price": summary["total_price"],
                    "customer_name": summary["customer_name"],
                    "customer_phone": summary["customer_phone"],
                })
            result.append(item)
        return result

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    @staticmethod
    def start_invitation(
            db: Session,
            tenant: TenantContext,
            booking: Booking,
            dispatcher: Optional[NotificationDispatcher] = None,
            now: Optional[datetime] = None
    ) -> Transition:
        """
        Offer an unassigned booking to the top-priority active provider.

        Returns a PENDING transition without a next_provider when an
        invitation is already pending for the booking.
        """
        existing = InvitationService.invitations_for_booking(db, tenant.business_id, booking.id)
        if any(row.status == InvitationStatus.PENDING.value for row in existing):
            logger.info(f"Invitation already pending for booking {booking.id}")
            return Transition(state=ChainState.PENDING)

        transition = state_machine.start_chain(
            booking.id,
            InvitationService.active_candidates(db, tenant.business_id),
            [row.provider_id for row in existing],
        )

        if transition.next_provider is not None:
            InvitationService._insert_pending(
                db, tenant, booking.id, transition.next_provider, len(existing), now
            )
            InvitationService._commit_or_conflict(db, booking.id)
            logger.info(f"Booking {booking.id} offered to provider {transition.next_provider.id}")
        else:
            logger.warning(f"No active providers to invite for booking {booking.id}")

        InvitationService._dispatch(db, tenant, transition, dispatcher)
        return transition

    # ------------------------------------------------------------------
    # Provider responses
    # ------------------------------------------------------------------

    @staticmethod
    def get_owned_pending(db: Session, provider: Provider, invitation_id: Any) -> InvitationRecord:
        """
        Load an invitation the provider may respond to.

        Raises NotFound (absent or other business), PermissionDenied
        (addressed to someone else) or Conflict (already responded).
        """
        invitation_uuid = _parse_uuid(invitation_id, "invitationId")
        invitation = db.query(InvitationRecord).filter(
            InvitationRecord.id == invitation_uuid,
            InvitationRecord.business_id == provider.business_id
        ).first()

        if not invitation:
            raise NotFound("Invitation not found or already responded")
        if invitation.provider_id != provider.id:
            raise PermissionDenied("Invitation is addressed to a different provider")
        if not invitation.is_pending():
            raise Conflict("Invitation not found or already responded")
        return invitation

    @staticmethod
    def _mark_responded(
            db: Session,
            invitation: InvitationRecord,
            status: InvitationStatus,
            notes: Optional[str],
            now: datetime
    ) -> None:
        """Conditional update: only a row still pending moves on"""
        updated = db.query(InvitationRecord).filter(
            InvitationRecord.id == invitation.id,
            InvitationRecord.provider_id == invitation.provider_id,
            InvitationRecord.business_id == invitation.business_id,
            InvitationRecord.status == InvitationStatus.PENDING.value
        ).update(
            {
                InvitationRecord.status: status.value,
                InvitationRecord.responded_at: now,
                InvitationRecord.response_notes: notes,
            },
            synchronize_session=False
        )
        if updated == 0:
            db.rollback()
            raise Conflict("Invitation not found or already responded")

    @staticmethod
    def accept_invitation(
            db: Session,
            provider: Provider,
            invitation_id: Any,
            notes: Optional[str] = None,
            dispatcher: Optional[NotificationDispatcher] = None,
            now: Optional[datetime] = None
    ) -> Transition:
        """Accept a pending invitation and assign the booking to the provider"""
        now = now or _utcnow()
        tenant = TenantContext(business_id=provider.business_id)
        invitation = InvitationService.get_owned_pending(db, provider, invitation_id)

        already_accepted = db.query(InvitationRecord.id).filter(
            InvitationRecord.booking_id == invitation.booking_id,
            InvitationRecord.business_id == tenant.business_id,
            InvitationRecord.status == InvitationStatus.ACCEPTED.value
        ).first()
        if already_accepted:
            raise Conflict("Booking already accepted by another provider")

        InvitationService._mark_responded(db, invitation, InvitationStatus.ACCEPTED, notes, now)

        InvitationService.close_pending(db, tenant, invitation.booking_id, now)

        assigned = BookingService.assign_provider(
            db, tenant, invitation.booking_id, provider, "invitation", only_if_unassigned=True
        )
        if not assigned:
            db.rollback()
            raise Conflict("Booking is already assigned")
        db.commit()

        transition = state_machine.accept(invitation.booking_id, CandidateProvider.from_provider(provider))
        logger.info(f"Provider {provider.id} accepted invitation {invitation.id}")

        InvitationService._dispatch(db, tenant, transition, dispatcher)
        return transition

    @staticmethod
    def decline_invitation(
            db: Session,
            provider: Provider,
            invitation_id: Any,
            notes: Optional[str] = None,
            dispatcher: Optional[NotificationDispatcher] = None,
            now: Optional[datetime] = None
    ) -> Transition:
        """Decline a pending invitation and offer the booking to the next provider"""
        invitation = InvitationService.get_owned_pending(db, provider, invitation_id)
        return InvitationService.decline_and_advance(db, invitation, notes, dispatcher, now)

    @staticmethod
    def decline_and_advance(
            db: Session,
            invitation: InvitationRecord,
            notes: Optional[str] = None,
            dispatcher: Optional[NotificationDispatcher] = None,
            now: Optional[datetime] = None
    ) -> Transition:
        """
        Mark a pending invitation declined and invite the next candidate.

        Shared by provider declines and the timeout sweep. The decline and the
        next invitation commit together; a concurrent response on the same
        invitation raises Conflict instead of advancing twice.
        """
        now = now or _utcnow()
        tenant = TenantContext(business_id=invitation.business_id)
        booking_id = invitation.booking_id

        declining = db.query(Provider).filter(Provider.id == invitation.provider_id).first()
        declining_candidate = (
            CandidateProvider.from_provider(declining) if declining
            else CandidateProvider(id=invitation.provider_id)
        )

        InvitationService._mark_responded(db, invitation, InvitationStatus.DECLINED, notes, now)

        # Assigned outside the chain (grab-job, admin): nothing left to offer
        assigned_to = db.query(Booking.provider_id).filter(
            Booking.id == booking_id,
            Booking.business_id == tenant.business_id
        ).scalar()
        if assigned_to is not None:
            InvitationService._commit_or_conflict(db, booking_id)
            logger.info(f"Booking {booking_id} already assigned to {assigned_to}; chain closed")
            return Transition(state=ChainState.ASSIGNED)

        invited = InvitationService.invitations_for_booking(db, tenant.business_id, booking_id)
        transition = state_machine.decline(
            booking_id,
            declining_candidate,
            InvitationService.active_candidates(db, tenant.business_id),
            [row.provider_id for row in invited],
        )

        if transition.next_provider is not None:
            InvitationService._insert_pending(
                db, tenant, booking_id, transition.next_provider, len(invited), now
            )
        InvitationService._commit_or_conflict(db, booking_id)

        if transition.state == ChainState.EXHAUSTED:
            logger.warning(f"Invitation chain exhausted for booking {booking_id}")
        else:
            logger.info(f"Booking {booking_id} offered to provider {transition.next_provider.id}")

        InvitationService._dispatch(db, tenant, transition, dispatcher)
        return transition

    @staticmethod
    def respond(
            db: Session,
            provider: Provider,
            invitation_id: Any,
            action: str,
            notes: Optional[str] = None,
            dispatcher: Optional[NotificationDispatcher] = None
    ) -> Transition:
        if action == "accept":
            return InvitationService.accept_invitation(db, provider, invitation_id, notes, dispatcher)
        if action == "decline":
            return InvitationService.decline_invitation(db, provider, invitation_id, notes, dispatcher)
        raise InvalidInput("Invalid invitationId or action")

    @staticmethod
    def close_pending(
            db: Session,
            tenant: TenantContext,
            booking_id: UUID,
            now: Optional[datetime] = None
    ) -> int:
        """Decline every still-pending offer for a booking that now has a provider. Does not commit."""
        return db.query(InvitationRecord).filter(
            InvitationRecord.booking_id == booking_id,
            InvitationRecord.business_id == tenant.business_id,
            InvitationRecord.status == InvitationStatus.PENDING.value
        ).update(
            {
                InvitationRecord.status: InvitationStatus.DECLINED.value,
                InvitationRecord.responded_at: now or _utcnow(),
                InvitationRecord.response_notes: SUPERSEDED_NOTE,
            },
            synchronize_session=False
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _insert_pending(
            db: Session,
            tenant: TenantContext,
            booking_id: UUID,
            candidate: CandidateProvider,
            sort_order: int,
            now: Optional[datetime]
    ) -> InvitationRecord:
        record = InvitationRecord(
            booking_id=booking_id,
            provider_id=candidate.id,
            business_id=tenant.business_id,
            status=InvitationStatus.PENDING.value,
            sort_order=sort_order,
            sent_at=now or _utcnow(),
        )
        db.add(record)
        return record

    @staticmethod
    def _commit_or_conflict(db: Session, booking_id: UUID) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.error(f"Invitation write rejected for booking {booking_id}: {e}")
            raise Conflict("Invitation chain changed concurrently; please retry")

    @staticmethod
    def _dispatch(
            db: Session,
            tenant: TenantContext,
            transition: Transition,
            dispatcher: Optional[NotificationDispatcher]
    ) -> None:
        if not transition.events:
            return
        dispatcher = dispatcher or NotificationDispatcher(db)
        try:
            dispatcher.dispatch(tenant, transition.events)
        except Exception as e:
            logger.error(f"Notification dispatch failed for business {tenant.business_id}: {e}")
