# ============================================================================
# FILE: app/models/invitation.py
# One row per (booking, provider) offer in the sequential invitation chain
# ============================================================================
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import enum
import uuid

from app.models.base import Base


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class InvitationRecord(Base):
    __tablename__ = "provider_booking_invitations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_id = Column(
        UUID(as_uuid=True),
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    provider_id = Column(UUID(as_uuid=True), ForeignKey("service_providers.id"), nullable=False, index=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)

    status = Column(String(20), default=InvitationStatus.PENDING.value, nullable=False, index=True)
    sort_order = Column(Integer, default=0, nullable=False)  # Attempt sequence within the booking

    sent_at = Column(DateTime(timezone=True), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    response_notes = Column(Text, nullable=True)

    # A provider is offered a given booking at most once
    __table_args__ = (
        UniqueConstraint("booking_id", "provider_id", name="uq_invitation_booking_provider"),
        # At most one open offer per booking
        Index(
            "uq_invitation_one_pending_per_booking",
            "booking_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING.value

    def __repr__(self):
        return f"<InvitationRecord(booking={self.booking_id}, provider={self.provider_id}, status={self.status})>"
