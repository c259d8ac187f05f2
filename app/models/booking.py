# ===== app/models/booking.py =====
from sqlalchemy import Column, String, Text, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.models.base import Base
import uuid


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)

    # NULL provider = sits in the unassigned folder
    provider_id = Column(UUID(as_uuid=True), ForeignKey("service_providers.id"), nullable=True, index=True)
    provider_name = Column(String(200), nullable=True)

    # Customer info
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)

    # Booking details
    service = Column(String, nullable=True)
    scheduled_date = Column(Date, nullable=True)
    scheduled_time = Column(String(8), nullable=True)  # HH:MM or HH:MM:SS
    address = Column(Text, nullable=True)
    apt_no = Column(String(50), nullable=True)
    total_price = Column(Numeric(10, 2), nullable=True)

    # Status tracking
    status = Column(String(20), default="pending")  # pending, confirmed, cancelled, completed
    assignment_source = Column(String(20), nullable=True)  # auto, invitation, grab, manual

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def reference(self) -> str:
        """Short customer-facing reference, e.g. BK1A2B3C"""
        return f"BK{str(self.id)[-6:].upper()}"
