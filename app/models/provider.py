# app/models/provider.py
"""
Provider Model - service professionals that bookings are assigned to
Providers are never hard-deleted; deactivation is a status change.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import enum
import uuid
from app.models.base import Base


class ProviderStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Provider(Base):
    __tablename__ = "service_providers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(UUID(as_uuid=True), nullable=True, unique=True, index=True)  # Auth identity

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    status = Column(String(20), default=ProviderStatus.ACTIVE.value, nullable=False)  # active, inactive, suspended
    invitation_priority = Column(Integer, default=0, nullable=False)  # Higher = contacted first

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or "Provider"

    def is_assignable(self) -> bool:
        return self.status == ProviderStatus.ACTIVE.value

    def __repr__(self):
        return f"<Provider(id={self.id}, business_id={self.business_id}, status={self.status})>"
