"""scheduling and invitations

Revision ID: 5c2d8e41a7b3
Revises:
Create Date: 2026-02-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5c2d8e41a7b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column():
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'))


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)


def _business_fk(ondelete=None):
    return sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete=ondelete), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Tenants and their holidays
    op.create_table(
        'businesses',
        _id_column(),
        sa.Column('name', sa.String(200), nullable=False),
        _created_at(),
        _updated_at(),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=True)
    )

    op.create_table(
        'business_holidays',
        _id_column(),
        _business_fk(ondelete='CASCADE'),
        sa.Column('holiday_date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('recurring', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at()
    )
    op.create_index('ix_business_holidays_business_id', 'business_holidays', ['business_id'])

    # 2. Providers
    op.create_table(
        'service_providers',
        _id_column(),
        _business_fk(ondelete='CASCADE'),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('invitation_priority', sa.Integer(), server_default='0', nullable=False),
        _created_at(),
        _updated_at()
    )
    op.create_index('ix_service_providers_business_id', 'service_providers', ['business_id'])
    op.create_index('ix_service_providers_user_id', 'service_providers', ['user_id'], unique=True)

    # 3. Availability: weekly rules and date overrides
    op.create_table(
        'provider_availability',
        _id_column(),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('service_providers.id', ondelete='CASCADE'), nullable=False),
        _business_fk(),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(8), nullable=False),
        sa.Column('end_time', sa.String(8), nullable=False),
        sa.Column('is_available', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        _created_at()
    )
    op.create_index('ix_provider_availability_provider_id', 'provider_availability', ['provider_id'])
    op.create_index('ix_provider_availability_business_id', 'provider_availability', ['business_id'])

    op.create_table(
        'provider_availability_slots',
        _id_column(),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('service_providers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(8), nullable=False),
        sa.Column('end_time', sa.String(8), nullable=False),
        sa.Column('is_available', sa.Boolean(), server_default=sa.true(), nullable=False),
        _created_at()
    )
    op.create_index('ix_provider_availability_slots_provider_id', 'provider_availability_slots', ['provider_id'])
    op.create_index('ix_provider_availability_slots_slot_date', 'provider_availability_slots', ['slot_date'])

    # 4. Store options (one row per business)
    op.create_table(
        'business_store_options',
        _id_column(),
        _business_fk(ondelete='CASCADE'),
        sa.Column('scheduling_type', sa.String(40), nullable=True),
        sa.Column('accept_decline_timeout_minutes', sa.Integer(), nullable=True),
        sa.Column('holiday_blocked_who', sa.String(20), nullable=True),
        sa.Column('providers_can_see_unassigned', sa.Boolean(), nullable=True),
        sa.Column('providers_can_see_all_unassigned', sa.Boolean(), nullable=True),
        sa.Column('notify_providers_on_unassigned', sa.Boolean(), nullable=True),
        sa.Column('waitlist_enabled', sa.Boolean(), nullable=True),
        sa.Column('clock_in_out_enabled', sa.Boolean(), nullable=True),
        _created_at(),
        _updated_at()
    )
    op.create_index('ix_business_store_options_business_id', 'business_store_options', ['business_id'], unique=True)

    # 5. Bookings
    op.create_table(
        'bookings',
        _id_column(),
        _business_fk(),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('service_providers.id'), nullable=True),
        sa.Column('provider_name', sa.String(200), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('customer_email', sa.String(), nullable=True),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('service', sa.String(), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('scheduled_time', sa.String(8), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('apt_no', sa.String(50), nullable=True),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(20), server_default='pending', nullable=True),
        sa.Column('assignment_source', sa.String(20), nullable=True),
        _created_at(),
        _updated_at()
    )
    op.create_index('ix_bookings_business_id', 'bookings', ['business_id'])
    op.create_index('ix_bookings_provider_id', 'bookings', ['provider_id'])
    op.create_index('idx_bookings_unassigned', 'bookings', ['business_id', 'scheduled_date'],
                    postgresql_where=sa.text('provider_id IS NULL'))

    # 6. Invitation chain
    op.create_table(
        'provider_booking_invitations',
        _id_column(),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('service_providers.id'), nullable=False),
        _business_fk(),
        sa.Column('status', sa.String(20), server_default='pending', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_notes', sa.Text(), nullable=True),
        sa.UniqueConstraint('booking_id', 'provider_id', name='uq_invitation_booking_provider')
    )
    op.create_index('ix_provider_booking_invitations_booking_id', 'provider_booking_invitations', ['booking_id'])
    op.create_index('ix_provider_booking_invitations_provider_id', 'provider_booking_invitations', ['provider_id'])
    op.create_index('ix_provider_booking_invitations_business_id', 'provider_booking_invitations', ['business_id'])
    op.create_index('ix_provider_booking_invitations_status', 'provider_booking_invitations', ['status'])
    # At most one open offer per booking
    op.create_index('uq_invitation_one_pending_per_booking', 'provider_booking_invitations', ['booking_id'],
                    unique=True, postgresql_where=sa.text("status = 'pending'"))

    # 7. Admin notifications
    op.create_table(
        'admin_notifications',
        _id_column(),
        _business_fk(),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(500), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), server_default=sa.false(), nullable=False),
        _created_at()
    )
    op.create_index('ix_admin_notifications_business_id', 'admin_notifications', ['business_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('admin_notifications')
    op.drop_table('provider_booking_invitations')
    op.drop_table('bookings')
    op.drop_table('business_store_options')
    op.drop_table('provider_availability_slots')
    op.drop_table('provider_availability')
    op.drop_table('service_providers')
    op.drop_table('business_holidays')
    op.drop_table('businesses')
