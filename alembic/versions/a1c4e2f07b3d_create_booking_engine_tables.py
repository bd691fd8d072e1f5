"""create booking engine tables

Revision ID: a1c4e2f07b3d
Revises:
Create Date: 2026-10-19 09:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1c4e2f07b3d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SINGLE_SCOPE = "(business_id IS NULL) <> (staff_member_id IS NULL)"


def _minutes(column: str) -> str:
    return f"(split_part({column}, ':', 1)::int * 60 + split_part({column}, ':', 2)::int)"


def upgrade() -> None:
    """Upgrade schema."""

    # 1. businesses
    op.create_table(
        'businesses',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('business_type', sa.String(50), nullable=False, server_default='other'),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('booking_link_slug', sa.String(255), nullable=False, unique=True),
        sa.Column('booking_advance_days', sa.Integer, server_default='30'),
        sa.Column('cancellation_hours', sa.Integer, server_default='24'),
        sa.Column('require_phone', sa.Boolean, server_default=sa.false()),
        sa.Column('require_deposit', sa.Boolean, server_default=sa.false()),
        sa.Column('deposit_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_businesses_booking_link_slug', 'businesses', ['booking_link_slug'])

    # 2. staff_members
    op.create_table(
        'staff_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_staff_members_business_id', 'staff_members', ['business_id'])

    # 3. services
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('capacity', sa.Integer, nullable=False, server_default='1'),
        sa.Column('requires_staff', sa.Boolean, server_default=sa.false()),
        sa.Column('buffer_before_minutes', sa.Integer, server_default='0'),
        sa.Column('buffer_after_minutes', sa.Integer, server_default='0'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.CheckConstraint('capacity >= 1', name='ck_services_capacity_min'),
    )
    op.create_index('ix_services_business_id', 'services', ['business_id'])
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 4. staff_services (capability set)
    op.create_table(
        'staff_services',
        sa.Column('staff_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_members.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.UniqueConstraint('staff_member_id', 'service_id', name='uq_staff_service'),
    )

    # 5. availability_rules / availability_overrides
    op.create_table(
        'availability_rules',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=True),
        sa.Column('staff_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_members.id', ondelete='CASCADE'), nullable=True),
        sa.Column('day_of_week', sa.Integer, nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint(SINGLE_SCOPE, name='ck_availability_rules_single_scope'),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_rules_weekday'),
    )
    op.create_index('ix_availability_rules_business_id', 'availability_rules', ['business_id'])
    op.create_index('ix_availability_rules_staff_member_id', 'availability_rules', ['staff_member_id'])

    op.create_table(
        'availability_overrides',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=True),
        sa.Column('staff_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_members.id', ondelete='CASCADE'), nullable=True),
        sa.Column('date', sa.Date, nullable=False),
        sa.Column('is_available', sa.Boolean, nullable=False),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint(SINGLE_SCOPE, name='ck_availability_overrides_single_scope'),
    )
    op.create_index('ix_availability_overrides_date', 'availability_overrides', ['date'])
    op.create_index('ix_availability_overrides_business_id', 'availability_overrides', ['business_id'])
    op.create_index('ix_availability_overrides_staff_member_id', 'availability_overrides', ['staff_member_id'])

    # 6. bookings
    op.create_table(
        'bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
        sa.Column('staff_member_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_members.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('booking_date', sa.Date, nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('party_size', sa.Integer, nullable=False, server_default='1'),
        sa.Column('special_requests', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('deposit_paid', sa.Numeric(10, 2), server_default='0'),
        sa.Column('payment_status', sa.String(20), server_default='pending'),
        sa.Column('confirmation_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.String(255), nullable=True),
        sa.CheckConstraint('party_size >= 1', name='ck_bookings_party_size_min'),
    )
    op.create_index('ix_bookings_business_id', 'bookings', ['business_id'])
    op.create_index('ix_bookings_service_id', 'bookings', ['service_id'])
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])

    # Ledger-level guard: one staff member cannot hold two overlapping active bookings
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist;")
    op.execute(f"""
        ALTER TABLE bookings ADD CONSTRAINT ex_bookings_staff_no_overlap
        EXCLUDE USING gist (
            staff_member_id WITH =,
            booking_date WITH =,
            int4range({_minutes('start_time')}, {_minutes('end_time')}) WITH &&
        ) WHERE (staff_member_id IS NOT NULL AND status IN ('pending', 'confirmed'));
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_staff_no_overlap;")

    op.drop_index('ix_bookings_booking_date', 'bookings')
    op.drop_index('ix_bookings_service_id', 'bookings')
    op.drop_index('ix_bookings_business_id', 'bookings')
    op.drop_table('bookings')

    op.drop_index('ix_availability_overrides_staff_member_id', 'availability_overrides')
    op.drop_index('ix_availability_overrides_business_id', 'availability_overrides')
    op.drop_index('ix_availability_overrides_date', 'availability_overrides')
    op.drop_table('availability_overrides')

    op.drop_index('ix_availability_rules_staff_member_id', 'availability_rules')
    op.drop_index('ix_availability_rules_business_id', 'availability_rules')
    op.drop_table('availability_rules')

    op.drop_table('staff_services')

    op.drop_index('ix_services_is_active', 'services')
    op.drop_index('ix_services_business_id', 'services')
    op.drop_table('services')

    op.drop_index('ix_staff_members_business_id', 'staff_members')
    op.drop_table('staff_members')

    op.drop_index('ix_businesses_booking_link_slug', 'businesses')
    op.drop_table('businesses')
