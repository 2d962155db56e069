"""Initial database schema

Revision ID: 0001
Revises:
Create Date: 2026-03-01 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

BOOKING_STATUSES = "'pending', 'confirmed', 'completed', 'cancelled', 'cancel-requested'"


def _booking_columns() -> list[sa.Column]:
    """Columns shared by bookings and their archived snapshots."""
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('number_of_people', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('contact_phone', sa.String(length=32), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    # Create profiles table
    op.create_table('profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=128), nullable=True),
        sa.Column('last_name', sa.String(length=128), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=32), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_profiles_role'), 'profiles', ['role'], unique=False)

    # Create tours table
    op.create_table('tours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('duration', sa.String(length=64), nullable=False),
        sa.Column('image', sa.Text(), nullable=False),
        sa.Column('sub_images', sa.JSON(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('max_capacity', sa.Integer(), nullable=False),
        sa.Column('available', sa.Boolean(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.CheckConstraint('price > 0', name='ck_tour_price_positive'),
        sa.CheckConstraint('max_capacity >= 0', name='ck_tour_max_capacity_non_negative'),
        sa.CheckConstraint('length(title) > 0', name='ck_tour_title_not_empty'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tours_created_at'), 'tours', ['created_at'], unique=False)
    op.create_index(op.f('ix_tours_title'), 'tours', ['title'], unique=False)
    op.create_index(op.f('ix_tours_type'), 'tours', ['type'], unique=False)
    op.create_index(op.f('ix_tours_location'), 'tours', ['location'], unique=False)
    op.create_index(op.f('ix_tours_available'), 'tours', ['available'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        *_booking_columns(),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.CheckConstraint('number_of_people > 0', name='ck_booking_people_positive'),
        sa.CheckConstraint('total_price >= 0', name='ck_booking_total_price_non_negative'),
        sa.CheckConstraint(f'status IN ({BOOKING_STATUSES})', name='ck_booking_status_valid'),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)
    op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_tour_id'), 'bookings', ['tour_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)

    # Create bookings_backup table; no foreign key so snapshots outlive their tour
    op.create_table('bookings_backup',
        *_booking_columns(),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('archived_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_backup_created_at'), 'bookings_backup', ['created_at'], unique=False)
    op.create_index(op.f('ix_bookings_backup_user_id'), 'bookings_backup', ['user_id'], unique=False)
    op.create_index(op.f('ix_bookings_backup_tour_id'), 'bookings_backup', ['tour_id'], unique=False)
    op.create_index(op.f('ix_bookings_backup_status'), 'bookings_backup', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('bookings_backup')
    op.drop_table('bookings')
    op.drop_table('tours')
    op.drop_index(op.f('ix_profiles_role'), table_name='profiles')
    op.drop_table('profiles')
