"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('photo_url', sa.String(length=1024), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('email', name='users_email_key'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=False)
    op.create_index('ix_users_role', 'users', ['role'], unique=False)

    op.create_table('vehicle_templates',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('origin', sa.String(length=32), nullable=False),
        sa.Column('destination', sa.String(length=32), nullable=False),
        sa.Column('departure_time', sa.String(length=8), nullable=False),
        sa.Column('arrival_time', sa.String(length=8), nullable=False),
        sa.Column('vehicle_type', sa.String(length=16), nullable=False),
        sa.Column('vehicle_number', sa.String(length=64), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('owner_name', sa.String(length=255), nullable=True),
        sa.Column('owner_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table('rides',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('template_id', sa.String(length=64), nullable=True),
        sa.Column('origin', sa.String(length=32), nullable=False),
        sa.Column('destination', sa.String(length=32), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('departure_time', sa.String(length=8), nullable=False),
        sa.Column('arrival_time', sa.String(length=8), nullable=False),
        sa.Column('vehicle_type', sa.String(length=16), nullable=False),
        sa.Column('vehicle_number', sa.String(length=64), nullable=False),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('owner_name', sa.String(length=255), nullable=True),
        sa.Column('owner_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['vehicle_templates.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('template_id', 'date', name='uq_ride_template_date'),
    )
    op.create_index('ix_rides_template_id', 'rides', ['template_id'], unique=False)
    op.create_index('ix_rides_origin', 'rides', ['origin'], unique=False)
    op.create_index('ix_rides_destination', 'rides', ['destination'], unique=False)
    op.create_index('ix_rides_date', 'rides', ['date'], unique=False)

    op.create_table('ride_seats',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ride_id', sa.String(length=64), nullable=False),
        sa.Column('seat_number', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='available'),
        sa.ForeignKeyConstraint(['ride_id'], ['rides.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('ride_id', 'seat_number', name='uq_ride_seat_number'),
    )
    op.create_index('ix_ride_seats_ride_id', 'ride_seats', ['ride_id'], unique=False)

    # ride_id/user_id are plain columns: bookings outlive deleted rides and users
    op.create_table('bookings',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('ride_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('seats', sa.JSON(), nullable=False),
        sa.Column('passenger_name', sa.String(length=255), nullable=False),
        sa.Column('passenger_phone', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='confirmed'),
        sa.Column('payment_method', sa.String(length=16), nullable=True),
        sa.Column('transaction_id', sa.String(length=128), nullable=True),
        sa.Column('payment_screenshot_url', sa.String(length=1024), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_bookings_ticket_number', 'bookings', ['ticket_number'], unique=True)
    op.create_index('ix_bookings_ride_id', 'bookings', ['ride_id'], unique=False)
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'], unique=False)
    op.create_index('ix_bookings_status', 'bookings', ['status'], unique=False)
    op.create_index('ix_bookings_ride_status', 'bookings', ['ride_id', 'status'], unique=False)

    op.create_table('site_settings',
        sa.Column('key', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=255), nullable=False),
        sa.Column('object_type', sa.String(length=128), nullable=True),
        sa.Column('object_id', sa.String(length=128), nullable=True),
        sa.Column('detail', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'], unique=False)


def downgrade():
    op.drop_index('ix_audit_logs_actor_id', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_table('site_settings')
    op.drop_index('ix_bookings_ride_status', table_name='bookings')
    op.drop_index('ix_bookings_status', table_name='bookings')
    op.drop_index('ix_bookings_user_id', table_name='bookings')
    op.drop_index('ix_bookings_ride_id', table_name='bookings')
    op.drop_index('ix_bookings_ticket_number', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('ix_ride_seats_ride_id', table_name='ride_seats')
    op.drop_table('ride_seats')
    op.drop_index('ix_rides_date', table_name='rides')
    op.drop_index('ix_rides_destination', table_name='rides')
    op.drop_index('ix_rides_origin', table_name='rides')
    op.drop_index('ix_rides_template_id', table_name='rides')
    op.drop_table('rides')
    op.drop_table('vehicle_templates')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
