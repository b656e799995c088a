"""create_booking_tables

Revision ID: a1c4e7b20f93
Revises:
Create Date: 2026-01-02 10:12:41.508113

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c4e7b20f93'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Weekly working hours, 0=Sunday ... 6=Saturday
    op.create_table('working_hours',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_working_hours_day_of_week'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('day_of_week')
    )

    op.create_table('blocked_dates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('blocked_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_blocked_dates_blocked_date'), 'blocked_dates', ['blocked_date'], unique=True)

    op.create_table('admin_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('appointment_duration_minutes', sa.Integer(), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False),
        sa.Column('advance_booking_days', sa.Integer(), nullable=False),
        sa.Column('timezone', sa.String(length=50), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('appointment_duration_minutes > 0', name='ck_admin_settings_duration'),
        sa.CheckConstraint('buffer_minutes >= 0', name='ck_admin_settings_buffer'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('guest_name', sa.String(), nullable=False),
        sa.Column('guest_email', sa.String(), nullable=False),
        sa.Column('guest_phone', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.Time(), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timezone', sa.String(length=50), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('meeting_id', sa.String(), nullable=True),
        sa.Column('meeting_join_url', sa.String(), nullable=True),
        sa.Column('meeting_start_url', sa.String(), nullable=True),
        sa.Column('meeting_password', sa.String(), nullable=True),
        sa.Column('cancel_token', sa.String(length=128), nullable=False),
        sa.Column('reminder_24h_sent', sa.Boolean(), nullable=False),
        sa.Column('reminder_1h_sent', sa.Boolean(), nullable=False),
        sa.Column('rescheduled_from_id', sa.Uuid(), nullable=True),
        sa.Column('rescheduled_to_id', sa.Uuid(), nullable=True),
        sa.Column('assessment_id', sa.String(), nullable=True),
        sa.Column('bos_submission_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_appointments_cancel_token'), 'appointments', ['cancel_token'], unique=True)
    op.create_index('idx_appointments_status_starts_at', 'appointments', ['status', 'starts_at'], unique=False)

    # One live booking per slot start; cancelled rows do not hold the slot
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['appointment_date', 'appointment_time'],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'")
    )


def downgrade() -> None:
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_index('idx_appointments_status_starts_at', table_name='appointments')
    op.drop_index(op.f('ix_appointments_cancel_token'), table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('admin_settings')
    op.drop_index(op.f('ix_blocked_dates_blocked_date'), table_name='blocked_dates')
    op.drop_table('blocked_dates')
    op.drop_table('working_hours')
