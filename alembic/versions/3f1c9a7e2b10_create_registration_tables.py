"""create_registration_tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Add registrations, attendance, monthly dues and admins."""

    op.create_table(
        'registrations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('gender', sa.String(length=16), nullable=False),
        sa.Column('metropolitan', sa.String(), nullable=True),
        sa.Column('area', sa.String(), nullable=True),
        sa.Column('district', sa.String(), nullable=True),
        sa.Column('assembly', sa.String(), nullable=True),
        sa.Column('shirt_size', sa.String(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('group_number', sa.Integer(), nullable=True),
        sa.Column('is_new_member', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "gender IN ('Male', 'Female')", name='registrations_gender_check'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_registrations_email'), 'registrations', ['email'], unique=True)
    op.create_index(op.f('ix_registrations_created_at'), 'registrations', ['created_at'], unique=False)

    attendance_status_enum = sa.Enum('Present', 'Absent', name='attendance_status_enum')

    op.create_table(
        'attendance',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('registration_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', attendance_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['registration_id'], ['registrations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('registration_id', 'date', name='uq_attendance_registration_date')
    )
    op.create_index(op.f('ix_attendance_date'), 'attendance', ['date'], unique=False)

    op.create_table(
        'monthly_dues',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('registration_id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.Date(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['registration_id'], ['registrations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('registration_id', 'month', name='uq_monthly_dues_registration_month')
    )
    op.create_index(op.f('ix_monthly_dues_month'), 'monthly_dues', ['month'], unique=False)

    op.create_table(
        'admins',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admins_email'), 'admins', ['email'], unique=True)


def downgrade() -> None:
    """Downgrade schema - Drop registration tables."""
    op.drop_index(op.f('ix_admins_email'), table_name='admins')
    op.drop_table('admins')
    op.drop_index(op.f('ix_monthly_dues_month'), table_name='monthly_dues')
    op.drop_table('monthly_dues')
    op.drop_index(op.f('ix_attendance_date'), table_name='attendance')
    op.drop_table('attendance')
    sa.Enum(name='attendance_status_enum').drop(op.get_bind(), checkfirst=True)
    op.drop_index(op.f('ix_registrations_created_at'), table_name='registrations')
    op.drop_index(op.f('ix_registrations_email'), table_name='registrations')
    op.drop_table('registrations')
