"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('updated_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('deleted_at', sa.DateTime()),
        sa.Column('deleted_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100)),
        sa.Column('last_name', sa.String(100)),
        sa.Column('role', sa.Enum('ADMIN', 'MANAGER', 'VIEWER', name='userrole'), server_default='VIEWER'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create customers table
    op.create_table(
        'customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('inn', sa.String(20)),
        sa.Column('contract_number', sa.String(100)),
        sa.Column('contact_person', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('email', sa.String(255)),
        sa.Column('module', sa.String(20), nullable=False, server_default='both'),
        sa.Column('is_intermediary', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_foreign', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_audit_columns(),
    )

    # Create delivery_cost table
    op.create_table(
        'delivery_cost',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('carrier_name', sa.String(255), nullable=False),
        sa.Column('from_entity_type', sa.String(50), nullable=False),
        sa.Column('from_entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('from_location', sa.String(255), nullable=False),
        sa.Column('to_entity_type', sa.String(50), nullable=False),
        sa.Column('to_entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('to_location', sa.String(255), nullable=False),
        sa.Column('cost_per_kg', sa.Numeric(12, 4), nullable=False),
        sa.Column('distance', sa.Numeric(10, 2)),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_audit_columns(),
    )

    # Create audit_log table
    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('operation', sa.String(10), nullable=False),
        sa.Column('old_data', sa.JSON()),
        sa.Column('new_data', sa.JSON()),
        sa.Column('changed_fields', sa.JSON()),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('actor_name', sa.String(255)),
        sa.Column('actor_email', sa.String(255)),
        sa.Column('ip_address', sa.String(50)),
        sa.Column('user_agent', sa.Text()),
        sa.Column('provenance', sa.String(10), nullable=False, server_default='USER'),
        sa.Column('rollback_of_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('audit_log.id')),
        sa.Column('transaction_id', postgresql.UUID(as_uuid=True)),
        sa.Column('rolled_back_at', sa.DateTime()),
        sa.Column('rolled_back_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_deleted_at', 'customers', ['deleted_at'])
    op.create_index('ix_delivery_cost_deleted_at', 'delivery_cost', ['deleted_at'])
    op.create_index('audit_log_entity_created_idx', 'audit_log', ['entity_type', 'entity_id', 'created_at'])
    op.create_index('ix_audit_log_created_at', 'audit_log', ['created_at'])
    op.create_index('ix_audit_log_actor_id', 'audit_log', ['actor_id'])
    op.create_index('ix_audit_log_operation', 'audit_log', ['operation'])


def downgrade() -> None:
    op.drop_table('audit_log')
    op.drop_table('delivery_cost')
    op.drop_table('customers')
    op.drop_table('users')
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
