"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # Create clients table
    op.create_table(
        'clients',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('stripe_session_id', sa.String(), nullable=True),
        sa.Column('stripe_customer_id', sa.String(), nullable=True),
        sa.Column('amount_total', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(), nullable=True),
        sa.Column('tier_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clients_id', 'clients', ['id'])
    op.create_index('ix_clients_email', 'clients', ['email'])
    op.create_index('ix_clients_stripe_session_id', 'clients', ['stripe_session_id'])

    # Create leads table
    op.create_table(
        'leads',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='new'),
        sa.Column('stripe_session_id', sa.String(), nullable=True),
        sa.Column('payment_intent_id', sa.String(), nullable=True),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    # Garde-fou contre deux inscriptions simultanées sur le même email
    op.create_index('ix_leads_email', 'leads', ['email'], unique=True)
    op.create_index('ix_leads_stripe_session_id', 'leads', ['stripe_session_id'])

def downgrade():
    op.drop_index('ix_leads_stripe_session_id', 'leads')
    op.drop_index('ix_leads_email', 'leads')
    op.drop_table('leads')
    op.drop_index('ix_clients_stripe_session_id', 'clients')
    op.drop_index('ix_clients_email', 'clients')
    op.drop_index('ix_clients_id', 'clients')
    op.drop_table('clients')
