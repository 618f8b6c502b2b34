"""initial front office schema

Revision ID: front_office_001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'front_office_001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=12, scale=2), nullable=nullable)


user_role = sa.Enum('ADMIN', 'RECEPTIONIST', name='userrole')
quote_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'EXPIRED', 'CONVERTED', name='quotestatus')
discount_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='discountstatus')
sale_status = sa.Enum('PENDING', 'COMPLETED', 'CANCELLED', name='salestatus')
payment_status = sa.Enum('PENDING', 'PARTIAL', 'PAID', name='paymentstatus')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('identification', sa.String(50), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_patients_identification', 'patients', ['identification'], unique=True)

    op.create_table(
        'lenses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('identifier', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand', sa.String(100), nullable=True),
        money('price'),
        *timestamps(),
    )
    op.create_index('ix_lenses_identifier', 'lenses', ['identifier'], unique=True)

    op.create_table(
        'discount_requests',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lens_id', sa.Integer(), sa.ForeignKey('lenses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=True),
        sa.Column('is_global', sa.Boolean(), nullable=False),
        sa.Column('status', discount_status, nullable=False),
        sa.Column('discount_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        money('original_price'),
        money('discounted_price'),
        sa.Column('reason', sa.String(500), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('approval_notes', sa.String(500), nullable=True),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_discount_requests_user_id', 'discount_requests', ['user_id'])
    op.create_index('ix_discount_requests_lens_id', 'discount_requests', ['lens_id'])
    op.create_index('ix_discount_requests_patient_id', 'discount_requests', ['patient_id'])
    op.create_index('ix_discount_requests_status', 'discount_requests', ['status'])

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quote_number', sa.String(50), nullable=False),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', quote_status, nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        money('subtotal'),
        money('tax'),
        money('discount'),
        money('total'),
        sa.Column('pdf_token', sa.String(1000), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_quotes_quote_number', 'quotes', ['quote_number'], unique=True)
    op.create_index('ix_quotes_patient_id', 'quotes', ['patient_id'])
    op.create_index('ix_quotes_status', 'quotes', ['status'])

    op.create_table(
        'quote_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lens_id', sa.Integer(), sa.ForeignKey('lenses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        money('price'),
        money('original_price'),
        money('discount'),
        sa.Column(
            'discount_request_id',
            sa.Integer(),
            sa.ForeignKey('discount_requests.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_quote_items_quote_id', 'quote_items', ['quote_id'])

    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sale_number', sa.String(50), nullable=False),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        money('subtotal'),
        money('tax'),
        money('discount'),
        money('total'),
        money('amount_paid'),
        money('balance'),
        sa.Column('status', sale_status, nullable=False),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_sales_sale_number', 'sales', ['sale_number'], unique=True)
    op.create_index('ix_sales_quote_id', 'sales', ['quote_id'], unique=True)

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lens_id', sa.Integer(), sa.ForeignKey('lenses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        money('price'),
        money('discount'),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])


def downgrade() -> None:
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('quote_items')
    op.drop_table('quotes')
    op.drop_table('discount_requests')
    op.drop_table('lenses')
    op.drop_table('patients')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (payment_status, sale_status, discount_status, quote_status, user_role):
        enum.drop(bind, checkfirst=True)
