"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-01-05 00:00:00.000000

Creates the MonCoeur schema:
- users / session_tokens: back-office accounts and bearer sessions
- bank_accounts: attribution labels for purchases and sales
- bags: stock items with staged sale fields
- reference_sequences: per-year counter behind MC-{year}-{NNNNN}
- sales: one sale per bag with computed margin
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='seller'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=True)
        batch_op.create_index('ix_users_role_active', ['role', 'is_active'], unique=False)

    # ============================================================================
    # session_tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)
        batch_op.create_index('ix_session_tokens_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_session_tokens_is_revoked', ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ============================================================================
    # bank_accounts
    # ============================================================================
    op.create_table(
        'bank_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('label'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # bags
    # ============================================================================
    op.create_table(
        'bags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(length=32), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('model', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.Column('condition', sa.String(length=32), nullable=False),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('purchase_price', sa.Float(), nullable=False),
        sa.Column('purchase_platform', sa.String(length=32), nullable=False),
        sa.Column('purchase_bank_account_id', sa.Integer(), nullable=False),
        sa.Column('refurbishment_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('refurbishment_provider', sa.String(length=128), nullable=True),
        sa.Column('refurbishment_notes', sa.Text(), nullable=True),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sale_price', sa.Float(), nullable=True),
        sa.Column('sale_platform', sa.String(length=32), nullable=True),
        sa.Column('sale_notes', sa.Text(), nullable=True),
        sa.Column('photos', sa.JSON(), nullable=False),
        sa.Column('qr_code_url', sa.String(length=512), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='en_commande'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.CheckConstraint('purchase_price >= 0', name='ck_bags_purchase_price_nonneg'),
        sa.CheckConstraint('refurbishment_cost >= 0', name='ck_bags_refurbishment_cost_nonneg'),
        sa.CheckConstraint('sale_price IS NULL OR sale_price >= 0', name='ck_bags_sale_price_nonneg'),
        sa.ForeignKeyConstraint(['purchase_bank_account_id'], ['bank_accounts.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('bags', schema=None) as batch_op:
        batch_op.create_index('ix_bags_status', ['status'], unique=False)
        batch_op.create_index('ix_bags_brand', ['brand'], unique=False)
        batch_op.create_index('ix_bags_purchase_bank_account', ['purchase_bank_account_id'], unique=False)
        batch_op.create_index('ix_bags_created_at', ['created_at'], unique=False)

    # ============================================================================
    # reference_sequences
    # ============================================================================
    op.create_table(
        'reference_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('year', name='uq_reference_sequences_year'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bag_id', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sale_price', sa.Float(), nullable=False),
        sa.Column('sale_platform', sa.String(length=32), nullable=False),
        sa.Column('platform_fees', sa.Float(), nullable=False, server_default='0'),
        sa.Column('shipping_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('bank_account_id', sa.Integer(), nullable=False),
        sa.Column('margin', sa.Float(), nullable=False, server_default='0'),
        sa.Column('margin_percent', sa.Float(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sold_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.CheckConstraint('sale_price >= 0', name='ck_sales_sale_price_nonneg'),
        sa.CheckConstraint('platform_fees >= 0', name='ck_sales_platform_fees_nonneg'),
        sa.CheckConstraint('shipping_cost >= 0', name='ck_sales_shipping_cost_nonneg'),
        sa.ForeignKeyConstraint(['bag_id'], ['bags.id'], ),
        sa.ForeignKeyConstraint(['bank_account_id'], ['bank_accounts.id'], ),
        sa.ForeignKeyConstraint(['sold_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bag_id', name='uq_sales_bag_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index('ix_sales_sale_date', ['sale_date'], unique=False)
        batch_op.create_index('ix_sales_bank_account', ['bank_account_id'], unique=False)


def downgrade():
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.drop_index('ix_sales_bank_account')
        batch_op.drop_index('ix_sales_sale_date')
    op.drop_table('sales')

    op.drop_table('reference_sequences')

    with op.batch_alter_table('bags', schema=None) as batch_op:
        batch_op.drop_index('ix_bags_created_at')
        batch_op.drop_index('ix_bags_purchase_bank_account')
        batch_op.drop_index('ix_bags_brand')
        batch_op.drop_index('ix_bags_status')
    op.drop_table('bags')

    op.drop_table('bank_accounts')

    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.drop_index('ix_session_tokens_user_active')
        batch_op.drop_index('ix_session_tokens_is_revoked')
        batch_op.drop_index('ix_session_tokens_expires_at')
        batch_op.drop_index('ix_session_tokens_token_hash')
        batch_op.drop_index('ix_session_tokens_user_id')
    op.drop_table('session_tokens')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index('ix_users_role_active')
        batch_op.drop_index('ix_users_email')
    op.drop_table('users')
