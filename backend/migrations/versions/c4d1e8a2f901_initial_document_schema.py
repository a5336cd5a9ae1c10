"""initial document schema

Revision ID: c4d1e8a2f901
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the back-office schema:
- document_sequences: per-type, per-year numbering counters
- documents / document_lines: delivery notes, purchase orders, return notes,
  invoices and sales journals (single table, discriminated by document_type)
- cash_controls: daily till closing, one per date
- external_orders / external_order_lines: mirror of shop orders
- inventory_api_settings: connection to the external inventory API
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c4d1e8a2f901'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # document_sequences: Numbering counters
    # ============================================================================
    # current_number is the NEXT number to issue; only ever increases.
    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('prefix', sa.String(length=8), nullable=False),
        sa.Column('current_number', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_type', 'year', name='uq_doc_sequences_type_year'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_document_sequences_document_type', 'document_sequences', ['document_type'])

    # ============================================================================
    # documents: Numbered commercial documents
    # ============================================================================
    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('document_number', sa.String(length=32), nullable=False),

        sa.Column('counterparty_name', sa.String(length=255), nullable=False),
        sa.Column('counterparty_email', sa.String(length=255), nullable=True),
        sa.Column('counterparty_phone', sa.String(length=64), nullable=True),
        sa.Column('counterparty_address', sa.Text(), nullable=True),

        sa.Column('document_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),

        # Derived from lines
        sa.Column('subtotal_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),

        # Invoice
        sa.Column('payment_method', sa.String(length=16), nullable=True),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('source', sa.String(length=32), nullable=True),

        # Delivery note
        sa.Column('invoiced', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('invoice_id', sa.Integer(), nullable=True),

        # Return note
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('related_invoice_id', sa.Integer(), nullable=True),

        # Purchase order
        sa.Column('expected_date', sa.Date(), nullable=True),

        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),

        sa.ForeignKeyConstraint(['invoice_id'], ['documents.id'], ),
        sa.ForeignKeyConstraint(['related_invoice_id'], ['documents.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_documents_document_type', 'documents', ['document_type'])
    op.create_index('ix_documents_document_date', 'documents', ['document_date'])
    op.create_index('ix_documents_status', 'documents', ['status'])
    op.create_index('ix_documents_paid_date', 'documents', ['paid_date'])
    op.create_index('ix_documents_type_status_date', 'documents',
                    ['document_type', 'status', 'document_date'])

    # ============================================================================
    # document_lines: Line items
    # ============================================================================
    # quantity_received: cumulative receipt already pushed to stock (purchase orders)
    op.create_table(
        'document_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_id', sa.String(length=64), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('quantity_received', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_document_lines_document_id', 'document_lines', ['document_id'])
    op.create_index('ix_document_lines_product_id', 'document_lines', ['product_id'])
    op.create_index('ix_document_lines_document_position', 'document_lines', ['document_id', 'position'])

    # ============================================================================
    # cash_controls: Daily till closing
    # ============================================================================
    op.create_table(
        'cash_controls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('control_number', sa.String(length=32), nullable=True),
        sa.Column('control_date', sa.Date(), nullable=False),
        sa.Column('cash_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('transfer_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cheque_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('invoices_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('orders_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='open'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('control_number'),
        sa.UniqueConstraint('control_date', name='uq_cash_controls_date'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_cash_controls_control_date', 'cash_controls', ['control_date'])

    # ============================================================================
    # external_orders / external_order_lines: Shop order mirror
    # ============================================================================
    op.create_table(
        'external_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('external_id', sa.String(length=64), nullable=False),
        sa.Column('order_number', sa.String(length=64), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('order_status', sa.String(length=32), nullable=False),
        sa.Column('payment_method', sa.String(length=128), nullable=True),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('order_source', sa.String(length=16), nullable=False, server_default='website'),
        sa.Column('ordered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_external_orders_order_status', 'external_orders', ['order_status'])
    op.create_index('ix_external_orders_status_completed', 'external_orders',
                    ['order_status', 'completed_at'])

    op.create_table(
        'external_order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('line_total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_class', sa.String(length=64), nullable=True),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['order_id'], ['external_orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_external_order_lines_order_id', 'external_order_lines', ['order_id'])
    op.create_index('ix_external_order_lines_product_id', 'external_order_lines', ['product_id'])

    # ============================================================================
    # inventory_api_settings: Singleton connection row
    # ============================================================================
    op.create_table(
        'inventory_api_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('api_url', sa.String(length=512), nullable=False),
        sa.Column('consumer_key', sa.String(length=255), nullable=False),
        sa.Column('consumer_secret', sa.String(length=255), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('inventory_api_settings')
    op.drop_table('external_order_lines')
    op.drop_table('external_orders')
    op.drop_table('cash_controls')
    op.drop_table('document_lines')
    op.drop_table('documents')
    op.drop_table('document_sequences')
