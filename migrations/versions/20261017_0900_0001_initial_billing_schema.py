"""initial billing schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    # Customer directory tables (owned upstream, read here)
    op.create_table(
        'service_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('speed', sa.String(length=32), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_service_plans_price_positive'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('contact', sa.String(length=32), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('register','active','suspended','terminated')", name='ck_customers_status'
        ),
        sa.ForeignKeyConstraint(['plan_id'], ['service_plans.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )

    # Chart of accounts
    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.CheckConstraint(
            "type IN ('asset','liability','equity','revenue','expense')", name='ck_account_type'
        ),
        sa.ForeignKeyConstraint(['parent_id'], ['chart_of_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    # Invoices and payments
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('billing_cycle', sa.String(length=16), nullable=False),
        sa.Column('period_start', sa.String(length=10), nullable=False),
        sa.Column('period_end', sa.String(length=10), nullable=False),
        sa.Column('issue_date', sa.String(length=10), nullable=False),
        sa.Column('due_date', sa.String(length=10), nullable=False),
        sa.Column('base_amount', sa.Integer(), nullable=False),
        sa.Column('discount_amount', sa.Integer(), nullable=False),
        sa.Column('penalty_amount', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('paid_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('is_pro_rata', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.String(length=255), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft','issued','paid','partial','overdue','void')", name='ck_invoice_status'
        ),
        sa.CheckConstraint("billing_cycle IN ('monthly','weekly')", name='ck_invoice_billing_cycle'),
        sa.CheckConstraint(
            'base_amount >= 0 AND discount_amount >= 0 AND penalty_amount >= 0 '
            'AND total_amount >= 0 AND paid_amount >= 0',
            name='ck_invoice_amounts_positive',
        ),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['service_plans.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_status_due', 'invoices', ['status', 'due_date'])
    # One live invoice per customer and period; voided invoices free the slot
    op.create_index(
        'uq_invoices_customer_period_open',
        'invoices',
        ['customer_id', 'period_start', 'period_end'],
        unique=True,
        postgresql_where=sa.text("status <> 'void'"),
        sqlite_where=sa.text("status <> 'void'"),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('collected_by', sa.String(length=64), nullable=False),
        sa.Column('reference', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.String(length=255), nullable=True),
        sa.Column('whatsapp_sent', sa.Boolean(), nullable=False),
        sa.Column('received_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("method IN ('cash','bank','mobile_money','online')", name='ck_payment_method'),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_invoice_id', 'payments', ['invoice_id'])
    op.create_index('ix_payments_customer_id', 'payments', ['customer_id'])

    # Vendors
    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('contact', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('tax_id', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'vendor_bills',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('bill_number', sa.String(length=64), nullable=True),
        sa.Column('bill_date', sa.String(length=10), nullable=False),
        sa.Column('due_date', sa.String(length=10), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('paid_amount', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('category', sa.String(length=24), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('draft','received','paid','partial','overdue')", name='ck_vendor_bill_status'
        ),
        sa.CheckConstraint('total_amount > 0 AND paid_amount >= 0', name='ck_vendor_bill_amounts'),
        sa.CheckConstraint(
            "category IN ('bandwidth','infrastructure','salary','commission',"
            "'maintenance','office','utilities','other')",
            name='ck_vendor_bill_category',
        ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vendor_bills_vendor_id', 'vendor_bills', ['vendor_id'])

    # Journal
    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_date', sa.String(length=10), nullable=False),
        sa.Column('memo', sa.String(length=255), nullable=False),
        sa.Column('source_type', sa.String(length=24), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=True),
        sa.Column('reverses_entry_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "source_type IN ('invoice','payment','expense','adjustment','opening_balance','manual',"
            "'vendor_bill','vendor_payment')",
            name='ck_journal_source_type',
        ),
        sa.ForeignKeyConstraint(['reverses_entry_id'], ['journal_entries.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reverses_entry_id'),
    )
    op.create_index('ix_journal_entries_entry_date', 'journal_entries', ['entry_date'])
    op.create_index('ix_journal_entries_source', 'journal_entries', ['source_type', 'source_id'])

    op.create_table(
        'journal_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entry_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('debit', sa.Integer(), nullable=False),
        sa.Column('credit', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.CheckConstraint('debit >= 0 AND credit >= 0', name='ck_journal_line_non_negative'),
        sa.ForeignKeyConstraint(['entry_id'], ['journal_entries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['chart_of_accounts.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_journal_lines_entry_id', 'journal_lines', ['entry_id'])
    op.create_index('ix_journal_lines_account_id', 'journal_lines', ['account_id'])

    # Expenses and opening balances
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category', sa.String(length=24), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('expense_date', sa.String(length=10), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('reference', sa.String(length=64), nullable=True),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_expense_amount_positive'),
        sa.CheckConstraint(
            "category IN ('bandwidth','infrastructure','salary','commission',"
            "'maintenance','office','utilities','other')",
            name='ck_expense_category',
        ),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'opening_balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('as_of_date', sa.String(length=10), nullable=False),
        sa.Column('notes', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id'),
    )


def downgrade():
    op.drop_table('opening_balances')
    op.drop_table('expenses')
    op.drop_index('ix_journal_lines_account_id', table_name='journal_lines')
    op.drop_index('ix_journal_lines_entry_id', table_name='journal_lines')
    op.drop_table('journal_lines')
    op.drop_index('ix_journal_entries_source', table_name='journal_entries')
    op.drop_index('ix_journal_entries_entry_date', table_name='journal_entries')
    op.drop_table('journal_entries')
    op.drop_index('ix_vendor_bills_vendor_id', table_name='vendor_bills')
    op.drop_table('vendor_bills')
    op.drop_table('vendors')
    op.drop_index('ix_payments_customer_id', table_name='payments')
    op.drop_index('ix_payments_invoice_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('uq_invoices_customer_period_open', table_name='invoices')
    op.drop_index('ix_invoices_status_due', table_name='invoices')
    op.drop_index('ix_invoices_customer_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_table('chart_of_accounts')
    op.drop_table('customers')
    op.drop_table('service_plans')
