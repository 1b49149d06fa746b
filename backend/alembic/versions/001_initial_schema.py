"""Initial schema - pricing, proposals and lead conversion

Revision ID: 001
Revises:
Create Date: 2026-10-17

WHY: Creates every table the proposal engine reads or writes: users and
catalog targets, customers, markup rules, products with their pricing
history, leads with their status audit, RFPs, site surveys, proposals,
and the projects created when a proposal is won.
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


# WHY: Enum values are what the models store (values_callable)
ENUMS = {
    'userrole': ('ADMIN', 'MANAGER', 'USER'),
    'markupruletype': ('brand', 'manufacturer', 'category', 'global'),
    'leadstatus': ('new', 'in_progress', 'closed', 'lost'),
    'proposalstatus': (
        'draft', 'in_review', 'approved', 'sent', 'accepted',
        'revised', 'rejected', 'won', 'lost', 'expired',
    ),
    'proposalstage': (
        'content_generation', 'document_generation', 'erp_integration', 'sent_to_customer',
    ),
    'erpsyncstatus': ('not_synced', 'synced', 'failed'),
    'projectstatus': ('active', 'on_hold', 'completed', 'cancelled'),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=12, scale=2), nullable=True)


def upgrade() -> None:
    """
    Create enum types, tables and indexes.
    """
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', _enum('userrole'), nullable=False, server_default='USER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Markup rule targets
    for table in ('brands', 'categories'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_name', table, ['name'])

    op.create_table(
        'manufacturers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=100), nullable=True, comment='ERP manufacturer code'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_manufacturers_id', 'manufacturers', ['id'])
    op.create_index('ix_manufacturers_name', 'manufacturers', ['name'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('trdr', sa.String(length=50), nullable=True, comment='ERP trading-partner id'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_id', 'customers', ['id'])
    op.create_index('ix_customers_trdr', 'customers', ['trdr'])

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contacts_id', 'contacts', ['id'])
    op.create_index('ix_contacts_customer_id', 'contacts', ['customer_id'])

    op.create_table(
        'markup_rules',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', _enum('markupruletype'), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=True, comment='NULL for global rules'),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('b2b_markup_percent', sa.Numeric(precision=7, scale=2), nullable=False, server_default='0'),
        sa.Column('retail_markup_percent', sa.Numeric(precision=7, scale=2), nullable=False, server_default='0'),
        _money('min_b2b_price'),
        _money('max_b2b_price'),
        _money('min_retail_price'),
        _money('max_retail_price'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_markup_rules_id', 'markup_rules', ['id'])
    op.create_index('ix_markup_rules_target_id', 'markup_rules', ['target_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=100), nullable=True),
        sa.Column('erp_code', sa.String(length=100), nullable=True, comment='ERP material id (MTRL)'),
        _money('cost'),
        _money('manual_b2b_price'),
        _money('manual_retail_price'),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('manufacturer_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['manufacturer_id'], ['manufacturers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'code', 'erp_code', 'brand_id', 'manufacturer_id', 'category_id'):
        op.create_index(f'ix_products_{column}', 'products', [column])

    op.create_table(
        'product_pricing_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        _money('cost'),
        _money('b2b_price'),
        _money('retail_price'),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_product_pricing_history_id', 'product_pricing_history', ['id'])
    op.create_index('ix_product_pricing_history_product_id', 'product_pricing_history', ['product_id'])
    op.create_index('ix_product_pricing_history_created_at', 'product_pricing_history', ['created_at'])

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', _enum('leadstatus'), nullable=False, server_default='new'),
        sa.Column('stage', sa.String(length=50), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('assignee_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assignee_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_leads_id', 'leads', ['id'])
    op.create_index('ix_leads_customer_id', 'leads', ['customer_id'])

    op.create_table(
        'lead_status_changes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lead_id', sa.Integer(), nullable=False),
        sa.Column('from_status', sa.String(length=50), nullable=True),
        sa.Column('to_status', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_lead_status_changes_id', 'lead_status_changes', ['id'])
    op.create_index('ix_lead_status_changes_lead_id', 'lead_status_changes', ['lead_id'])

    # Source documents
    for table, payload in (('rfps', 'requirements'), ('site_surveys', 'equipment')):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('customer_id', sa.Integer(), nullable=True),
            sa.Column('contact_id', sa.Integer(), nullable=True),
            sa.Column('lead_id', sa.Integer(), nullable=True),
            sa.Column(payload, sa.JSON(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='SET NULL'),
            sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table}_id', table, ['id'])
        op.create_index(f'ix_{table}_customer_id', table, ['customer_id'])
        op.create_index(f'ix_{table}_lead_id', table, ['lead_id'])

    op.create_table(
        'proposals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('rfp_id', sa.Integer(), nullable=True),
        sa.Column('site_survey_id', sa.Integer(), nullable=True),
        sa.Column('project_title', sa.String(length=255), nullable=True),
        sa.Column('project_description', sa.Text(), nullable=True),
        sa.Column('project_scope', sa.Text(), nullable=True),
        sa.Column('project_duration', sa.String(length=100), nullable=True),
        sa.Column('project_start_date', sa.DateTime(), nullable=True),
        sa.Column('project_end_date', sa.DateTime(), nullable=True),
        sa.Column('infrastructure_desc', sa.Text(), nullable=True),
        sa.Column('technical_desc', sa.Text(), nullable=True),
        sa.Column('products_desc', sa.Text(), nullable=True),
        sa.Column('services_desc', sa.Text(), nullable=True),
        sa.Column('scope_of_work', sa.Text(), nullable=True),
        sa.Column('equipment', sa.JSON(), nullable=True),
        sa.Column('totals', sa.JSON(), nullable=True),
        sa.Column('status', _enum('proposalstatus'), nullable=False, server_default='draft'),
        sa.Column('stage', _enum('proposalstage'), nullable=True),
        sa.Column('erp_quote_number', sa.String(length=100), nullable=True, comment='ERP FINCODE'),
        sa.Column('erp_series', sa.String(length=20), nullable=True),
        sa.Column('erp_series_num', sa.String(length=50), nullable=True),
        sa.Column('erp_findoc', sa.String(length=50), nullable=True),
        sa.Column('erp_saldocnum', sa.String(length=50), nullable=True),
        _money('erp_turnover'),
        _money('erp_vat_amount'),
        sa.Column('erp_sync_status', _enum('erpsyncstatus'), nullable=False, server_default='not_synced'),
        sa.Column('erp_response', sa.JSON(), nullable=True),
        sa.Column('word_document_url', sa.String(length=1000), nullable=True),
        sa.Column('pdf_document_url', sa.String(length=1000), nullable=True),
        sa.Column('sent_to_emails', sa.JSON(), nullable=True),
        sa.Column('sent_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_sent_date', sa.DateTime(), nullable=True),
        sa.Column('submitted_date', sa.DateTime(), nullable=True),
        sa.Column('approved_date', sa.DateTime(), nullable=True),
        sa.Column('rejected_date', sa.DateTime(), nullable=True),
        sa.Column('won_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('generated_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['rfp_id'], ['rfps.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['site_survey_id'], ['site_surveys.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['generated_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('id', 'customer_id', 'lead_id', 'rfp_id', 'site_survey_id', 'erp_quote_number'):
        op.create_index(f'ix_proposals_{column}', 'proposals', [column])
    # WHY: One proposal per source document; the RFP is the key only when
    # there is no site survey
    op.create_index(
        'uq_proposals_site_survey_id',
        'proposals',
        ['site_survey_id'],
        unique=True,
        postgresql_where=sa.text('site_survey_id IS NOT NULL'),
    )
    op.create_index(
        'uq_proposals_rfp_id',
        'proposals',
        ['rfp_id'],
        unique=True,
        postgresql_where=sa.text('site_survey_id IS NULL AND rfp_id IS NOT NULL'),
    )

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', _enum('projectstatus'), nullable=False, server_default='active'),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_id', 'projects', ['id'])
    op.create_index('ix_projects_lead_id', 'projects', ['lead_id'])

    op.create_table(
        'project_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('project_id', 'user_id', name='uq_project_assignments_project_user'),
    )
    op.create_index('ix_project_assignments_id', 'project_assignments', ['id'])
    op.create_index('ix_project_assignments_project_id', 'project_assignments', ['project_id'])
    op.create_index('ix_project_assignments_user_id', 'project_assignments', ['user_id'])


def downgrade() -> None:
    """
    Drop all tables (dependents first) and enum types.
    """
    for table in (
        'project_assignments',
        'projects',
        'proposals',
        'site_surveys',
        'rfps',
        'lead_status_changes',
        'leads',
        'product_pricing_history',
        'products',
        'markup_rules',
        'contacts',
        'customers',
        'manufacturers',
        'categories',
        'brands',
        'users',
    ):
        op.drop_table(table)

    for name in ENUMS:
        postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
