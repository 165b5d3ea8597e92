"""Initial schema: catalog, ledger, audit, projects, transfers, reconciliation

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

Creates:
1. locations, inventory_items (reference data)
2. stock_levels (ledger) and audit_log (append-only)
3. projects, allocations, pick_lists
4. transfers
5. reconciliation_reports, reconciliation_report_items
6. notification_recipients
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. REFERENCE DATA
    # ==========================================================================
    op.create_table('locations',
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('location_name', sa.String(length=255), nullable=False),
        sa.Column('hub', sa.String(length=16), nullable=False),
        sa.Column('zone_type', sa.String(length=32), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('location_id'),
    )
    op.create_index('ix_locations_hub', 'locations', ['hub'])

    op.create_table('inventory_items',
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('species', sa.String(length=64), nullable=True),
        sa.Column('thickness', sa.String(length=32), nullable=True),
        sa.Column('width', sa.String(length=32), nullable=True),
        sa.Column('length', sa.String(length=32), nullable=True),
        sa.Column('farm_par_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('mke_par_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('farm_par_level >= 0', name='ck_items_farm_par_nonneg'),
        sa.CheckConstraint('mke_par_level >= 0', name='ck_items_mke_par_nonneg'),
        sa.PrimaryKeyConstraint('sku'),
    )
    op.create_index('ix_inventory_items_status', 'inventory_items', ['status'])

    # ==========================================================================
    # 2. LEDGER + AUDIT
    # ==========================================================================
    op.create_table('stock_levels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('last_counted', sa.Date(), nullable=True),
        sa.Column('counted_by', sa.String(length=255), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_stock_levels_quantity_nonneg'),
        sa.ForeignKeyConstraint(['sku'], ['inventory_items.sku']),
        sa.ForeignKeyConstraint(['location_id'], ['locations.location_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', 'location_id', name='uq_stock_levels_sku_location'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stock_levels_sku', 'stock_levels', ['sku'])
    op.create_index('ix_stock_levels_location_id', 'stock_levels', ['location_id'])

    op.create_table('audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('action_type', sa.String(length=32), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('location_id', sa.String(length=64), nullable=True),
        sa.Column('quantity_before', sa.Integer(), nullable=True),
        sa.Column('quantity_after', sa.Integer(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_audit_log_timestamp', 'audit_log', ['timestamp'])
    op.create_index('ix_audit_log_action_type', 'audit_log', ['action_type'])
    op.create_index('ix_audit_log_sku_timestamp', 'audit_log', ['sku', 'timestamp'])

    # ==========================================================================
    # 3. PROJECTS, ALLOCATIONS, PICK LISTS
    # ==========================================================================
    op.create_table('projects',
        sa.Column('project_id', sa.String(length=32), nullable=False),
        sa.Column('project_name', sa.String(length=255), nullable=False),
        sa.Column('catalog_id', sa.String(length=64), nullable=True),
        sa.Column('client', sa.String(length=255), nullable=False),
        sa.Column('assigned_hub', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('project_lead', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('project_id'),
    )
    op.create_index('ix_projects_client', 'projects', ['client'])
    op.create_index('ix_projects_status', 'projects', ['status'])

    op.create_table('allocations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.String(length=32), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('source_location', sa.String(length=64), nullable=True),
        sa.Column('quantity_pulled', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('allocated_by', sa.String(length=255), nullable=False),
        sa.Column('allocated_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_allocations_quantity_positive'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id']),
        sa.ForeignKeyConstraint(['sku'], ['inventory_items.sku']),
        sa.ForeignKeyConstraint(['source_location'], ['locations.location_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_allocations_project_id', 'allocations', ['project_id'])
    op.create_index('ix_allocations_sku_source_status', 'allocations', ['sku', 'source_location', 'status'])

    op.create_table('pick_lists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('project_id', sa.String(length=32), nullable=False),
        sa.Column('allocation_id', sa.Integer(), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('quantity_requested', sa.Integer(), nullable=False),
        sa.Column('pick_from_location', sa.String(length=64), nullable=False),
        sa.Column('quantity_picked', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('picked_by', sa.String(length=255), nullable=True),
        sa.Column('pick_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('quantity_picked >= 0', name='ck_pick_lists_picked_nonneg'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.project_id']),
        sa.ForeignKeyConstraint(['allocation_id'], ['allocations.id']),
        sa.ForeignKeyConstraint(['sku'], ['inventory_items.sku']),
        sa.ForeignKeyConstraint(['pick_from_location'], ['locations.location_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_pick_lists_project_id', 'pick_lists', ['project_id'])
    op.create_index('ix_pick_lists_allocation_id', 'pick_lists', ['allocation_id'])
    op.create_index('ix_pick_lists_status', 'pick_lists', ['status'])

    # ==========================================================================
    # 4. TRANSFERS
    # ==========================================================================
    op.create_table('transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('from_location', sa.String(length=64), nullable=False),
        sa.Column('to_location', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('requested_by', sa.String(length=255), nullable=False),
        sa.Column('request_date', sa.Date(), nullable=False),
        sa.Column('shipped_by', sa.String(length=255), nullable=True),
        sa.Column('shipped_date', sa.Date(), nullable=True),
        sa.Column('received_by', sa.String(length=255), nullable=True),
        sa.Column('received_date', sa.Date(), nullable=True),
        sa.Column('quantity_received', sa.Integer(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=255), nullable=True),
        sa.Column('cancelled_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_transfers_quantity_positive'),
        sa.ForeignKeyConstraint(['sku'], ['inventory_items.sku']),
        sa.ForeignKeyConstraint(['from_location'], ['locations.location_id']),
        sa.ForeignKeyConstraint(['to_location'], ['locations.location_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_transfers_sku', 'transfers', ['sku'])
    op.create_index('ix_transfers_status', 'transfers', ['status'])

    # ==========================================================================
    # 5. RECONCILIATION
    # ==========================================================================
    op.create_table('reconciliation_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('submitted_by', sa.String(length=255), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('discrepancy_count', sa.Integer(), nullable=False),
        sa.Column('applied', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['location_id'], ['locations.location_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_reconciliation_reports_location_id', 'reconciliation_reports', ['location_id'])

    op.create_table('reconciliation_report_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('system_qty', sa.Integer(), nullable=False),
        sa.Column('counted_qty', sa.Integer(), nullable=False),
        sa.Column('difference', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['reconciliation_reports.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_reconciliation_report_items_report_id', 'reconciliation_report_items', ['report_id'])

    # ==========================================================================
    # 6. NOTIFICATIONS
    # ==========================================================================
    op.create_table('notification_recipients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_notification_recipients_email'),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table('notification_recipients')
    op.drop_index('ix_reconciliation_report_items_report_id', table_name='reconciliation_report_items')
    op.drop_table('reconciliation_report_items')
    op.drop_index('ix_reconciliation_reports_location_id', table_name='reconciliation_reports')
    op.drop_table('reconciliation_reports')
    op.drop_index('ix_transfers_status', table_name='transfers')
    op.drop_index('ix_transfers_sku', table_name='transfers')
    op.drop_table('transfers')
    op.drop_index('ix_pick_lists_status', table_name='pick_lists')
    op.drop_index('ix_pick_lists_allocation_id', table_name='pick_lists')
    op.drop_index('ix_pick_lists_project_id', table_name='pick_lists')
    op.drop_table('pick_lists')
    op.drop_index('ix_allocations_sku_source_status', table_name='allocations')
    op.drop_index('ix_allocations_project_id', table_name='allocations')
    op.drop_table('allocations')
    op.drop_index('ix_projects_status', table_name='projects')
    op.drop_index('ix_projects_client', table_name='projects')
    op.drop_table('projects')
    op.drop_index('ix_audit_log_sku_timestamp', table_name='audit_log')
    op.drop_index('ix_audit_log_action_type', table_name='audit_log')
    op.drop_index('ix_audit_log_timestamp', table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_index('ix_stock_levels_location_id', table_name='stock_levels')
    op.drop_index('ix_stock_levels_sku', table_name='stock_levels')
    op.drop_table('stock_levels')
    op.drop_index('ix_inventory_items_status', table_name='inventory_items')
    op.drop_table('inventory_items')
    op.drop_index('ix_locations_hub', table_name='locations')
    op.drop_table('locations')
