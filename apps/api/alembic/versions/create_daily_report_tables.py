"""create sales_persons, customers, daily_reports, visit_records, comments

Revision ID: create_daily_report_tables
Revises:
Create Date: 2026-01-01 02:27:59.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_daily_report_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

report_status = sa.Enum('draft', 'submitted', 'confirmed', name='report_status')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'sales_persons',
        sa.Column('sales_person_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=False),
        sa.Column('is_manager', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['manager_id'], ['sales_persons.sales_person_id']),
        sa.PrimaryKeyConstraint('sales_person_id'),
    )
    op.create_index(op.f('ix_sales_persons_email'), 'sales_persons', ['email'], unique=True)
    op.create_index(op.f('ix_sales_persons_manager_id'), 'sales_persons', ['manager_id'], unique=False)

    op.create_table(
        'customers',
        sa.Column('customer_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=200), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('contact_person', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('customer_id'),
    )

    op.create_table(
        'daily_reports',
        sa.Column('report_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sales_person_id', sa.Integer(), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('problem', sa.Text(), nullable=True),
        sa.Column('plan', sa.Text(), nullable=True),
        sa.Column('status', report_status, nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['sales_person_id'], ['sales_persons.sales_person_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('report_id'),
        sa.UniqueConstraint('sales_person_id', 'report_date', name='uq_daily_reports_sales_person_id_report_date'),
    )
    op.create_index(op.f('ix_daily_reports_sales_person_id'), 'daily_reports', ['sales_person_id'], unique=False)

    op.create_table(
        'visit_records',
        sa.Column('visit_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('visit_time', sa.Time(), nullable=True),
        sa.Column('visit_purpose', sa.String(length=100), nullable=True),
        sa.Column('visit_content', sa.Text(), nullable=False),
        sa.Column('visit_result', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['daily_reports.report_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.customer_id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('visit_id'),
    )
    op.create_index(op.f('ix_visit_records_report_id'), 'visit_records', ['report_id'], unique=False)
    op.create_index(op.f('ix_visit_records_customer_id'), 'visit_records', ['customer_id'], unique=False)

    op.create_table(
        'comments',
        sa.Column('comment_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('sales_person_id', sa.Integer(), nullable=False),
        sa.Column('comment_text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['daily_reports.report_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sales_person_id'], ['sales_persons.sales_person_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('comment_id'),
    )
    op.create_index(op.f('ix_comments_report_id'), 'comments', ['report_id'], unique=False)
    op.create_index(op.f('ix_comments_sales_person_id'), 'comments', ['sales_person_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_comments_sales_person_id'), table_name='comments')
    op.drop_index(op.f('ix_comments_report_id'), table_name='comments')
    op.drop_table('comments')
    op.drop_index(op.f('ix_visit_records_customer_id'), table_name='visit_records')
    op.drop_index(op.f('ix_visit_records_report_id'), table_name='visit_records')
    op.drop_table('visit_records')
    op.drop_index(op.f('ix_daily_reports_sales_person_id'), table_name='daily_reports')
    op.drop_table('daily_reports')
    report_status.drop(op.get_bind(), checkfirst=True)
    op.drop_table('customers')
    op.drop_index(op.f('ix_sales_persons_manager_id'), table_name='sales_persons')
    op.drop_index(op.f('ix_sales_persons_email'), table_name='sales_persons')
    op.drop_table('sales_persons')
