"""Create projects, field_types, fields and field_rules tables

Revision ID: 3f1c9a7d2e10
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FIELD_STATUS = ('Active', 'Inactive', 'Archived')
RULE_OPERATORS = ('=', '!=', '>', '<', '>=', '<=', 'contains', 'not_contains', 'in', 'not_in')
RULE_ACTIONS = ('Clear', 'Hide', 'Disable', 'Enable', 'Modify', 'Require', 'Optional')


def upgrade() -> None:
    """Upgrade schema - tables in reference order: projects, types, fields, rules."""

    op.create_table('projects',
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )

    op.create_table('field_types',
    sa.Column('name', sa.String(length=50), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('icon', sa.String(length=100), nullable=True),
    sa.Column('validation_spec', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('is_system', sa.Boolean(), nullable=False),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_field_types_name'), 'field_types', ['name'], unique=True)
    # Names collide regardless of case
    op.create_index('ix_field_types_name_lower', 'field_types', [sa.text('lower(name)')], unique=True)

    op.create_table('fields',
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('type', sa.String(length=50), nullable=False),
    sa.Column('parent', sa.String(length=200), nullable=True),
    sa.Column('values', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('status', sa.Enum(*FIELD_STATUS, name='field_status'), nullable=False),
    sa.Column('is_required', sa.Boolean(), nullable=False),
    sa.Column('is_system', sa.Boolean(), nullable=False),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['type'], ['field_types.name'], ondelete='RESTRICT'),
    sa.ForeignKeyConstraint(['parent'], ['fields.name'], ondelete='RESTRICT'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_fields_name'), 'fields', ['name'], unique=True)
    op.create_index(op.f('ix_fields_type'), 'fields', ['type'], unique=False)
    op.create_index(op.f('ix_fields_parent'), 'fields', ['parent'], unique=False)
    op.create_index(op.f('ix_fields_status'), 'fields', ['status'], unique=False)

    op.create_table('field_rules',
    sa.Column('name', sa.String(length=200), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('condition_field', sa.String(length=200), nullable=False),
    sa.Column('operator', sa.Enum(*RULE_OPERATORS, name='rule_operator'), nullable=False),
    sa.Column('value', sa.Text(), nullable=False, server_default=''),
    sa.Column('action', sa.Enum(*RULE_ACTIONS, name='rule_action'), nullable=False),
    sa.Column('target_field', sa.String(length=200), nullable=False),
    sa.Column('action_value', sa.Text(), nullable=True),
    sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column('project_id', sa.UUID(), nullable=True),
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.CheckConstraint('priority >= 0 AND priority <= 1000', name='ck_field_rule_priority_range'),
    sa.ForeignKeyConstraint(['condition_field'], ['fields.name'], ondelete='RESTRICT'),
    sa.ForeignKeyConstraint(['target_field'], ['fields.name'], ondelete='RESTRICT'),
    sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_field_rules_condition_field'), 'field_rules', ['condition_field'], unique=False)
    op.create_index(op.f('ix_field_rules_target_field'), 'field_rules', ['target_field'], unique=False)
    op.create_index(op.f('ix_field_rules_priority'), 'field_rules', ['priority'], unique=False)
    op.create_index(op.f('ix_field_rules_project_id'), 'field_rules', ['project_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_field_rules_project_id'), table_name='field_rules')
    op.drop_index(op.f('ix_field_rules_priority'), table_name='field_rules')
    op.drop_index(op.f('ix_field_rules_target_field'), table_name='field_rules')
    op.drop_index(op.f('ix_field_rules_condition_field'), table_name='field_rules')
    op.drop_table('field_rules')

    op.drop_index(op.f('ix_fields_status'), table_name='fields')
    op.drop_index(op.f('ix_fields_parent'), table_name='fields')
    op.drop_index(op.f('ix_fields_type'), table_name='fields')
    op.drop_index(op.f('ix_fields_name'), table_name='fields')
    op.drop_table('fields')

    op.drop_index('ix_field_types_name_lower', table_name='field_types')
    op.drop_index(op.f('ix_field_types_name'), table_name='field_types')
    op.drop_table('field_types')

    op.drop_table('projects')

    op.execute("DROP TYPE IF EXISTS rule_action")
    op.execute("DROP TYPE IF EXISTS rule_operator")
    op.execute("DROP TYPE IF EXISTS field_status")
