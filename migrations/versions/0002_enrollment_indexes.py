"""enrollment group/course indexes

Revision ID: 0002
Revises: 0001
"""
from alembic import op

revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None

def upgrade():
    # выборка участников группы идёт по group_id на каждой операции
    op.create_index('ix_enrollments_group_id', 'enrollments', ['group_id'])
    op.create_index('ix_enrollments_course', 'enrollments', ['id_course'])

def downgrade():
    op.drop_index('ix_enrollments_course', table_name='enrollments')
    op.drop_index('ix_enrollments_group_id', table_name='enrollments')
