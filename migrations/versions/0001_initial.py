"""initial tables: admins, courses, enrollment groups, enrollments, minors

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='ADMIN'),
        sa.Column('is_active_flag', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)
    op.create_index('ix_admins_role', 'admins', ['role'])

    op.create_table('courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=False),
        sa.Column('tickets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('tickets >= 0', name='ck_courses_tickets_non_negative'),
    )
    op.create_index('ix_courses_date', 'courses', ['date'])

    # автоинкремент вместо max(group_id) + 1
    op.create_table('enrollment_groups',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table('enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('fullname', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('gender', sa.String(length=16), nullable=False, server_default='NS/NC'),
        sa.Column('age', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_first_activity', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('id_admin', sa.Integer(), sa.ForeignKey('admins.id', ondelete='SET NULL'), nullable=True),
        sa.Column('id_course', sa.Integer(), sa.ForeignKey('courses.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('enrollment_groups.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('accepts_newsletter', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_enrollments_email', 'enrollments', ['email'])

    op.create_table('minors',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('enrollment_id', sa.Integer(), sa.ForeignKey('enrollments.id', ondelete='CASCADE'), nullable=False),
        sa.CheckConstraint('age >= 0 AND age <= 14', name='ck_minors_age_range'),
    )
    op.create_index('ix_minors_enrollment_id', 'minors', ['enrollment_id'])

def downgrade():
    op.drop_index('ix_minors_enrollment_id', table_name='minors')
    op.drop_table('minors')
    op.drop_index('ix_enrollments_email', table_name='enrollments')
    op.drop_table('enrollments')
    op.drop_table('enrollment_groups')
    op.drop_index('ix_courses_date', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_admins_role', table_name='admins')
    op.drop_index('ix_admins_username', table_name='admins')
    op.drop_table('admins')
