"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates the project tracker schema:
- students, teachers and projects
- project_targets and project_updates
- student_partners: one row per direction of a partner link
- partner_requests, student_incharge_requests, teacher_incharge_requests:
  the request ledgers, one copy per party
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'projectstatus': ('ACTIVE', 'COMPLETED', 'ON_HOLD'),
    'requestdirection': ('SENT', 'RECEIVED'),
    'requeststatus': ('PENDING', 'ACCEPTED', 'REJECTED'),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; the tables only reference them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _ledger_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('direction', _enum('requestdirection'), nullable=False),
        sa.Column('status', _enum('requeststatus'), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all project tracker tables."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'teachers',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_teachers_email', 'teachers', ['email'], unique=True)

    op.create_table(
        'projects',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('incharge_id', sa.BigInteger(), nullable=False),
        sa.Column('status', _enum('projectstatus'), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['incharge_id'], ['teachers.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_incharge_id', 'projects', ['incharge_id'])

    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('roll_no', sa.String(length=50), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=255), nullable=False),
        sa.Column('class_name', sa.String(length=50), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('project_id', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_roll_no', 'students', ['roll_no'], unique=True)
    op.create_index('ix_students_department', 'students', ['department'])
    op.create_index('ix_students_project_id', 'students', ['project_id'])

    op.create_table(
        'student_partners',
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('partner_id', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['partner_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('student_id', 'partner_id'),
    )

    op.create_table(
        'project_targets',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.BigInteger(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_project_targets_project_id', 'project_targets', ['project_id'])

    op.create_table(
        'project_updates',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('project_id', sa.BigInteger(), nullable=False),
        sa.Column('student_id', sa.BigInteger(), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('report', sa.Text(), nullable=True),
        sa.Column('screenshots', sa.JSON(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_edited', sa.DateTime(timezone=True), nullable=False),
        sa.Column('incharge_comment', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_project_updates_project_id', 'project_updates', ['project_id'])
    op.create_index('ix_project_updates_student_id', 'project_updates', ['student_id'])
    op.create_index('ix_project_updates_timestamp', 'project_updates', ['timestamp'])

    op.create_table(
        'partner_requests',
        *_ledger_columns(),
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('counterpart_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['counterpart_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_partner_requests_student_id', 'partner_requests', ['student_id'])
    op.create_index('ix_partner_requests_counterpart_id', 'partner_requests', ['counterpart_id'])
    op.create_index('ix_partner_requests_status', 'partner_requests', ['status'])

    op.create_table(
        'student_incharge_requests',
        *_ledger_columns(),
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('counterpart_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['counterpart_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_student_incharge_requests_student_id', 'student_incharge_requests', ['student_id'])
    op.create_index('ix_student_incharge_requests_counterpart_id', 'student_incharge_requests', ['counterpart_id'])
    op.create_index('ix_student_incharge_requests_status', 'student_incharge_requests', ['status'])

    op.create_table(
        'teacher_incharge_requests',
        *_ledger_columns(),
        sa.Column('teacher_id', sa.BigInteger(), nullable=False),
        sa.Column('counterpart_id', sa.BigInteger(), nullable=False),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('project_id', sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['counterpart_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_teacher_incharge_requests_teacher_id', 'teacher_incharge_requests', ['teacher_id'])
    op.create_index('ix_teacher_incharge_requests_counterpart_id', 'teacher_incharge_requests', ['counterpart_id'])
    op.create_index('ix_teacher_incharge_requests_status', 'teacher_incharge_requests', ['status'])


def downgrade() -> None:
    """Drop all project tracker tables."""
    op.drop_table('teacher_incharge_requests')
    op.drop_table('student_incharge_requests')
    op.drop_table('partner_requests')
    op.drop_table('project_updates')
    op.drop_table('project_targets')
    op.drop_table('student_partners')
    op.drop_table('students')
    op.drop_table('projects')
    op.drop_table('teachers')

    bind = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
