"""create alert_log and alert_batch_runs tables

Revision ID: k3v8m2q7x1a4
Revises:
Create Date: 2025-10-01 09:00:00.000000

ルールチェックが出力するアラートと、バッチ実行履歴のテーブル
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'k3v8m2q7x1a4'
down_revision = None
branch_labels = None
depends_on = None


alert_status = postgresql.ENUM(
    'open', 'in_progress', 'done', 'muted', 'cancelled',
    name='alertstatus', create_type=False
)
alert_status_source = postgresql.ENUM('system', 'manual', name='alertstatussource', create_type=False)
batch_run_type = postgresql.ENUM('manual', 'scheduled', name='batchruntype', create_type=False)
batch_run_status = postgresql.ENUM('running', 'completed', 'failed', name='batchrunstatus', create_type=False)


def upgrade() -> None:
    """
    alert_log / alert_batch_runs テーブルを作成

    重複防止:
    - status_source = 'system' かつ status IN ('open', 'in_progress', 'muted') の行に限り
      dedup_key を一意とする部分インデックスを作成する
    - 同じ違反を複数のバッチが同時に検出しても未対応アラートは1件に保たれる
    """
    bind = op.get_bind()
    for enum_type in (alert_status, alert_status_source, batch_run_type, batch_run_status):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'alert_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('dedup_key', sa.String(length=64), nullable=True, comment='違反の同一性キー (SHA-256)'),
        sa.Column('visible_roles', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('status', alert_status, nullable=False, server_default='open'),
        sa.Column('status_source', alert_status_source, nullable=False, server_default='manual'),
        sa.Column('severity', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('kaipoke_cs_id', sa.String(length=64), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('shift_id', sa.String(length=64), nullable=True),
        sa.Column('rpa_request_id', sa.String(length=64), nullable=True),
        sa.Column('result_comment', sa.Text(), nullable=True),
        sa.Column('result_comment_by', sa.String(length=64), nullable=True),
        sa.Column('result_comment_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('assigned_to', sa.String(length=64), nullable=True),
        sa.Column('completed_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('severity BETWEEN 1 AND 3', name='ck_alert_log_severity')
    )

    op.create_index(
        'uq_alert_log_active_system_dedup_key',
        'alert_log',
        ['dedup_key'],
        unique=True,
        postgresql_where=sa.text(
            "status_source = 'system' AND status IN ('open', 'in_progress', 'muted')"
        )
    )
    op.create_index('idx_alert_log_kaipoke_cs_id', 'alert_log', ['kaipoke_cs_id'])
    op.create_index('idx_alert_log_status', 'alert_log', ['status'])

    op.create_table(
        'alert_batch_runs',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('batch_name', sa.String(length=64), nullable=False),
        sa.Column('run_type', batch_run_type, nullable=False),
        sa.Column('triggered_by', sa.String(length=64), nullable=True),
        sa.Column('status', batch_run_status, nullable=False, server_default='running'),
        sa.Column('stats', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_alert_batch_runs_batch_name_started_at', 'alert_batch_runs', ['batch_name', 'started_at'])


def downgrade() -> None:
    """
    alert_log / alert_batch_runs テーブルを削除
    """
    op.drop_index('idx_alert_batch_runs_batch_name_started_at', table_name='alert_batch_runs')
    op.drop_table('alert_batch_runs')

    op.drop_index('idx_alert_log_status', table_name='alert_log')
    op.drop_index('idx_alert_log_kaipoke_cs_id', table_name='alert_log')
    op.drop_index('uq_alert_log_active_system_dedup_key', table_name='alert_log')
    op.drop_table('alert_log')

    bind = op.get_bind()
    for enum_type in (batch_run_status, batch_run_type, alert_status_source, alert_status):
        enum_type.drop(bind, checkfirst=True)
