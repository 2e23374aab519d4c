"""init classification schema

Revision ID: 3a7c1e9d2b40
Revises: 
Create Date: 2024-11-25 00:00:00

"""
from alembic import op
import sqlalchemy as sa

from phototagger.search import drop_search_index, install_search_index


# revision identifiers, used by Alembic.
revision = '3a7c1e9d2b40'
down_revision = None
branch_labels = None
depends_on = None

classification_status = sa.Enum(
    'pending', 'processing', 'completed', 'failed', name='classification_status'
)
tag_category = sa.Enum(
    'content', 'people', 'mood', 'color', 'quality', name='tag_category'
)
event_kind = sa.Enum(
    'attempt', 'success', 'error', 'fallback', name='classification_event_kind'
)
model_tier = sa.Enum('primary', 'secondary', name='model_tier')


def upgrade() -> None:
    op.create_table(
        'photos',
        sa.Column('photo_id', sa.String, primary_key=True),
        sa.Column('data_json', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_photos_created_at_desc', 'photos', [sa.text('created_at DESC')])

    op.create_table(
        'photo_classifications',
        sa.Column(
            'photo_id',
            sa.String,
            sa.ForeignKey('photos.photo_id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('searchable_text', sa.Text, nullable=False, server_default=''),
        sa.Column('status', classification_status, nullable=False, server_default='pending'),
        sa.Column('confidence', sa.Float),
        sa.Column('retry_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True)),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('error_message', sa.Text),
    )
    op.create_index('ix_classification_status', 'photo_classifications', ['status'])
    op.create_index(
        'ix_classification_completed',
        'photo_classifications',
        ['completed_at'],
        sqlite_where=sa.text('completed_at IS NOT NULL'),
        postgresql_where=sa.text('completed_at IS NOT NULL'),
    )
    op.create_index(
        'ix_classification_retryable',
        'photo_classifications',
        ['status', 'retry_count'],
        sqlite_where=sa.text("status IN ('pending', 'failed')"),
        postgresql_where=sa.text("status IN ('pending', 'failed')"),
    )

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String, nullable=False, unique=True),
        sa.Column('category', tag_category, nullable=False),
        sa.Column('usage_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_tags_category', 'tags', ['category'])
    op.create_index('ix_tags_usage', 'tags', [sa.text('usage_count DESC')])

    op.create_table(
        'photo_tags',
        sa.Column(
            'photo_id',
            sa.String,
            sa.ForeignKey('photo_classifications.photo_id', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('tag_id', sa.Integer, sa.ForeignKey('tags.id'), primary_key=True),
    )
    op.create_index('ix_photo_tags_tag', 'photo_tags', ['tag_id'])

    op.create_table(
        'classification_logs',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('photo_id', sa.String, nullable=False),
        sa.Column('event_kind', event_kind, nullable=False),
        sa.Column('tier_used', model_tier),
        sa.Column('error_message', sa.Text),
        sa.Column('duration_ms', sa.Integer),
        sa.Column('confidence', sa.Float),
    )
    op.create_index('ix_logs_timestamp', 'classification_logs', ['timestamp'])
    op.create_index('ix_logs_photo', 'classification_logs', ['photo_id'])
    op.create_index('ix_logs_event', 'classification_logs', ['event_kind'])

    install_search_index(op.get_bind())


def downgrade() -> None:
    drop_search_index(op.get_bind())
    op.drop_table('classification_logs')
    op.drop_table('photo_tags')
    op.drop_table('tags')
    op.drop_table('photo_classifications')
    op.drop_table('photos')

    bind = op.get_bind()
    for enum in (model_tier, event_kind, tag_category, classification_status):
        enum.drop(bind, checkfirst=True)
