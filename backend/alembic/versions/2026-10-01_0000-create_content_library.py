"""create_content_library_and_embeddings

Revision ID: 4b1f0c2d9e7a
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4b1f0c2d9e7a'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match settings.EMBEDDING_DIMENSION (text-embedding-ada-002)
EMBEDDING_DIMENSION = 1536


def upgrade() -> None:
    """
    Create the content library and its embedding index.

    Creates the following:
    1. content_type enum (pillar, support, meta, social)
    2. content_library - generated and manually added content
    3. content_embeddings - one embedding per content item

    Indexes:
    - HNSW index for cosine similarity search
    - B-tree indexes for type/topic filters
    """

    # ================================
    # Enable pgvector extension if not already enabled
    # ================================
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    content_type = postgresql.ENUM(
        'pillar', 'support', 'meta', 'social',
        name='content_type',
    )
    content_type.create(op.get_bind(), checkfirst=True)

    # ================================
    # Create content_library table
    # ================================
    op.create_table(
        'content_library',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, comment='Opaque unique identifier generated at creation'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was last updated (UTC)'),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Content title'),
        sa.Column('content', sa.Text(), nullable=False, comment='Content body (Markdown)'),
        sa.Column(
            'content_type',
            postgresql.ENUM(name='content_type', create_type=False),
            nullable=False,
            comment='pillar, support, meta or social',
        ),
        sa.Column('topic_area', sa.String(length=255), nullable=True, comment="Free-text topic label (e.g. 'desk booking')"),
        sa.Column('keywords', postgresql.ARRAY(sa.Text()), nullable=False, server_default='{}', comment='Ordered list of target keywords'),
        sa.Column('is_saved', sa.Boolean(), nullable=False, server_default=sa.true(), comment='Whether the item was saved to the library'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_content_library')),
        comment='Marketing content: pillar articles, support pages, meta tags and social posts'
    )
    op.create_index('ix_content_library_content_type', 'content_library', ['content_type'])
    op.create_index('ix_content_library_topic_area', 'content_library', ['topic_area'])

    # ================================
    # Create content_embeddings table
    # ================================
    op.create_table(
        'content_embeddings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='Auto-incrementing primary key'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Timestamp when record was last updated (UTC)'),
        sa.Column('content_id', postgresql.UUID(as_uuid=True), nullable=False, comment='Content item this embedding belongs to'),
        sa.Column('content_text', sa.Text(), nullable=False, comment='Exact text that was embedded (title + body)'),
        sa.Column('content_type', sa.String(length=50), nullable=False, comment='Denormalised content type'),
        sa.Column('topic_area', sa.String(length=255), nullable=True, comment='Denormalised topic area'),
        sa.Column('keywords', postgresql.ARRAY(sa.Text()), nullable=False, server_default='{}', comment='Denormalised keywords'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True, comment='Generation timestamp and model identifier'),
        sa.ForeignKeyConstraint(['content_id'], ['content_library.id'], name=op.f('fk_content_embeddings_content_id_content_library'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_content_embeddings')),
        sa.UniqueConstraint('content_id', name='uq_content_embeddings_content_id'),
        comment='One embedding per content item for similarity search'
    )

    op.execute(
        f'ALTER TABLE content_embeddings ADD COLUMN embedding vector({EMBEDDING_DIMENSION}) NOT NULL'
    )

    op.create_index('ix_content_embeddings_content_type', 'content_embeddings', ['content_type'])
    op.create_index('ix_content_embeddings_topic_area', 'content_embeddings', ['topic_area'])

    # Create HNSW index for vector similarity search (cosine distance)
    # m=16 (max connections per layer), ef_construction=64 (quality during build)
    op.execute("""
        CREATE INDEX ix_content_embeddings_embedding_hnsw
        ON content_embeddings
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 64)
    """)


def downgrade() -> None:
    """
    Drop the content library tables and the content_type enum.

    The pgvector extension is left installed.
    """
    op.execute('DROP INDEX IF EXISTS ix_content_embeddings_embedding_hnsw')
    op.drop_index('ix_content_embeddings_topic_area', table_name='content_embeddings')
    op.drop_index('ix_content_embeddings_content_type', table_name='content_embeddings')
    op.drop_table('content_embeddings')

    op.drop_index('ix_content_library_topic_area', table_name='content_library')
    op.drop_index('ix_content_library_content_type', table_name='content_library')
    op.drop_table('content_library')

    postgresql.ENUM(name='content_type').drop(op.get_bind(), checkfirst=True)
