"""baseline_init_schema

Revision ID: 000000000000
Revises: 
Create Date: 2026-10-19 00:00:00.000000

Creates the books corpus and the append-only emotion_records log.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "000000000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'emotiontype') THEN
                CREATE TYPE emotiontype AS ENUM ('happy', 'sad', 'calm', 'excited');
            END IF;
        END
        $$;
    """)

    op.create_table(
        "books",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_url", sa.String(), nullable=True),
        sa.Column(
            "emotions",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "emotion_tags",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_books_title", "books", ["title"])

    op.create_table(
        "emotion_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "emotion_type",
            postgresql.ENUM("happy", "sad", "calm", "excited", name="emotiontype", create_type=False),
            nullable=False,
        ),
        sa.Column("emotion_score", sa.Integer(), nullable=False, server_default="5"),
        sa.Column(
            "selected_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("emotion_score BETWEEN 1 AND 10", name="ck_emotion_records_score_range"),
    )
    op.create_index("ix_emotion_records_user_id", "emotion_records", ["user_id"])
    op.create_index("ix_emotion_records_selected_at", "emotion_records", ["selected_at"])


def downgrade() -> None:
    op.drop_index("ix_emotion_records_selected_at", table_name="emotion_records")
    op.drop_index("ix_emotion_records_user_id", table_name="emotion_records")
    op.drop_table("emotion_records")
    op.drop_index("ix_books_title", table_name="books")
    op.drop_table("books")
    op.execute("DROP TYPE IF EXISTS emotiontype")
