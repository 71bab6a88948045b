"""Initial tables: voice_profiles and generations.

Revision ID: 001_initial_tables
Revises:
Create Date: 2026-10-18

Creates:
- voice_profiles: style preferences, analysis results, status and usage
- generations: input snapshot, lifecycle status, workflow output and metrics

generations.profile_id is deliberately not a foreign key: deleting a profile
clears the reference and keeps the generation.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_initial_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # voice_profiles
    # ==========================================================================
    op.create_table(
        "voice_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("profile_name", sa.String(length=100), nullable=False),
        sa.Column("newsletter_name", sa.String(), nullable=True),
        sa.Column("formality", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("detail_level", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("sentence_style", sa.String(), nullable=True),
        sa.Column("vocabulary_level", sa.String(), nullable=True),
        sa.Column("paragraph_pattern", sa.String(), nullable=True),
        sa.Column("tone", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column(
            "common_phrases",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "avoid_phrases",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("uses_questions", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("uses_data", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("uses_anecdotes", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("uses_metaphors", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("uses_humor", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("samples", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("avg_sentence_length", sa.Float(), nullable=True),
        sa.Column("voice_prompt", sa.Text(), nullable=True),
        sa.Column("system_prompt", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("total_generations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_voice_profiles_user_id", "voice_profiles", ["user_id"])
    op.create_index("ix_voice_profiles_status", "voice_profiles", ["status"])
    op.create_index("ix_voice_profiles_created_at", "voice_profiles", ["created_at"])

    # ==========================================================================
    # generations
    # ==========================================================================
    op.create_table(
        "generations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("profile_id", sa.Uuid(), nullable=True),
        sa.Column("content_type", sa.String(), nullable=True),
        sa.Column("content_source", sa.String(), nullable=False, server_default=""),
        sa.Column("input_data", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("n8n_execution_id", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("newsletters", postgresql.JSONB(), nullable=True),
        sa.Column("google_drive_folder", sa.String(), nullable=True),
        sa.Column("google_drive_files", postgresql.JSONB(), nullable=True),
        sa.Column("execution_time_seconds", sa.Integer(), nullable=True),
        sa.Column("api_cost", sa.Float(), nullable=True),
        sa.Column("word_count_total", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_generations_user_id", "generations", ["user_id"])
    op.create_index("ix_generations_profile_id", "generations", ["profile_id"])
    op.create_index("ix_generations_status", "generations", ["status"])
    op.create_index("ix_generations_created_at", "generations", ["created_at"])


def downgrade() -> None:
    op.drop_table("generations")
    op.drop_table("voice_profiles")
