"""init goldmines schema

Revision ID: 5b1f0c2a9d3e
Revises:
Create Date: 2026-10-18 10:12:44.301552
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1f0c2a9d3e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "source_posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("feed", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("body", sa.String(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("num_comments", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("permalink", sa.String(), nullable=False),
        sa.Column("created_utc", sa.Float(), nullable=False),
        sa.Column("author", sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", "feed", name="uq_source_posts_external_feed"),
    )
    op.create_index(op.f("ix_source_posts_external_id"), "source_posts", ["external_id"])
    op.create_index(op.f("ix_source_posts_feed"), "source_posts", ["feed"])

    op.create_table(
        "business_ideas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_post_id", sa.Integer(), nullable=False),
        sa.Column("business_idea_name", sa.String(length=255), nullable=False),
        sa.Column("opportunity_points", sa.JSON(), nullable=False),
        sa.Column("problems_solved", sa.JSON(), nullable=False),
        sa.Column("target_customers", sa.JSON(), nullable=False),
        sa.Column("market_size", sa.JSON(), nullable=False),
        sa.Column("niche", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("marketing_strategy", sa.JSON(), nullable=False),
        sa.Column(
            "analysis_status",
            sa.Enum("pending", "completed", "failed", name="analysisstatus"),
            nullable=False,
        ),
        sa.Column("full_analysis", sa.String(), nullable=False),
        sa.Column("problem_story", sa.String(), nullable=True),
        sa.Column("solution_vision", sa.String(), nullable=True),
        sa.Column("revenue_model", sa.JSON(), nullable=False),
        sa.Column("competitive_advantage", sa.JSON(), nullable=False),
        sa.Column("next_steps", sa.JSON(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["source_post_id"], ["source_posts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_business_ideas_source_post_id"), "business_ideas", ["source_post_id"])

    op.create_table(
        "marketing_ideas",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_post_id", sa.Integer(), nullable=False),
        sa.Column("marketing_idea_name", sa.String(length=255), nullable=False),
        sa.Column("idea_description", sa.String(), nullable=False),
        sa.Column("channel", sa.JSON(), nullable=False),
        sa.Column("target_audience", sa.JSON(), nullable=False),
        sa.Column("potential_impact", sa.String(length=10), nullable=False),
        sa.Column("implementation_tips", sa.JSON(), nullable=False),
        sa.Column("success_metrics", sa.JSON(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("full_analysis", sa.String(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["source_post_id"], ["source_posts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_marketing_ideas_source_post_id"), "marketing_ideas", ["source_post_id"])

    op.create_table(
        "saved_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("item_type", sa.Enum("business", "marketing", name="itemtype"), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "item_type", "item_id", name="uq_saved_items_user_item"),
    )
    op.create_index(op.f("ix_saved_items_user_id"), "saved_items", ["user_id"])

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("subscription_status", sa.String(length=20), nullable=False),
        sa.Column("subscription_plan", sa.String(length=50), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("user_profiles")
    op.drop_index(op.f("ix_saved_items_user_id"), table_name="saved_items")
    op.drop_table("saved_items")
    op.drop_index(op.f("ix_marketing_ideas_source_post_id"), table_name="marketing_ideas")
    op.drop_table("marketing_ideas")
    op.drop_index(op.f("ix_business_ideas_source_post_id"), table_name="business_ideas")
    op.drop_table("business_ideas")
    op.drop_index(op.f("ix_source_posts_feed"), table_name="source_posts")
    op.drop_index(op.f("ix_source_posts_external_id"), table_name="source_posts")
    op.drop_table("source_posts")
