# goldmines/db/models.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint, func
from sqlmodel import Field, SQLModel


class AnalysisStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class ItemType(str, Enum):
    business = "business"
    marketing = "marketing"


class SourcePost(SQLModel, table=True):
    """Post de Reddit (o texto del usuario) del que sale una idea."""

    __tablename__ = "source_posts"
    __table_args__ = (UniqueConstraint("external_id", "feed", name="uq_source_posts_external_feed"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    # Clave natural
    external_id: str = Field(nullable=False, max_length=255, index=True)
    feed: str = Field(nullable=False, max_length=100, index=True)

    title: str = Field(nullable=False)
    body: str = Field(default="")
    score: int = Field(default=0)
    num_comments: int = Field(default=0, ge=0)
    url: str = Field(default="")
    permalink: str = Field(default="")
    created_utc: float = Field(default=0)
    author: str = Field(default="Unknown", max_length=100)

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class BusinessIdea(SQLModel, table=True):
    __tablename__ = "business_ideas"

    id: Optional[int] = Field(default=None, primary_key=True)
    source_post_id: int = Field(foreign_key="source_posts.id", nullable=False, index=True)

    business_idea_name: str = Field(nullable=False, max_length=255)
    opportunity_points: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    problems_solved: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    target_customers: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    market_size: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    niche: str = Field(default="Business Idea", max_length=100)
    category: str = Field(default="", max_length=100)
    marketing_strategy: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    analysis_status: AnalysisStatus = Field(default=AnalysisStatus.pending)
    full_analysis: str = Field(nullable=False)

    # ----- Campos premium -----
    problem_story: Optional[str] = None
    solution_vision: Optional[str] = None
    revenue_model: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    competitive_advantage: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    next_steps: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class MarketingIdea(SQLModel, table=True):
    __tablename__ = "marketing_ideas"

    id: Optional[int] = Field(default=None, primary_key=True)
    source_post_id: int = Field(foreign_key="source_posts.id", nullable=False, index=True)

    marketing_idea_name: str = Field(nullable=False, max_length=255)
    idea_description: str = Field(default="")
    channel: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    target_audience: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    potential_impact: str = Field(default="Medium", max_length=10)
    implementation_tips: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    success_metrics: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    category: str = Field(default="Marketing", max_length=100)
    full_analysis: str = Field(default="")

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class SavedItem(SQLModel, table=True):
    __tablename__ = "saved_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_type", "item_id", name="uq_saved_items_user_item"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, max_length=36, index=True)
    item_type: ItemType = Field(nullable=False)
    item_id: int = Field(nullable=False)

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )


class UserProfile(SQLModel, table=True):
    __tablename__ = "user_profiles"

    id: str = Field(primary_key=True, max_length=36)
    email: str = Field(nullable=False, unique=True, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)
    password_hash: str = Field(nullable=False)

    # Inertes: no hay lógica de billing en este repo
    subscription_status: str = Field(default="free", max_length=20)
    subscription_plan: Optional[str] = Field(default=None, max_length=50)

    created_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=False, server_default=func.now()),
    )
