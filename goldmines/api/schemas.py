from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# =========================================================
# REQUESTS
# =========================================================

class GenerateIdeaIn(BaseModel):
    idea_description: Optional[str] = None


class BookmarkIn(BaseModel):
    user_id: Optional[str] = None
    item_type: Optional[str] = None
    item_id: Optional[int] = None


class IngestIn(BaseModel):
    feeds: Optional[List[str]] = None
    limit_per_feed: Optional[int] = Field(None, ge=1, le=100)


class MarketingIdeasIn(BaseModel):
    limit: Optional[int] = Field(None, ge=1, le=100)
    feeds: Optional[List[str]] = None


class SignupIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None


# =========================================================
# PUBLIC API (CLIENT SAFE)
# =========================================================

class BusinessIdeaOut(BaseModel):
    id: int
    source_post_id: int
    business_idea_name: str
    opportunity_points: List[str]
    problems_solved: List[str]
    target_customers: List[str]
    market_size: List[str]
    niche: str
    category: str
    marketing_strategy: List[str]
    analysis_status: str
    full_analysis: str

    problem_story: Optional[str] = None
    solution_vision: Optional[str] = None
    revenue_model: List[str] = []
    competitive_advantage: List[str] = []
    next_steps: List[str] = []

    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MarketingIdeaOut(BaseModel):
    id: int
    source_post_id: int
    marketing_idea_name: str
    idea_description: str
    channel: List[str]
    target_audience: List[str]
    potential_impact: str
    implementation_tips: List[str]
    success_metrics: List[str]
    category: str
    full_analysis: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SavedItemOut(BaseModel):
    id: int
    item_type: str
    title: str
    summary: str
    category: str
    niche: Optional[str] = None
    saved_at: Optional[datetime] = None


class UserProfileOut(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    subscription_status: str
    subscription_plan: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =========================================================
# ENVELOPES
# =========================================================

class GenerateIdeaOut(BaseModel):
    success: bool = True
    message: str
    business_idea: BusinessIdeaOut


class BookmarkOut(BaseModel):
    success: bool = True
    action: str
    message: str


class SavedItemsOut(BaseModel):
    success: bool = True
    saved_items: List[SavedItemOut]


class MarketingIdeaCreatedOut(BaseModel):
    success: bool = True
    message: str
    marketing_idea: MarketingIdeaOut


class BusinessIdeaListOut(BaseModel):
    success: bool = True
    total: int
    items: List[BusinessIdeaOut]
    limit: int
    offset: int
    has_more: bool


class MarketingIdeaListOut(BaseModel):
    success: bool = True
    total: int
    items: List[MarketingIdeaOut]
    limit: int
    offset: int
    has_more: bool


class SignupOut(BaseModel):
    success: bool = True
    message: str
    user: UserProfileOut
