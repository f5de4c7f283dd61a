# goldmines/ingest/schemas.py
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NICHE_VALUES = ("Business Idea", "Marketing Strategy", "Case Study")
DEFAULT_NICHE = "Business Idea"
IMPACT_VALUES = ("High", "Medium", "Low")
DEFAULT_IMPACT = "Medium"


def coerce_str_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return value


def content_fingerprint(title: str, body: str) -> str:
    """Huella normalizada de título + cuerpo para detectar reposts entre feeds."""
    clean_title = re.sub(r"[^\w\s]", "", title or "").lower().strip()
    clean_body = re.sub(r"[^\w\s]", "", body or "").lower().strip()
    combined = re.sub(r"\s+", " ", f"{clean_title} {clean_body}").strip()
    return combined[:100]


# =========================================================
# SOURCE POSTS
# =========================================================

class SourcePostIn(BaseModel):
    """Post ya normalizado, antes de persistir."""

    external_id: str
    title: str
    body: str = ""
    feed: str
    score: int = 0
    num_comments: int = 0
    url: str = ""
    permalink: str = ""
    created_utc: float = 0
    author: str = "Unknown"

    def content_hash(self) -> str:
        return content_fingerprint(self.title, self.body)


# =========================================================
# DRAFTS (salida del motor de análisis)
# =========================================================

class IdeaDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    business_idea_name: str = ""
    opportunity_points: List[str] = Field(default_factory=list)
    problems_solved: List[str] = Field(default_factory=list)
    target_customers: List[str] = Field(default_factory=list)
    market_size: List[str] = Field(default_factory=list)
    niche: str = DEFAULT_NICHE
    category: str = ""
    marketing_strategy: List[str] = Field(default_factory=list)
    full_analysis: str = ""

    problem_story: Optional[str] = None
    solution_vision: Optional[str] = None
    revenue_model: List[str] = Field(default_factory=list)
    competitive_advantage: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)

    source: Optional[SourcePostIn] = Field(default=None, exclude=True)

    @field_validator(
        "opportunity_points",
        "problems_solved",
        "target_customers",
        "market_size",
        "marketing_strategy",
        "revenue_model",
        "competitive_advantage",
        "next_steps",
        mode="before",
    )
    @classmethod
    def coerce_list(cls, value):
        return coerce_str_list(value)

    @field_validator("business_idea_name", "category", "full_analysis", mode="before")
    @classmethod
    def coerce_text(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("niche", mode="before")
    @classmethod
    def normalize_niche(cls, value):
        text = str(value or "").lower()
        for niche in NICHE_VALUES:
            if niche.lower() in text:
                return niche
        return DEFAULT_NICHE

    @model_validator(mode="after")
    def compose_full_analysis(self):
        if not self.full_analysis:
            parts = [p.strip() for p in (self.problem_story, self.solution_vision) if p and p.strip()]
            self.full_analysis = "\n\n".join(parts)
        return self


class MarketingDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    marketing_idea_name: str = ""
    idea_description: str = ""
    channel: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    potential_impact: str = DEFAULT_IMPACT
    implementation_tips: List[str] = Field(default_factory=list)
    success_metrics: List[str] = Field(default_factory=list)
    category: str = "Marketing"
    full_analysis: str = ""

    source: Optional[SourcePostIn] = Field(default=None, exclude=True)

    @field_validator("channel", "target_audience", "implementation_tips", "success_metrics", mode="before")
    @classmethod
    def coerce_list(cls, value):
        return coerce_str_list(value)

    @field_validator("marketing_idea_name", "idea_description", "full_analysis", mode="before")
    @classmethod
    def coerce_text(cls, value):
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, value):
        return str(value or "").strip() or "Marketing"

    @field_validator("potential_impact", mode="before")
    @classmethod
    def normalize_impact(cls, value):
        text = str(value or "").strip().lower()
        for impact in IMPACT_VALUES:
            if text.startswith(impact.lower()):
                return impact
        return DEFAULT_IMPACT

    @model_validator(mode="after")
    def compose_full_analysis(self):
        if not self.full_analysis:
            self.full_analysis = self.idea_description
        return self


# =========================================================
# REPORT
# =========================================================

class PipelineReport(BaseModel):
    fetched: int = 0
    filtered: int = 0
    screened_out: int = 0
    analyzed: int = 0
    rejected: int = 0
    saved: int = 0
    failed: int = 0
    saved_idea_ids: List[int] = Field(default_factory=list)
