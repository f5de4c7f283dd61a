from typing import List

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FEEDS = [
    "Entrepreneur",
    "indiehackers",
    "sidehustle",
    "SideProject",
    "startups",
    "smallbusiness",
    "SaaS",
    "microsaas",
]

MARKETING_FEEDS = [
    "marketing",
    "digital_marketing",
    "GrowthHacking",
    "marketinghacks",
    "ContentMarketing",
    "socialmedia",
    "advertising",
    "Entrepreneur",
    "startups",
]

DEFAULT_KEYWORDS = [
    "business", "startup", "entrepreneur", "saas", "app", "product", "service",
    "company", "market", "revenue", "profit", "customer", "client", "user",
    "idea", "opportunity", "venture", "investment", "funding", "launch",
    "indie", "side hustle", "passive income", "freelance", "consulting",
]


class PipelineConfig(BaseModel):
    """Datos de configuración del pipeline de ingesta (no código)."""

    feeds: List[str] = Field(default_factory=lambda: list(DEFAULT_FEEDS))
    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    limit_per_feed: int = Field(10, ge=1)


class Settings(BaseSettings):
    env: str = "dev"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./goldmines.db"
    auto_create_schema: bool = True

    internal_api_key: SecretStr = SecretStr("")

    # OpenAI
    openai_api_key: SecretStr = SecretStr("")
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.2
    openai_max_tokens: int = 2000
    analysis_timeout: float = 60.0

    # Reddit
    feeds: List[str] = Field(default_factory=lambda: list(DEFAULT_FEEDS))
    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    limit_per_feed: int = 10
    reddit_time_window: str = "month"
    reddit_page_size: int = 25
    reddit_max_pages: int = 4
    inter_feed_delay: float = 2.0
    rate_limit_backoff: float = 5.0
    request_timeout: float = 15.0
    user_agent: str = "goldmines/1.0 (business idea research)"

    # Marketing
    marketing_feeds: List[str] = Field(default_factory=lambda: list(MARKETING_FEEDS))
    marketing_limit: int = 10

    model_config = SettingsConfigDict(env_file=".env", env_prefix="GOLDMINES_")

    def pipeline_config(self) -> PipelineConfig:
        return PipelineConfig(
            feeds=self.feeds,
            keywords=self.keywords,
            limit_per_feed=self.limit_per_feed,
        )


settings = Settings()
