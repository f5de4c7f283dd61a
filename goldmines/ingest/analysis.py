# goldmines/ingest/analysis.py
import asyncio
import json
import re
from typing import Any, Dict, List, Optional

import openai
from async_timeout import timeout as async_timeout
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from goldmines.core.exceptions import AnalysisServiceError, ValidationError
from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.ingest.schemas import IdeaDraft, MarketingDraft, SourcePostIn

MIN_IDEA_NAME_LENGTH = 5
MIN_FULL_ANALYSIS_LENGTH = 50
MAX_BODY_CHARS = 4000

TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)

SYSTEM_PROMPT = """You are a startup strategist and business consultant.
Analyze the Reddit post you are given, extract the main pain point and turn it
into ONE structured founder-pack style business idea.

Return a single JSON object with exactly these keys:
{
  "business_idea_name": "catchy 3-8 word title",
  "problem_story": "2-3 sentences describing the real-world pain",
  "solution_vision": "2-3 sentences on what a founder could build and why it is practical",
  "opportunity_points": ["why this is an opportunity now"],
  "problems_solved": ["problems the product removes"],
  "target_customers": ["main customer groups"],
  "market_size": ["$ values in short format, e.g. $2B"],
  "niche": "EXACTLY one of: Business Idea, Marketing Strategy, Case Study",
  "category": "industry, e.g. SaaS, FinTech, EdTech, HealthTech, Productivity",
  "marketing_strategy": ["3-4 actionable marketing tactics"],
  "revenue_model": ["ways to monetize"],
  "competitive_advantage": ["why this beats existing solutions"],
  "next_steps": ["3-4 concrete steps to test or launch"],
  "full_analysis": "a complete narrative analysis of the opportunity (at least one paragraph)"
}

Do not add any text outside the JSON object."""

MARKETING_SYSTEM_PROMPT = """You are a growth marketer.
Analyze the Reddit post you are given and extract ONE concrete, reusable
marketing tactic from it.

Return a single JSON object with exactly these keys:
{
  "marketing_idea_name": "catchy 3-8 word title",
  "idea_description": "2-3 sentences describing the tactic",
  "channel": ["channels where it runs, e.g. Newsletters, TikTok, SEO"],
  "target_audience": ["who the tactic reaches"],
  "potential_impact": "EXACTLY one of: High, Medium, Low",
  "implementation_tips": ["3-4 concrete steps"],
  "success_metrics": ["how to measure it"],
  "full_analysis": "a complete narrative analysis of the tactic (at least one paragraph)"
}

Do not add any text outside the JSON object."""

PRE_FILTER_PROMPTS = {
    "business": (
        "You screen Reddit posts for a business-idea research tool. Decide whether the post "
        "describes a business idea, a startup, a product someone is building, or a concrete "
        "customer pain that a product could solve. Memes and pure venting are not. "
        'Return a JSON object: {"is_match": true|false, "reason": "short"}.'
    ),
    "marketing": (
        "You screen Reddit posts for a marketing-tactics research tool. Decide whether the post "
        "describes a concrete marketing, growth or distribution tactic that someone could reuse. "
        'Return a JSON object: {"is_match": true|false, "reason": "short"}.'
    ),
}
PRE_FILTER_PREFIX = "Classify this post."

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_prompt(post: SourcePostIn) -> str:
    body = post.body or ""
    if len(body) > MAX_BODY_CHARS:
        body = body[:MAX_BODY_CHARS] + "...(truncated)"

    return (
        f"Subreddit: r/{post.feed}\n"
        f"Score: {post.score}\n"
        f"Title: {post.title}\n"
        f"Content:\n{body}"
    )


def parse_json_object(raw: Optional[str]) -> Dict[str, Any]:
    """Respuesta del modelo -> dict; prosa o JSON roto -> AnalysisServiceError."""
    text = _FENCE.sub("", (raw or "").strip()).strip()
    if not text:
        raise AnalysisServiceError("Empty response from analysis service")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisServiceError("Analysis service returned a non-JSON response", error=str(e)) from e

    if not isinstance(payload, dict):
        raise AnalysisServiceError("Analysis service returned JSON that is not an object")
    return payload


def parse_draft(raw: Optional[str]) -> IdeaDraft:
    try:
        return IdeaDraft.model_validate(parse_json_object(raw))
    except PydanticValidationError as e:
        raise AnalysisServiceError("Analysis response does not match the idea schema", error=str(e)) from e


def parse_marketing_draft(raw: Optional[str]) -> MarketingDraft:
    try:
        return MarketingDraft.model_validate(parse_json_object(raw))
    except PydanticValidationError as e:
        raise AnalysisServiceError("Analysis response does not match the marketing schema", error=str(e)) from e


def parse_screen_verdict(raw: Optional[str]) -> bool:
    verdict = parse_json_object(raw).get("is_match")
    if not isinstance(verdict, bool):
        raise AnalysisServiceError("Pre-filter response has no boolean is_match")
    return verdict


def validate_draft(draft: IdeaDraft) -> IdeaDraft:
    analysis_length = len(draft.full_analysis.strip())
    if analysis_length < MIN_FULL_ANALYSIS_LENGTH:
        raise ValidationError(
            "Analysis incomplete - full_analysis is empty or too short",
            error=f"full_analysis length {analysis_length} < {MIN_FULL_ANALYSIS_LENGTH}",
        )

    name_length = len(draft.business_idea_name.strip())
    if name_length < MIN_IDEA_NAME_LENGTH:
        raise ValidationError(
            "Analysis incomplete - business_idea_name is empty or too short",
            error=f"business_idea_name length {name_length} < {MIN_IDEA_NAME_LENGTH}",
        )
    return draft


def validate_marketing_draft(draft: MarketingDraft) -> MarketingDraft:
    name_length = len(draft.marketing_idea_name.strip())
    if name_length < MIN_IDEA_NAME_LENGTH:
        raise ValidationError(
            "Analysis incomplete - marketing_idea_name is empty or too short",
            error=f"marketing_idea_name length {name_length} < {MIN_IDEA_NAME_LENGTH}",
        )
    return draft


def get_openai_client(api_key: str) -> Optional[AsyncOpenAI]:
    if not api_key:
        return None
    return AsyncOpenAI(api_key=api_key, timeout=settings.analysis_timeout)


class AnalysisEngine:
    """Convierte posts en drafts (ideas de negocio o tácticas de marketing) usando un LLM."""

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client if client is not None else get_openai_client(
            settings.openai_api_key.get_secret_value()
        )
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.openai_max_tokens
        self.timeout = timeout or settings.analysis_timeout

    # ------------------------------------------------------------------
    # Pre-filtro: ¿el post contiene una idea?
    # ------------------------------------------------------------------
    async def pre_filter(self, post: SourcePostIn, kind: str = "business") -> bool:
        if kind not in PRE_FILTER_PROMPTS:
            raise ValidationError(f"Unknown pre-filter kind: {kind}")

        prompt = f"{PRE_FILTER_PREFIX}\n\n{build_prompt(post)}"
        raw = await self._call(post, prompt, PRE_FILTER_PROMPTS[kind])
        return parse_screen_verdict(raw)

    async def screen(self, posts: List[SourcePostIn], kind: str = "business") -> List[SourcePostIn]:
        """Posts que el pre-filtro acepta; si el pre-filtro falla el post pasa."""
        kept: List[SourcePostIn] = []
        for post in posts:
            try:
                if not await self.pre_filter(post, kind):
                    logger.info("Post %s descartado por el pre-filtro (%s)", post.external_id, kind)
                    continue
            except AnalysisServiceError as e:
                logger.warning("Pre-filtro falló para %s, se conserva: %s", post.external_id, e.message)
            kept.append(post)

        logger.info("🎯 Pre-filtro %s: %s de %s posts", kind, len(kept), len(posts))
        return kept

    # ------------------------------------------------------------------
    # Ideas de negocio
    # ------------------------------------------------------------------
    async def analyze(self, posts: List[SourcePostIn]) -> List[IdeaDraft]:
        drafts: List[IdeaDraft] = []
        for post in posts:
            try:
                drafts.append(await self.analyze_one(post))
            except AnalysisServiceError as e:
                logger.warning("Post %s sin draft: %s", post.external_id, e.message)
                continue

        logger.info("✅ %s drafts de %s posts", len(drafts), len(posts))
        return drafts

    async def analyze_one(self, post: SourcePostIn) -> IdeaDraft:
        raw = await self._call(post, build_prompt(post), SYSTEM_PROMPT)
        draft = parse_draft(raw)
        draft.source = post
        return draft

    # ------------------------------------------------------------------
    # Ideas de marketing
    # ------------------------------------------------------------------
    async def analyze_marketing_one(self, post: SourcePostIn) -> MarketingDraft:
        raw = await self._call(post, build_prompt(post), MARKETING_SYSTEM_PROMPT)
        draft = parse_marketing_draft(raw)
        draft.source = post
        return draft

    # ------------------------------------------------------------------
    # LLM
    # ------------------------------------------------------------------
    async def _call(self, post: SourcePostIn, prompt: str, system_prompt: str) -> Optional[str]:
        if self.client is None:
            raise AnalysisServiceError("OpenAI API key is not configured")

        try:
            async with async_timeout(self.timeout):
                return await self._complete(prompt, system_prompt)
        except asyncio.TimeoutError as e:
            raise AnalysisServiceError("Analysis service timed out") from e
        except Exception as e:
            logger.error("LLM call failed for post %s", post.external_id, exc_info=True)
            raise AnalysisServiceError("Analysis service request failed", error=str(e)) from e

    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _complete(self, prompt: str, system_prompt: str = SYSTEM_PROMPT) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
