import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from goldmines.api.deps import AnalysisDep, GatewayDep, MarketingGeneratorDep, require_internal_key
from goldmines.api.schemas import (
    BusinessIdeaListOut,
    BusinessIdeaOut,
    GenerateIdeaIn,
    GenerateIdeaOut,
    MarketingIdeaCreatedOut,
    MarketingIdeaListOut,
    MarketingIdeaOut,
    MarketingIdeasIn,
)
from goldmines.core.exceptions import ValidationError
from goldmines.core.logger import logger
from goldmines.ingest.analysis import validate_draft
from goldmines.ingest.schemas import SourcePostIn

router = APIRouter()

USER_GENERATED_FEED = "entrepreneur"
USER_GENERATED_AUTHOR = "User Generated"


def user_generated_post(description: str) -> SourcePostIn:
    """Post sintético para el camino "generar idea desde descripción"."""
    return SourcePostIn(
        external_id=f"user_generated_{uuid.uuid4().hex}",
        title=description[:100],
        body=description,
        feed=USER_GENERATED_FEED,
        author=USER_GENERATED_AUTHOR,
        created_utc=time.time(),
    )


# ---------------------------------------------------------
# POST /generate-idea
# ---------------------------------------------------------
@router.post("/generate-idea", response_model=GenerateIdeaOut)
async def generate_idea(body: GenerateIdeaIn, gateway: GatewayDep, engine: AnalysisDep):
    description = (body.idea_description or "").strip()
    if not description:
        raise ValidationError("Business idea description is required")

    logger.info("🚀 Generating business idea from user input: %s", description[:50])

    post = user_generated_post(description)
    draft = validate_draft(await engine.analyze_one(post))

    stored_post = await gateway.save_source_post(post)
    idea = await gateway.save_business_idea(draft, stored_post.id)
    logger.info("✅ User-generated business idea saved: %s", idea.id)

    return GenerateIdeaOut(
        message="Business idea generated and saved successfully",
        business_idea=BusinessIdeaOut.model_validate(idea),
    )


# ---------------------------------------------------------
# GET /business-ideas (público)
# ---------------------------------------------------------
@router.get("/business-ideas", response_model=BusinessIdeaListOut)
async def read_business_ideas(
    gateway: GatewayDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    total, ideas = await gateway.list_business_ideas(limit=limit, offset=offset)
    return BusinessIdeaListOut(
        total=total,
        items=[BusinessIdeaOut.model_validate(i) for i in ideas],
        limit=limit,
        offset=offset,
        has_more=offset + len(ideas) < total,
    )


@router.get("/business-ideas/{idea_id}", response_model=BusinessIdeaOut)
async def read_business_idea(idea_id: int, gateway: GatewayDep):
    return BusinessIdeaOut.model_validate(await gateway.get_business_idea(idea_id))


# ---------------------------------------------------------
# GET /marketing-ideas (público)
# ---------------------------------------------------------
@router.get("/marketing-ideas", response_model=MarketingIdeaListOut)
async def read_marketing_ideas(
    gateway: GatewayDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    total, ideas = await gateway.list_marketing_ideas(limit=limit, offset=offset)
    return MarketingIdeaListOut(
        total=total,
        items=[MarketingIdeaOut.model_validate(i) for i in ideas],
        limit=limit,
        offset=offset,
        has_more=offset + len(ideas) < total,
    )


# ---------------------------------------------------------
# POST /marketing-ideas (interno): analiza una táctica nueva
# ---------------------------------------------------------
@router.post(
    "/marketing-ideas",
    response_model=MarketingIdeaCreatedOut,
    dependencies=[Depends(require_internal_key)],
)
async def create_marketing_idea(generator: MarketingGeneratorDep, body: Optional[MarketingIdeasIn] = None):
    body = body or MarketingIdeasIn()
    logger.info("📣 POST /marketing-ideas - limit=%s", body.limit)

    idea = await generator.run(limit=body.limit, feeds=body.feeds)
    return MarketingIdeaCreatedOut(
        message="Marketing idea analyzed and saved successfully",
        marketing_idea=MarketingIdeaOut.model_validate(idea),
    )
