from typing import Optional

from fastapi import APIRouter, Depends

from goldmines.api.deps import PipelineDep, require_internal_key
from goldmines.api.schemas import IngestIn
from goldmines.core.logger import logger

router = APIRouter()


# ---------------------------------------------------------
# POST /reddit (interno): corre el pipeline completo
# ---------------------------------------------------------
@router.post("/reddit", include_in_schema=False, dependencies=[Depends(require_internal_key)])
async def run_ingestion(pipeline: PipelineDep, body: Optional[IngestIn] = None):
    body = body or IngestIn()
    logger.info("POST /reddit - running ingestion pipeline")
    report = await pipeline.run(feeds=body.feeds, limit_per_feed=body.limit_per_feed)

    return {
        "success": True,
        "message": f"Pipeline finished - {report.saved} business ideas saved",
        **report.model_dump(),
    }
