# goldmines/api/deps.py
from typing import Annotated, TypeAlias

from fastapi import Depends, Header, HTTPException, Request

from goldmines.core.settings import settings
from goldmines.db.gateway import PersistenceGateway
from goldmines.ingest.analysis import AnalysisEngine
from goldmines.ingest.fetcher import RedditFetcher
from goldmines.ingest.filter import IdeaFilter
from goldmines.ingest.marketing import MarketingIdeaGenerator
from goldmines.ingest.pipeline import IngestionPipeline


# ---------- AUTH INTERNA ----------
def require_internal_key(x_internal_key: str = Header("", alias="X-Internal-Key")) -> None:
    """Endpoints que disparan fetch + LLM: solo con la clave interna."""
    expected = settings.internal_api_key.get_secret_value()
    if not expected or x_internal_key != expected:
        raise HTTPException(status_code=403, detail="Forbidden")

# ---------- STORAGE ----------
def get_gateway(request: Request) -> PersistenceGateway:
    """Gateway abierto en el lifespan de la app."""
    return request.app.state.gateway

GatewayDep: TypeAlias = Annotated[PersistenceGateway, Depends(get_gateway)]

# ---------- ANALYSIS ----------
def get_analysis_engine(request: Request) -> AnalysisEngine:
    return request.app.state.analysis_engine

AnalysisDep: TypeAlias = Annotated[AnalysisEngine, Depends(get_analysis_engine)]

# ---------- PIPELINE ----------
def get_pipeline(gateway: GatewayDep, engine: AnalysisDep) -> IngestionPipeline:
    return IngestionPipeline(
        source=RedditFetcher(),
        idea_filter=IdeaFilter(),
        analyzer=engine,
        store=gateway,
        screener=engine,
    )

PipelineDep: TypeAlias = Annotated[IngestionPipeline, Depends(get_pipeline)]

# ---------- MARKETING ----------
def get_marketing_generator(gateway: GatewayDep, engine: AnalysisDep) -> MarketingIdeaGenerator:
    return MarketingIdeaGenerator(source=RedditFetcher(), analyzer=engine, store=gateway)

MarketingGeneratorDep: TypeAlias = Annotated[MarketingIdeaGenerator, Depends(get_marketing_generator)]
