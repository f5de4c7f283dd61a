from contextlib import asynccontextmanager
import asyncio

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from goldmines.api.deps import GatewayDep
from goldmines.api.routes import auth, bookmarks, ideas, ingest
from goldmines.core.exceptions import AppException
from goldmines.core.logger import logger
from goldmines.core.settings import settings
from goldmines.db.gateway import PersistenceGateway
from goldmines.ingest.analysis import AnalysisEngine


# ------------------------------------------------------------------
# Lifespan: abrir / cerrar el gateway de persistencia
# ------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Goldmines starting...")

    gateway = PersistenceGateway(settings.database_url, create_schema=settings.auto_create_schema)
    try:
        await gateway.open()
    except Exception:
        logger.error("Error opening persistence gateway", exc_info=True)
        raise

    app.state.gateway = gateway
    app.state.analysis_engine = AnalysisEngine()

    yield

    try:
        await gateway.close()
    except Exception:
        logger.error("Error closing persistence gateway", exc_info=True)


app = FastAPI(
    title="Goldmines API",
    version="1.0.0",
    description="AI-generated business ideas from Reddit",
    lifespan=lifespan,
    docs_url="/docs" if settings.env != "prod" else None,
    redoc_url="/redoc" if settings.env != "prod" else None,
)


# ------------------------------------------------------------------
# CORS
# ------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------------
# Exception handlers -> {success: false, message, error?}
# ------------------------------------------------------------------
def error_envelope(status_code: int, message: str, error=None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return error_envelope(exc.status_code, exc.message, exc.error)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(loc) for loc in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return error_envelope(status.HTTP_400_BAD_REQUEST, "Invalid request", "; ".join(errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_envelope(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", exc_info=True)
    return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ------------------------------------------------------------------
# Health check
# ------------------------------------------------------------------
CHECK_TIMEOUT = 5


@app.get("/health", tags=["system"])
async def health(gateway: GatewayDep):
    try:
        async with asyncio.timeout(CHECK_TIMEOUT):
            total, _ = await gateway.list_business_ideas(limit=1)

        return {"status": "ok", "db": "up", "total_business_ideas": total}

    except Exception as e:
        logger.error("Health check failed", exc_info=True)
        detail = str(e) if settings.env != "prod" else "unreachable"

        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "down", "db": "unreachable", "detail": detail},
        )


# ------------------------------------------------------------------
# Readiness check
# ------------------------------------------------------------------
@app.get("/ready", tags=["system"])
async def ready(gateway: GatewayDep):
    try:
        async with asyncio.timeout(CHECK_TIMEOUT):
            await gateway.ping()

        return {"status": "ready"}

    except Exception as e:
        logger.error("Readiness check failed", exc_info=True)
        detail = str(e) if settings.env != "prod" else "not_ready"

        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "detail": detail},
        )


# ------------------------------------------------------------------
# Routers
# ------------------------------------------------------------------
app.include_router(ideas.router, prefix="/api", tags=["Ideas"])
app.include_router(bookmarks.router, prefix="/api", tags=["Bookmarks"])
app.include_router(ingest.router, prefix="/api", tags=["Ingestion"])
app.include_router(auth.router, prefix="/api", tags=["Auth"])
