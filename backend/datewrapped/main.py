"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from datewrapped.api.router import api_router
from datewrapped.core.config import settings
from datewrapped.core.database import init_db, close_db, wait_for_database
from datewrapped.core.errors import DatingWrappedError
from datewrapped.core.startup_checks import validate_production_settings
from datewrapped.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    validate_production_settings(settings)
    await wait_for_database()
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title="Dating Wrapped API",
    description="Dating history log, stats and AI generated wrapped slides",
    version="0.1.0",
    lifespan=lifespan,
)

allowed_methods = ["*"] if settings.DEBUG else ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
allowed_headers = ["*"] if settings.DEBUG else ["Authorization", "Content-Type"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=allowed_methods,
    allow_headers=allowed_headers,
)

app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    route_limits={"/api/wrapped/generate": settings.GENERATE_RATE_LIMIT_PER_MINUTE},
)


@app.exception_handler(DatingWrappedError)
async def domain_error_handler(request: Request, exc: DatingWrappedError):
    if exc.status_code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": "0.1.0"}
