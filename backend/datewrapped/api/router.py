"""API router aggregation"""
from fastapi import APIRouter

from datewrapped.api.endpoints import auth, entries, stats, wrapped

api_router = APIRouter()

# Auth
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Dating entries
api_router.include_router(entries.router, prefix="/entries", tags=["entries"])

# Stats
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])

# Wrapped slides
api_router.include_router(wrapped.router, prefix="/wrapped", tags=["wrapped"])
