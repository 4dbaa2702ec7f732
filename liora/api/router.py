"""
Main API router for Liora

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from liora.api.endpoints import interview, memo, metadata

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    memo.router,
    prefix="/memo",
    tags=["Memo"]
)

api_router.include_router(
    metadata.router,
    prefix="/metadata",
    tags=["Metadata"]
)
