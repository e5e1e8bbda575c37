"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from productqa.api.v1 import documents, health, qa

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(qa.router, prefix="/qa", tags=["qa"])
api_v1_router.include_router(documents.router, prefix="/documents", tags=["documents"])
