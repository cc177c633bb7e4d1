"""API routes for ZeroBuild."""

from fastapi import APIRouter

from zerobuild.api.generation import router as generation_router
from zerobuild.api.publish import router as publish_router

api_router = APIRouter(prefix="/api")
api_router.include_router(generation_router, tags=["generation"])
api_router.include_router(publish_router, tags=["publish"])

__all__ = ["api_router"]
