"""API router aggregation."""

from fastapi import APIRouter

from ltnso.api import health

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
