from __future__ import annotations

from fastapi import APIRouter

from candlescope.api.patterns import router as patterns_router

api_router = APIRouter(prefix="/api")
api_router.include_router(patterns_router)
