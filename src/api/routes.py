"""HTTP routes: liveness banner and health status."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from agents.greeting import GreetingCache
from api.dependencies import get_greeting_cache_http
from api.schemas import HealthResponse
from config.settings import get_settings

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    return get_settings().service_banner


@router.get("/health", response_model=HealthResponse)
async def health(greeting: GreetingCache = Depends(get_greeting_cache_http)) -> HealthResponse:
    return HealthResponse(greeting_ready=greeting.ready)
