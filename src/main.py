"""Entry point for the real-time phone voice bridge."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.dependencies import build_greeting_cache
from api.routes import router as api_router
from api.stream_routes import media_stream
from config.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    greeting = build_greeting_cache()
    app.state.greeting_cache = greeting
    # Warm in the background so the server accepts calls right away.
    warmup = asyncio.create_task(greeting.ensure_ready())
    try:
        yield
    finally:
        warmup.cancel()
        await greeting.close()


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="Voice Bridge",
    description="Real-time phone call mediator: speech in, spoken replies out.",
    lifespan=lifespan,
)
app.include_router(api_router)
app.add_api_websocket_route(settings.stream_path, media_stream, name="media_stream")


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
