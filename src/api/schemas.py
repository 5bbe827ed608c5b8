"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    greeting_ready: bool = Field(description="Whether the opening line is already rendered.")
