"""Health payload returned by /api/health."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus a database round-trip result."""

    status: Literal["ok"] = Field(default="ok", description="Always 'ok' when the app answers")
    environment: str = Field(description="APP_ENV the server runs with (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Outcome of a SELECT 1 against the configured database",
    )
