"""Envelope shapes shared by the JSON endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Bare acknowledgement."""

    success: Literal[True] = True


class ErrorResponse(BaseModel):
    """Every JSON failure is reported in this shape."""

    success: Literal[False] = False
    message: str = Field(..., description="User-facing error message")
