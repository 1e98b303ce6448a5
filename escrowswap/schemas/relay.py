"""Frames exchanged over the relay WebSocket."""

from typing import Any

from pydantic import BaseModel, Field


class RelayFrame(BaseModel):
    """Envelope for every frame: {"event": ..., "data": {...}}."""

    event: str = Field(..., min_length=1, max_length=32)
    data: dict[str, Any] = Field(default_factory=dict)


class JoinEvent(BaseModel):
    """Client `join` payload."""

    code: str = Field(default="", max_length=64)
    name: str = Field(default="", max_length=64)


class MessageEvent(BaseModel):
    """Client `msg` payload."""

    code: str = Field(default="", max_length=64)
    text: str = ""
