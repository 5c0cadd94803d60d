"""Topics domain Pydantic V2 schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ClassifyRequest(BaseModel):
    text: str | None = Field(default=None, description="Free text to classify.")
    title: str | None = Field(default=None, description="Optional post title, joined with text.")
    summary: str | None = Field(default=None, description="Optional post summary, joined with text.")


class ClassifyResponse(BaseModel):
    topics: list[str] = Field(description="Matched topic labels, sorted. Empty when nothing matches.")
