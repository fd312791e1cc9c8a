from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CompletionRequest(BaseModel):
    completion_time_ms: int = Field(..., ge=0, description="Client-measured elapsed time of the run")


class CompletionResponse(BaseModel):
    trail_id: str
    completion_time_ms: int
    completed_at: datetime
    formatted_time: str


class RecordCompletionResponse(CompletionResponse):
    recorded: bool
