"""
Purpose:
- Pydantic models for the relay's JSON bodies so the API is self-documenting and stable.
"""

from __future__ import annotations
from pydantic import BaseModel, Field

class InsightsResponse(BaseModel):
    insights: str = Field(..., description="Model text, passed through unchanged")

class ErrorResponse(BaseModel):
    error: str
