"""
Pydantic schemas for dashboard responses.
"""
from pydantic import BaseModel, Field


class StatsResponse(BaseModel):
    """Role-specific counters; the set of keys depends on the caller's role."""
    stats: dict[str, int] = Field(default_factory=dict)
