"""
Common Pydantic schemas for API responses.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""
    error: str
    code: str


class HealthCheckResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = "0.1.0"
    services: Dict[str, str] = Field(
        default_factory=lambda: {
            "database": "healthy",
            "api": "healthy"
        }
    )
    error: Optional[str] = None


class OnlineCountResponse(BaseModel):
    count: int


class SuccessResponse(BaseModel):
    success: bool = True
