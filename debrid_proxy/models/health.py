"""
Health check schemas.

Dependencies: pydantic
System role: Health API contracts
"""

from pydantic import BaseModel


class HealthStatus(BaseModel):
    """Liveness payload."""

    status: str
    uptime: float
    timestamp: str


class DatabaseHealthStatus(BaseModel):
    """Database connectivity payload."""

    status: str
    database: str
