# backend/app/schemas/health.py
"""Response schemas for operational endpoints."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    timestamp: str


class DatabaseHealthResponse(BaseModel):
    status: str
    database: str
    booking_schema_ready: bool
