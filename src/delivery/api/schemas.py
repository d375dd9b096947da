"""Pydantic response schemas for the Delivery API."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    domain: str
