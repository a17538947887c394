"""Token reference-data schemas"""

from decimal import Decimal

from pydantic import BaseModel, Field


class TokenTypeCreate(BaseModel):
    """New token kind"""
    name: str = Field(..., min_length=1, max_length=50)
    status_default: int = Field(..., ge=1)
    time_span_default: Decimal = Field(..., description="Lifetime in days, fractional allowed")


class TokenStatusCreate(BaseModel):
    """New token status"""
    name: str = Field(..., min_length=1, max_length=50)
