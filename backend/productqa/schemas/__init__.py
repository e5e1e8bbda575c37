"""Pydantic schemas for API request/response validation."""

from productqa.schemas.qa import (
    DocumentRequest,
    GenerateQARequest,
    HealthCheckResponse,
    QAItemIn,
    ResearchRequest,
    ResearchResponse,
)

__all__ = [
    "DocumentRequest",
    "GenerateQARequest",
    "HealthCheckResponse",
    "QAItemIn",
    "ResearchRequest",
    "ResearchResponse",
]
