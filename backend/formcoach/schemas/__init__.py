"""Pydantic schemas for API request/response models."""

from formcoach.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    FormAnalysisResponse,
    RecommendationResponse,
    AngleMetricsResponse,
    AsymmetryResponse,
    IssueMarkerResponse,
    SummaryResponse,
    SportDetectionResponse,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "FormAnalysisResponse",
    "RecommendationResponse",
    "AngleMetricsResponse",
    "AsymmetryResponse",
    "IssueMarkerResponse",
    "SummaryResponse",
    "SportDetectionResponse",
]
