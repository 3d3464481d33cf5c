"""Pydantic response models for the supplement advisor API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class SuggestionResponse(BaseModel):
    """A single ranked supplement suggestion."""

    id: str
    trigger: str
    category: str
    confidence: int
    suggested_amount: float
    justification: str
    documentation_needed: List[str]
    related_patterns: List[Dict[str, Any]]
    priority: str
    timing: str


class RecommendationSummaryResponse(BaseModel):
    """Aggregate figures for a suggestion list."""

    total_count: int
    high_priority_count: int
    estimated_total_amount: float
    avg_confidence: int


class RecommendationsResponse(BaseModel):
    """Response model for recommendation generation."""

    estimate_id: str
    suggestions: List[SuggestionResponse]
    summary: RecommendationSummaryResponse


class PatternsResponse(BaseModel):
    """Response model for pattern browsing."""

    patterns: List[Dict[str, Any]]
    count: int


class PatternResponse(BaseModel):
    """Response model for a single pattern."""

    pattern: Dict[str, Any]


class MiningResultResponse(BaseModel):
    """Response model for a pattern mining run."""

    success: bool
    patterns_created: int
    patterns_updated: int
    supplements_processed: int
    supplements_skipped: int
    failures: List[Dict[str, Any]]
    error: Optional[str] = None
