"""Supplement recommendation generation."""

from supplement_engine.recommendations.engine import (
    RecommendationOptions,
    RecommendationSummary,
    SupplementRecommendationEngine,
    generate_recommendations,
    summarize_recommendations,
)

__all__ = [
    "RecommendationOptions",
    "RecommendationSummary",
    "SupplementRecommendationEngine",
    "generate_recommendations",
    "summarize_recommendations",
]
