"""Supplement recommendation engine for repair estimates."""

from supplement_engine.database import InMemoryPatternRepository, PatternRepository, SQLAlchemyPatternRepository
from supplement_engine.model import EstimateContext, EstimateItem, SupplementSuggestion
from supplement_engine.patterns.feedback import list_patterns, record_pattern_outcome
from supplement_engine.patterns.miner import extract_supplement_patterns
from supplement_engine.recommendations import (
    RecommendationOptions,
    generate_recommendations,
    summarize_recommendations,
)
from supplement_engine.triggers import check_trigger_conditions

__all__ = [
    "EstimateContext",
    "EstimateItem",
    "InMemoryPatternRepository",
    "PatternRepository",
    "RecommendationOptions",
    "SQLAlchemyPatternRepository",
    "SupplementSuggestion",
    "check_trigger_conditions",
    "extract_supplement_patterns",
    "generate_recommendations",
    "list_patterns",
    "record_pattern_outcome",
    "summarize_recommendations",
]
