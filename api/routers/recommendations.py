"""Supplement recommendation API router."""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_repository, get_scoring_config
from api.models.requests import RecommendationRequest
from api.models.responses import RecommendationsResponse
from supplement_engine.config import ScoringConfig
from supplement_engine.database.repository import PatternRepository
from supplement_engine.recommendations import generate_recommendations, summarize_recommendations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/supplements", tags=["recommendations"])


@router.post("/recommendations", response_model=RecommendationsResponse)
def create_recommendations(
    request: RecommendationRequest,
    repository: PatternRepository = Depends(get_repository),
    scoring: ScoringConfig = Depends(get_scoring_config),
):
    """
    Generate ranked supplement suggestions for an estimate.

    Args:
        request: Estimate and options
        repository: Pattern store dependency
        scoring: Scoring configuration dependency

    Returns:
        Suggestions with a summary

    Raises:
        PatternLookupError: If the pattern store cannot be read (handled as 503)
    """
    context = request.estimate.to_context()
    suggestions = generate_recommendations(
        context,
        repository,
        options=request.options.to_options(),
        scoring=scoring,
    )
    summary = summarize_recommendations(suggestions)
    return RecommendationsResponse(
        estimate_id=context.id,
        suggestions=[s.to_dict() for s in suggestions],
        summary=summary.to_dict(),
    )
