"""Supplement pattern API router: mining, browsing and outcome feedback."""

import logging
import threading
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_repository, get_scoring_config
from api.exceptions import MiningInProgressError
from api.models.requests import ExtractPatternsRequest, PatternOutcomeRequest
from api.models.responses import MiningResultResponse, PatternResponse, PatternsResponse
from supplement_engine.config import ScoringConfig
from supplement_engine.database.repository import PatternRepository
from supplement_engine.patterns.feedback import list_patterns, record_pattern_outcome
from supplement_engine.patterns.miner import extract_supplement_patterns

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/supplements/patterns", tags=["patterns"])

# Serializes mining runs within this process
_mining_lock = threading.Lock()


@router.get("", response_model=PatternsResponse)
def get_patterns(
    vehicle_make: Optional[str] = Query(None, description="Filter by vehicle make"),
    vehicle_model: Optional[str] = Query(None, description="Filter by vehicle model"),
    min_confidence: int = Query(0, ge=0, le=100, description="Minimum confidence score"),
    limit: int = Query(50, ge=1, le=500, description="Maximum patterns to return"),
    repository: PatternRepository = Depends(get_repository),
):
    """
    Browse stored supplement patterns, highest confidence first.

    Args:
        vehicle_make: Optional make filter
        vehicle_model: Optional model filter
        min_confidence: Minimum confidence score
        limit: Maximum results
        repository: Pattern store dependency

    Returns:
        Matching patterns
    """
    patterns = list_patterns(
        repository,
        vehicle_make=vehicle_make,
        vehicle_model=vehicle_model,
        min_confidence=min_confidence,
        limit=limit,
    )
    return PatternsResponse(patterns=[p.to_dict() for p in patterns], count=len(patterns))


@router.post("/extract", response_model=MiningResultResponse)
def extract_patterns(
    request: Optional[ExtractPatternsRequest] = None,
    repository: PatternRepository = Depends(get_repository),
    scoring: ScoringConfig = Depends(get_scoring_config),
):
    """
    Run pattern mining over approved supplement history.

    Args:
        request: Optional mode and approved_after high-water mark
        repository: Pattern store dependency
        scoring: Scoring configuration dependency

    Returns:
        Mining result with created/updated counts and per-pattern failures

    Raises:
        MiningInProgressError: If another run is in progress (handled as 409)
        HTTPException: If the configured mode cannot be combined with approved_after
    """
    request = request or ExtractPatternsRequest()
    if not _mining_lock.acquire(blocking=False):
        raise MiningInProgressError("Pattern mining is already running")
    try:
        result = extract_supplement_patterns(
            repository,
            mode=request.mode,
            approved_after=request.approved_after,
            scoring=scoring,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        _mining_lock.release()

    return MiningResultResponse(**result.to_dict())


@router.post("/{pattern_id}/outcome", response_model=PatternResponse)
def record_outcome(
    pattern_id: str,
    request: PatternOutcomeRequest,
    repository: PatternRepository = Depends(get_repository),
):
    """
    Record whether a supplement suggested from this pattern was approved.

    Args:
        pattern_id: Stored pattern id
        request: Outcome
        repository: Pattern store dependency

    Returns:
        Updated pattern

    Raises:
        PatternNotFoundError: If the pattern does not exist (handled as 404)
    """
    pattern = record_pattern_outcome(repository, pattern_id, request.approved)
    return PatternResponse(pattern=pattern.to_dict())
