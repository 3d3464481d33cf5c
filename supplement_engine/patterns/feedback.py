"""Outcome feedback and browsing for stored supplement patterns."""

import logging
from typing import TYPE_CHECKING, List, Optional

from supplement_engine.patterns.model import SupplementPattern

if TYPE_CHECKING:
    from supplement_engine.database.repository import PatternRepository

logger = logging.getLogger(__name__)


def record_pattern_outcome(
    repository: "PatternRepository",
    pattern_id: str,
    approved: bool,
) -> SupplementPattern:
    """
    Record whether a supplement recommended from a pattern was approved.

    Args:
        repository: Pattern store
        pattern_id: Stored pattern id
        approved: True for an approval, False for a rejection

    Returns:
        Updated pattern with recomputed approval rate and confidence

    Raises:
        PatternNotFoundError: If no pattern has this id
    """
    pattern = repository.record_outcome(pattern_id, approved)
    logger.info(
        f"Recorded {'approval' if approved else 'rejection'} for pattern {pattern_id} "
        f"(confidence now {pattern.confidence_score})"
    )
    return pattern


def list_patterns(
    repository: "PatternRepository",
    vehicle_make: Optional[str] = None,
    vehicle_model: Optional[str] = None,
    min_confidence: int = 0,
    limit: int = 50,
) -> List[SupplementPattern]:
    """Browse stored patterns, highest confidence first."""
    return repository.list_patterns(
        vehicle_make=vehicle_make,
        vehicle_model=vehicle_model,
        min_confidence=min_confidence,
        limit=limit,
    )
