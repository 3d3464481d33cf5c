"""Confidence and context-match scoring for supplement patterns."""

import math
import uuid
from datetime import datetime
from typing import Optional

from supplement_engine.config import ScoringConfig
from supplement_engine.features.extractors import EstimateFeatures
from supplement_engine.model import EstimateContext, Known, slots_match, to_slot
from supplement_engine.patterns.model import PatternDelta, PatternKey, SupplementPattern


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores."""
    return int(math.floor(value + 0.5))


def approval_rate_percent(approval_count: int, rejection_count: int) -> float:
    decided = approval_count + rejection_count
    return (approval_count / decided) * 100 if decided else 0.0


def confidence_score(
    approval_count: int,
    rejection_count: int,
    frequency_count: int,
    scoring: ScoringConfig,
) -> int:
    """
    Confidence (0-100) of a stored pattern.

    The approval rate is weighted by how much evidence backs it: a pattern
    seen once counts at a little over half strength, and reaches full
    strength at ``confidence_support_threshold`` observations.

    Args:
        approval_count: Approved supplements in this pattern
        rejection_count: Rejected supplements in this pattern
        frequency_count: Total observations
        scoring: Scoring configuration

    Returns:
        Integer confidence score
    """
    rate = approval_rate_percent(approval_count, rejection_count)
    threshold = max(scoring.confidence_support_threshold, 1)
    support = min(1.0, frequency_count / threshold)
    score = round_half_up(rate * (0.5 + 0.5 * support))
    return max(0, min(100, score))


def apply_delta(
    existing: Optional[SupplementPattern],
    key: PatternKey,
    delta: PatternDelta,
    scoring: ScoringConfig,
    now: Optional[datetime] = None,
) -> SupplementPattern:
    """
    Merge a mining run's aggregate into a stored pattern.

    New patterns take the delta as-is. Existing patterns either add the
    delta's counts (accumulate) or take the mined frequency and approvals
    verbatim (``delta.replace``). Rejections only come from outcome
    feedback, so a replace keeps the stored rejection count. Averages and
    last-seen time are always refreshed from the delta.
    """
    now = now or datetime.utcnow()

    if existing is None:
        pattern = SupplementPattern(
            id=str(uuid.uuid4()),
            key=key,
            category=delta.category,
            created_at=now,
        )
        frequency, approvals, rejections = (
            delta.frequency_count, delta.approval_count, delta.rejection_count
        )
    else:
        pattern = existing
        if delta.replace:
            frequency, approvals = delta.frequency_count, delta.approval_count
            rejections = existing.rejection_count
        else:
            frequency = existing.frequency_count + delta.frequency_count
            approvals = existing.approval_count + delta.approval_count
            rejections = existing.rejection_count + delta.rejection_count

    pattern.frequency_count = frequency
    pattern.approval_count = approvals
    pattern.rejection_count = rejections
    pattern.avg_amount = delta.avg_amount
    pattern.avg_days_to_approval = delta.avg_days
    pattern.avg_approval_rate = approval_rate_percent(approvals, rejections)
    pattern.confidence_score = confidence_score(approvals, rejections, frequency, scoring)
    pattern.last_seen_at = delta.seen_at or now
    pattern.updated_at = now
    return pattern


def apply_outcome(
    pattern: SupplementPattern,
    approved: bool,
    scoring: ScoringConfig,
    now: Optional[datetime] = None,
) -> SupplementPattern:
    """Record an approval or rejection observed for a recommended pattern."""
    if approved:
        pattern.approval_count += 1
    else:
        pattern.rejection_count += 1
    pattern.avg_approval_rate = approval_rate_percent(
        pattern.approval_count, pattern.rejection_count
    )
    pattern.confidence_score = confidence_score(
        pattern.approval_count, pattern.rejection_count, pattern.frequency_count, scoring
    )
    pattern.updated_at = now or datetime.utcnow()
    return pattern


def year_proximity_points(pattern_year, context_year, scoring: ScoringConfig) -> int:
    if not isinstance(pattern_year, Known) or not isinstance(context_year, Known):
        return 0
    difference = abs(int(pattern_year.value) - int(context_year.value))
    for max_difference, points in scoring.year_proximity_weights:
        if difference <= max_difference:
            return points
    return 0


def context_match_score(
    pattern: SupplementPattern,
    context: EstimateContext,
    features: EstimateFeatures,
    scoring: ScoringConfig,
) -> int:
    """How closely a pattern's profile fits the estimate (0-100)."""
    key = pattern.key
    score = 0

    if slots_match(key.vehicle_make, to_slot(context.vehicle_make)):
        score += scoring.make_weight
    if slots_match(key.vehicle_model, to_slot(context.vehicle_model)):
        score += scoring.model_weight
    score += year_proximity_points(key.vehicle_year, to_slot(context.vehicle_year), scoring)
    if slots_match(key.damage_location, features.damage_location):
        score += scoring.location_weight
    if key.amount_bucket == features.amount_bucket:
        score += scoring.amount_bucket_weight

    return min(score, 100)


def combined_confidence(pattern_confidence: int, context_score: int) -> int:
    """Blend stored pattern confidence with the context match score."""
    return round_half_up((pattern_confidence + context_score) / 2)
