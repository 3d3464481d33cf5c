"""Supplement pattern models and scoring.

The miner and matcher live in ``supplement_engine.patterns.miner`` and
``supplement_engine.patterns.matcher``.
"""

from supplement_engine.patterns.model import (
    ApprovedSupplement,
    EstimateSnapshot,
    MiningResult,
    PatternDelta,
    PatternKey,
    PatternMatch,
    SupplementPattern,
    UpsertFailure,
)

__all__ = [
    "ApprovedSupplement",
    "EstimateSnapshot",
    "MiningResult",
    "PatternDelta",
    "PatternKey",
    "PatternMatch",
    "SupplementPattern",
    "UpsertFailure",
]
