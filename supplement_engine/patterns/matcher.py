"""Cascading lookup of historical supplement patterns for an estimate."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Dict, List, Optional

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.exceptions import PatternLookupError
from supplement_engine.features.extractors import EstimateFeatures, extract_features
from supplement_engine.model import EstimateContext, Slot, to_slot
from supplement_engine.patterns.model import PatternMatch, SupplementPattern
from supplement_engine.patterns.scoring import combined_confidence, context_match_score

if TYPE_CHECKING:
    from supplement_engine.database.repository import PatternRepository

logger = logging.getLogger(__name__)


def build_queries(context: EstimateContext, features: EstimateFeatures) -> List[Dict[str, Slot]]:
    """
    Build query levels from most to least specific.

    1. Same make, model, year, location and damage type
    2. Same make and model, any year
    3. Same make, any model/year
    4. Any vehicle, same location and damage type
    """
    make = to_slot(context.vehicle_make)
    model = to_slot(context.vehicle_model)
    year = to_slot(context.vehicle_year)
    return [
        {
            "vehicle_make": make,
            "vehicle_model": model,
            "vehicle_year": year,
            "damage_location": features.damage_location,
            "damage_type": features.damage_type,
        },
        {
            "vehicle_make": make,
            "vehicle_model": model,
            "damage_location": features.damage_location,
        },
        {
            "vehicle_make": make,
            "damage_location": features.damage_location,
        },
        {
            "damage_location": features.damage_location,
            "damage_type": features.damage_type,
        },
    ]


class PatternMatcher:
    """Finds and scores stored patterns that fit an estimate."""

    def __init__(
        self,
        repository: "PatternRepository",
        scoring: Optional[ScoringConfig] = None,
    ):
        """
        Initialize matcher.

        Args:
            repository: Pattern store
            scoring: Scoring configuration (defaults to global config)
        """
        self.repository = repository
        self.scoring = scoring or get_config().scoring

    def _query(self, criteria: Dict[str, Slot], min_confidence: int) -> List[SupplementPattern]:
        try:
            return self.repository.query_patterns(
                criteria, min_confidence=min_confidence, limit=self.scoring.pattern_query_limit
            )
        except PatternLookupError:
            raise
        except Exception as e:
            raise PatternLookupError(f"Pattern lookup failed: {e}") from e

    def _run_queries(
        self, queries: List[Dict[str, Slot]], min_confidence: int
    ) -> List[List[SupplementPattern]]:
        """Run every level; results are returned in level order."""
        if self.scoring.parallel_pattern_queries:
            with ThreadPoolExecutor(max_workers=len(queries)) as executor:
                futures = [executor.submit(self._query, q, min_confidence) for q in queries]
                return [future.result() for future in futures]

        results = []
        accumulated = 0
        for query in queries:
            patterns = self._query(query, min_confidence)
            results.append(patterns)
            accumulated += len(patterns)
            if accumulated >= self.scoring.pattern_target_count:
                break
        return results

    def find_candidates(
        self,
        context: EstimateContext,
        min_confidence: int,
        features: Optional[EstimateFeatures] = None,
    ) -> List[SupplementPattern]:
        """
        Collect candidate patterns, most specific level first, deduplicated by id.

        Args:
            context: Estimate being analyzed
            min_confidence: Minimum stored confidence score
            features: Pre-computed estimate features

        Returns:
            Unique candidate patterns

        Raises:
            PatternLookupError: If the store cannot be read
        """
        features = features or extract_features(context)
        queries = build_queries(context, features)

        accumulated: List[SupplementPattern] = []
        for patterns in self._run_queries(queries, min_confidence):
            accumulated.extend(patterns)
            if len(accumulated) >= self.scoring.pattern_target_count:
                break

        unique: Dict[str, SupplementPattern] = {}
        for pattern in accumulated:
            # First occurrence is the finest-grained match
            unique.setdefault(pattern.id, pattern)
        return list(unique.values())

    def match(
        self,
        context: EstimateContext,
        min_confidence: Optional[int] = None,
    ) -> List[PatternMatch]:
        """
        Score candidate patterns against the estimate.

        Args:
            context: Estimate being analyzed
            min_confidence: Minimum stored and blended confidence (defaults to config)

        Returns:
            Pattern matches whose blended confidence clears min_confidence
        """
        if min_confidence is None:
            min_confidence = self.scoring.min_confidence
        features = extract_features(context)

        matches = []
        for pattern in self.find_candidates(context, min_confidence, features=features):
            if pattern.confidence_score < min_confidence:
                continue
            context_score = context_match_score(pattern, context, features, self.scoring)
            confidence = combined_confidence(pattern.confidence_score, context_score)
            if confidence < min_confidence:
                continue
            matches.append(PatternMatch(
                pattern=pattern,
                context_match_score=context_score,
                combined_confidence=confidence,
            ))

        logger.debug(f"Estimate {context.id}: {len(matches)} pattern match(es)")
        return matches
