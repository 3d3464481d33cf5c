"""
Supplement recommendation engine.

For one estimate:
1. Evaluate pre-disassembly trigger rules
2. Look up and score historical patterns
3. Convert both into suggestions, rank them and keep the top N
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.constants import Priority
from supplement_engine.model import EstimateContext, SupplementSuggestion
from supplement_engine.patterns.matcher import PatternMatcher
from supplement_engine.patterns.scoring import round_half_up
from supplement_engine.recommendations.composer import from_pattern, from_trigger, rank
from supplement_engine.triggers.evaluator import check_trigger_conditions

if TYPE_CHECKING:
    from supplement_engine.database.repository import PatternRepository

logger = logging.getLogger(__name__)


@dataclass
class RecommendationOptions:
    """Per-request switches for recommendation generation."""

    include_pre_disassembly: bool = True
    include_during_repair: bool = True
    min_confidence: Optional[int] = None  # None uses ScoringConfig.min_confidence


@dataclass
class RecommendationSummary:
    """Aggregate figures for a list of suggestions."""

    total_count: int = 0
    high_priority_count: int = 0
    estimated_total_amount: float = 0.0
    avg_confidence: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "total_count": self.total_count,
            "high_priority_count": self.high_priority_count,
            "estimated_total_amount": self.estimated_total_amount,
            "avg_confidence": self.avg_confidence,
        }


class SupplementRecommendationEngine:
    """Generates ranked supplement suggestions for estimates."""

    def __init__(
        self,
        repository: "PatternRepository",
        scoring: Optional[ScoringConfig] = None,
        current_year: Optional[int] = None,
    ):
        """
        Initialize engine.

        Args:
            repository: Pattern store
            scoring: Scoring configuration (defaults to global config)
            current_year: Year used for vehicle age (defaults to today)
        """
        self.repository = repository
        self.scoring = scoring or get_config().scoring
        self.current_year = current_year
        self.matcher = PatternMatcher(repository, scoring=self.scoring)

    def trigger_suggestions(self, context: EstimateContext, min_confidence: int) -> List[SupplementSuggestion]:
        suggestions = []
        triggers = check_trigger_conditions(
            context, scoring=self.scoring, current_year=self.current_year
        )
        for trigger in triggers:
            if not trigger.met or trigger.confidence < min_confidence:
                continue
            suggestions.append(from_trigger(trigger, context.total, self.scoring))
        return suggestions

    def pattern_suggestions(
        self,
        context: EstimateContext,
        min_confidence: int,
        include_during_repair: bool = True,
    ) -> List[SupplementSuggestion]:
        matches = self.matcher.match(context, min_confidence=min_confidence)
        return [
            from_pattern(match, self.scoring, include_during_repair=include_during_repair)
            for match in matches
        ]

    def generate(
        self,
        context: EstimateContext,
        options: Optional[RecommendationOptions] = None,
    ) -> List[SupplementSuggestion]:
        """
        Generate ranked supplement suggestions for an estimate.

        Args:
            context: Estimate being analyzed
            options: Request options

        Returns:
            Up to max_suggestions suggestions, highest priority first

        Raises:
            PatternLookupError: If the pattern store cannot be read
        """
        options = options or RecommendationOptions()
        min_confidence = (
            options.min_confidence if options.min_confidence is not None
            else self.scoring.min_confidence
        )

        suggestions: List[SupplementSuggestion] = []
        if options.include_pre_disassembly:
            suggestions.extend(self.trigger_suggestions(context, min_confidence))
        suggestions.extend(
            self.pattern_suggestions(
                context, min_confidence, include_during_repair=options.include_during_repair
            )
        )

        ranked = rank(suggestions, self.scoring)
        logger.info(
            f"Estimate {context.id}: {len(ranked)} suggestion(s) "
            f"from {len(suggestions)} candidate(s)"
        )
        return ranked


def generate_recommendations(
    context: EstimateContext,
    repository: "PatternRepository",
    options: Optional[RecommendationOptions] = None,
    scoring: Optional[ScoringConfig] = None,
    current_year: Optional[int] = None,
) -> List[SupplementSuggestion]:
    """
    Generate ranked supplement suggestions for an estimate.

    Args:
        context: Estimate being analyzed
        repository: Pattern store
        options: Request options
        scoring: Scoring configuration (defaults to global config)
        current_year: Year used for vehicle age (defaults to today)

    Returns:
        Ranked suggestions; an empty list when nothing applies
    """
    engine = SupplementRecommendationEngine(repository, scoring=scoring, current_year=current_year)
    return engine.generate(context, options)


def summarize_recommendations(suggestions: List[SupplementSuggestion]) -> RecommendationSummary:
    """Aggregate figures shown alongside a suggestion list."""
    if not suggestions:
        return RecommendationSummary()

    total_confidence = sum(s.confidence for s in suggestions)
    return RecommendationSummary(
        total_count=len(suggestions),
        high_priority_count=sum(1 for s in suggestions if s.priority == Priority.HIGH),
        estimated_total_amount=round(sum(s.suggested_amount for s in suggestions), 2),
        avg_confidence=round_half_up(total_confidence / len(suggestions)),
    )
