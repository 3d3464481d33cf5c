"""Turn fired triggers and pattern matches into ranked suggestions."""

from typing import List, Optional

from supplement_engine.config import ScoringConfig
from supplement_engine.constants import (
    DOCUMENTATION_BY_SUPPLEMENT_TYPE,
    Priority,
    SupplementType,
    Timing,
)
from supplement_engine.model import SupplementSuggestion, TriggerConditionResult, normalize_category
from supplement_engine.patterns.model import PatternMatch, SupplementPattern
from supplement_engine.triggers.evaluator import suggested_amount_for_trigger
from supplement_engine.triggers.rules import get_rule


def priority_for(confidence: int, scoring: ScoringConfig) -> str:
    """Map a confidence score to a priority band."""
    if confidence >= scoring.high_priority_threshold:
        return Priority.HIGH
    if confidence >= scoring.medium_priority_threshold:
        return Priority.MEDIUM
    return Priority.LOW


def trigger_justification(trigger: TriggerConditionResult) -> str:
    return (
        f"Pre-disassembly analysis indicates potential for additional damage: {trigger.reason}. "
        f"Recommend thorough inspection during disassembly with photo documentation. "
        f"Estimated supplement may be required based on industry patterns for similar repairs."
    )


def pattern_justification(pattern: SupplementPattern) -> str:
    frequency = pattern.frequency_count or 0
    approval_rate = pattern.avg_approval_rate or 0
    plural = "" if frequency == 1 else "s"
    return (
        f"Based on historical data, repairs matching this profile have resulted in supplements "
        f"{frequency} time{plural} with a {approval_rate:.0f}% approval rate. "
        f"Common issue: {pattern.trigger}. "
        f"Recommend pre-inspection and documentation to streamline supplement approval "
        f"if discovered during repair."
    )


def documentation_for_type(supplement_type: Optional[str]) -> List[str]:
    """Recommended documentation for a supplement type, falling back to Other."""
    docs = DOCUMENTATION_BY_SUPPLEMENT_TYPE.get(supplement_type or SupplementType.OTHER)
    if docs is None:
        docs = DOCUMENTATION_BY_SUPPLEMENT_TYPE[SupplementType.OTHER]
    return list(docs)


def from_trigger(
    trigger: TriggerConditionResult,
    estimate_total: float,
    scoring: ScoringConfig,
) -> SupplementSuggestion:
    """Build a pre-disassembly suggestion from a fired trigger."""
    return SupplementSuggestion(
        id=f"trigger_{trigger.condition}",
        trigger=trigger.reason,
        category=get_rule(trigger.condition).category,
        confidence=trigger.confidence,
        suggested_amount=suggested_amount_for_trigger(trigger.condition, estimate_total, scoring),
        justification=trigger_justification(trigger),
        documentation_needed=list(trigger.suggested_documentation),
        priority=priority_for(trigger.confidence, scoring),
        timing=Timing.PRE_DISASSEMBLY,
        related_patterns=[],
    )


def from_pattern(
    match: PatternMatch,
    scoring: ScoringConfig,
    include_during_repair: bool = True,
) -> SupplementSuggestion:
    """Build a suggestion from a scored historical pattern."""
    pattern = match.pattern
    return SupplementSuggestion(
        id=f"pattern_{pattern.id}",
        trigger=pattern.trigger,
        category=normalize_category(pattern.category),
        confidence=match.combined_confidence,
        suggested_amount=float(pattern.avg_amount or 0),
        justification=pattern_justification(pattern),
        documentation_needed=documentation_for_type(pattern.supplement_type),
        priority=priority_for(match.combined_confidence, scoring),
        timing=Timing.DURING_REPAIR if include_during_repair else Timing.PRE_DISASSEMBLY,
        related_patterns=[pattern],
    )


def rank(suggestions: List[SupplementSuggestion], scoring: ScoringConfig) -> List[SupplementSuggestion]:
    """
    Order by priority band, then confidence descending, and keep the top N.

    The sort is stable, so equal suggestions keep their input order
    (triggers before patterns).
    """
    ordered = sorted(
        suggestions,
        key=lambda s: (Priority.ORDER.get(s.priority, len(Priority.ORDER)), -s.confidence),
    )
    return ordered[: scoring.max_suggestions]
