"""Evaluate trigger rules against an estimate."""

import logging
from datetime import datetime
from typing import List, Optional

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.features.extractors import extract_features
from supplement_engine.model import EstimateContext, TriggerConditionResult
from supplement_engine.triggers.model import TriggerFacts, TriggerRule
from supplement_engine.triggers.rules import TRIGGER_RULES

logger = logging.getLogger(__name__)


def build_facts(
    context: EstimateContext,
    scoring: ScoringConfig,
    current_year: Optional[int] = None,
) -> TriggerFacts:
    """Compute the shared inputs of every trigger rule once per estimate."""
    current_year = current_year or datetime.now().year
    vehicle_age = current_year - context.vehicle_year if context.vehicle_year else None
    return TriggerFacts(
        context=context,
        features=extract_features(context),
        vehicle_age=vehicle_age,
        scoring=scoring,
        description=(context.damage_description or "").lower(),
        item_descriptions=tuple((item.description or "").lower() for item in context.items),
    )


def suggested_amount_for_trigger(condition: str, estimate_total: float, scoring: ScoringConfig) -> float:
    """
    Suggested supplement amount for a fired trigger.

    Rate-based conditions scale with the estimate total; the rest use a fixed
    typical cost. Unknown conditions fall back to the default amount.
    """
    if condition in scoring.trigger_amount_rates:
        return round(float(estimate_total or 0) * scoring.trigger_amount_rates[condition], 2)
    return float(scoring.trigger_fixed_amounts.get(condition, scoring.default_trigger_amount))


def check_trigger_conditions(
    context: EstimateContext,
    scoring: Optional[ScoringConfig] = None,
    current_year: Optional[int] = None,
    rules: Optional[List[TriggerRule]] = None,
) -> List[TriggerConditionResult]:
    """
    Evaluate every trigger rule against an estimate.

    Args:
        context: Estimate being analyzed
        scoring: Scoring configuration (defaults to global config)
        current_year: Year used for vehicle age (defaults to today)
        rules: Rule table (defaults to TRIGGER_RULES)

    Returns:
        One result per fired rule, in rule table order
    """
    scoring = scoring or get_config().scoring
    facts = build_facts(context, scoring, current_year=current_year)

    results = []
    for rule in rules if rules is not None else TRIGGER_RULES:
        reason = rule.check(facts)
        if reason is None:
            continue
        results.append(TriggerConditionResult(
            condition=rule.condition,
            met=True,
            confidence=scoring.trigger_confidence.get(rule.condition, 0),
            reason=reason,
            suggested_documentation=list(rule.documentation),
        ))

    logger.debug(
        f"Estimate {context.id}: triggers fired {[r.condition for r in results]}"
    )
    return results
