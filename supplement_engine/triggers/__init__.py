"""Pre-disassembly trigger rules."""

from supplement_engine.triggers.evaluator import check_trigger_conditions, suggested_amount_for_trigger
from supplement_engine.triggers.model import TriggerFacts, TriggerRule
from supplement_engine.triggers.rules import TRIGGER_RULES, get_rule

__all__ = [
    "TRIGGER_RULES",
    "TriggerFacts",
    "TriggerRule",
    "check_trigger_conditions",
    "get_rule",
    "suggested_amount_for_trigger",
]
