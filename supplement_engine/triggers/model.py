"""Trigger rule definitions and the per-estimate facts they are checked against."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from supplement_engine.config import ScoringConfig
from supplement_engine.features.extractors import EstimateFeatures
from supplement_engine.model import EstimateContext, slot_value


@dataclass(frozen=True)
class TriggerFacts:
    """Pre-computed view of an estimate shared by all trigger rules."""

    context: EstimateContext
    features: EstimateFeatures
    vehicle_age: Optional[int]  # None when the model year is unknown
    scoring: ScoringConfig
    description: str = ""  # lower-cased damage description
    item_descriptions: Tuple[str, ...] = ()  # lower-cased item descriptions

    @property
    def total(self) -> float:
        return float(self.context.total or 0)

    @property
    def location(self) -> Optional[str]:
        return slot_value(self.features.damage_location)

    @property
    def damage_type(self) -> Optional[str]:
        return slot_value(self.features.damage_type)

    def item_mentions(self, *words: str) -> bool:
        """True if any line item description contains any of the words."""
        return any(word in text for text in self.item_descriptions for word in words)

    def description_mentions(self, *words: str) -> bool:
        """True if the damage description contains any of the words."""
        return any(word in self.description for word in words)


@dataclass
class TriggerRule:
    """A single pre-disassembly trigger rule.

    ``check`` returns the human-readable reason when the rule fires and
    None otherwise. Confidence and suggested amount come from ScoringConfig,
    keyed by ``condition``.
    """

    condition: str
    category: str
    check: Callable[[TriggerFacts], Optional[str]]
    documentation: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "condition": self.condition,
            "category": self.category,
            "documentation": list(self.documentation),
        }
