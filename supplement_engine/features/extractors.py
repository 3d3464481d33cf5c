"""Categorical feature extraction for estimates and supplement triggers.

The same functions feed both the pattern miner and the pattern matcher, so a
pattern mined from history and an estimate being scored are always described
with identical vocabularies.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

from supplement_engine.constants import (
    AmountBucket,
    DamageLocation,
    DamageType,
    SupplementCategory,
    SupplementType,
)
from supplement_engine.model import EstimateContext, Slot, normalize_category, to_slot

# (location, substrings) evaluated in order; first match wins.
# "Multiple" (front AND rear) is handled before this table.
# The corner abbreviations are plain substrings, so "surface" reads as Right Front
# and "mirror" as Right Rear; mined patterns depend on these exact labels.
LOCATION_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (DamageLocation.FRONT_END, ("front end", "front bumper")),
    (DamageLocation.REAR_END, ("rear end", "rear bumper")),
    (DamageLocation.LEFT_FRONT, ("left front", "lf")),
    (DamageLocation.RIGHT_FRONT, ("right front", "rf")),
    (DamageLocation.LEFT_REAR, ("left rear", "lr")),
    (DamageLocation.RIGHT_REAR, ("right rear", "rr")),
    (DamageLocation.ROOF, ("roof",)),
    (DamageLocation.UNDERCARRIAGE, ("undercarriage", "underneath")),
)

DAMAGE_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (DamageType.IMPACT, ("impact", "collision", "hit")),
    (DamageType.SCRAPE, ("scrape", "scratch")),
    (DamageType.DENT, ("dent",)),
    (DamageType.CRACK, ("crack",)),
    (DamageType.SHATTER, ("shatter", "broken")),
    (DamageType.BEND, ("bend", "bent")),
    (DamageType.TEAR, ("tear", "torn")),
    (DamageType.BURN, ("burn", "fire")),
    (DamageType.WATER, ("water", "flood")),
    (DamageType.RUST, ("rust", "corrosion")),
)

SUPPLEMENT_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (SupplementType.FRAME, ("frame", "unibody", "rail")),
    (SupplementType.MECHANICAL, ("engine", "transmission", "mechanical")),
    (SupplementType.ELECTRICAL, ("electrical", "wiring", "sensor")),
    (SupplementType.CORROSION, ("rust", "corrosion", "rot")),
    (SupplementType.HIDDEN_DAMAGE, ("hidden", "discovered", "disassembly")),
)
PART_AVAILABILITY_WORDS = ("delay", "unavailable", "discontinued")
LATE_SUPPLEMENT_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (SupplementType.ADDITIONAL_LABOR, ("additional labor", "extra time")),
    (SupplementType.PAINT_BLEND, ("blend", "paint match")),
    (SupplementType.SUBLET, ("sublet", "outsource")),
)


@dataclass(frozen=True)
class EstimateFeatures:
    """Categorical features of one estimate, as tagged slots."""

    damage_location: Slot
    damage_type: Slot
    amount_bucket: str


def _first_match(text: str, rules: Iterable[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    for label, needles in rules:
        if any(needle in text for needle in needles):
            return label
    return None


def _item_description(item: Any) -> str:
    if isinstance(item, dict):
        description = item.get("description")
    else:
        description = getattr(item, "description", None)
    return (description or "").lower()


def _item_type(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        return item.get("type")
    return getattr(item, "type", None)


def amount_bucket(total: float) -> str:
    """Place an estimate total into one of four disjoint bands."""
    if total < 2000:
        return AmountBucket.LOW
    if total < 5000:
        return AmountBucket.MID_LOW
    if total < 10000:
        return AmountBucket.MID_HIGH
    return AmountBucket.HIGH


def damage_location(damage_description: Optional[str], items: Sequence[Any]) -> Optional[str]:
    """Infer damage location from the description and line item descriptions."""
    text = (damage_description or "").lower()
    item_text = " ".join(_item_description(item) for item in items or ())
    combined = f"{text} {item_text}"

    if "front" in combined and "rear" in combined:
        return DamageLocation.MULTIPLE
    return _first_match(combined, LOCATION_RULES)


def damage_type(damage_description: Optional[str]) -> Optional[str]:
    """Infer damage type from the description."""
    if not damage_description:
        return None
    return _first_match(damage_description.lower(), DAMAGE_TYPE_RULES)


def supplement_type(trigger: Optional[str]) -> str:
    """Classify supplement trigger text, falling back to Other."""
    text = (trigger or "").lower()

    label = _first_match(text, SUPPLEMENT_TYPE_RULES)
    if label:
        return label
    if "part" in text and any(word in text for word in PART_AVAILABILITY_WORDS):
        return SupplementType.PART_AVAILABILITY
    return _first_match(text, LATE_SUPPLEMENT_TYPE_RULES) or SupplementType.OTHER


def supplement_category(items: Optional[Sequence[Any]]) -> str:
    """Category of a supplement, taken from its first line item."""
    if not items:
        return SupplementCategory.OTHER
    return normalize_category(_item_type(items[0]))


def extract_features(context: EstimateContext) -> EstimateFeatures:
    """Compute the matching features for an estimate."""
    return EstimateFeatures(
        damage_location=to_slot(damage_location(context.damage_description, context.items)),
        damage_type=to_slot(damage_type(context.damage_description)),
        amount_bucket=amount_bucket(context.total),
    )
