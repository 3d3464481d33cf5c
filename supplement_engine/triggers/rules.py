"""
Pre-disassembly trigger rules.

Rules are evaluated independently and in table order; several may fire for
the same estimate. Thresholds come from ScoringConfig.
"""

from typing import List, Optional

from supplement_engine.constants import (
    DamageLocation,
    DamageType,
    SupplementCategory,
    TriggerCondition,
)
from supplement_engine.triggers.model import TriggerFacts, TriggerRule


def format_amount(amount: float) -> str:
    """Format a dollar amount with thousands separators, dropping zero cents."""
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def _high_impact_collision(facts: TriggerFacts) -> Optional[str]:
    if facts.total < facts.scoring.high_impact_total:
        return None
    if facts.location not in (DamageLocation.FRONT_END, DamageLocation.REAR_END):
        return None
    return (
        f"High-value estimate (${format_amount(facts.total)}) "
        f"with {facts.location.lower()} damage"
    )


def _airbag_deployment(facts: TriggerFacts) -> Optional[str]:
    if facts.item_mentions("airbag"):
        return "Airbag deployment indicates significant impact force"
    return None


def _water_flood_exposure(facts: TriggerFacts) -> Optional[str]:
    if facts.description_mentions("water", "flood"):
        return "Water exposure can cause hidden electrical/mechanical damage"
    return None


def _age_related_issues(facts: TriggerFacts) -> Optional[str]:
    if facts.vehicle_age is None or facts.vehicle_age < facts.scoring.older_vehicle_age:
        return None
    return (
        f"Vehicle is {facts.vehicle_age} years old - "
        f"increased risk of corrosion and frozen bolts"
    )


def _frame_damage_likely(facts: TriggerFacts) -> Optional[str]:
    if facts.item_mentions("frame", "rail", "unibody"):
        return "Frame/unibody work listed in estimate"
    if facts.total >= facts.scoring.frame_damage_total:
        return "High estimate value suggests potential structural damage"
    return None


def _sensor_replacement(facts: TriggerFacts) -> Optional[str]:
    if facts.item_mentions("sensor", "radar", "camera"):
        return "ADAS sensor replacement often requires calibration supplements"
    return None


def _corrosion_risk(facts: TriggerFacts) -> Optional[str]:
    if facts.vehicle_age is None or facts.vehicle_age < facts.scoring.corrosion_vehicle_age:
        return None
    if facts.description_mentions("rust", "corrosion"):
        return "Visible corrosion with older vehicle suggests hidden rust damage"
    return None


def _part_availability(facts: TriggerFacts) -> Optional[str]:
    if facts.context.vehicle_make in facts.scoring.luxury_makes:
        return "Luxury vehicle parts may have lead times or require alternative solutions"
    if facts.vehicle_age is not None and facts.vehicle_age >= facts.scoring.discontinued_parts_age:
        return "Older vehicle parts may be discontinued or hard to source"
    return None


def _electrical_exposure(facts: TriggerFacts) -> Optional[str]:
    words = ("wiring", "harness", "electrical", "battery")
    if facts.item_mentions(*words) or facts.description_mentions(*words):
        return "Electrical components involved - harness and module damage is often found after disassembly"
    return None


def _structural_compromise(facts: TriggerFacts) -> Optional[str]:
    if facts.item_mentions("pillar", "rocker", "strut tower", "apron", "crossmember"):
        return "Structural components listed in estimate"
    if facts.location == DamageLocation.MULTIPLE and facts.total >= facts.scoring.structural_total:
        return "Damage to multiple areas on a high-value estimate suggests structural involvement"
    return None


def _hidden_damage_likely(facts: TriggerFacts) -> Optional[str]:
    if facts.damage_type not in (DamageType.IMPACT, DamageType.BEND):
        return None
    if facts.total < facts.scoring.hidden_damage_total:
        return None
    return (
        f"{facts.damage_type} damage on a ${format_amount(facts.total)} estimate "
        f"often conceals damage behind outer panels"
    )


TRIGGER_RULES: List[TriggerRule] = [
    TriggerRule(
        condition=TriggerCondition.HIGH_IMPACT_COLLISION,
        category=SupplementCategory.LABOR,
        check=_high_impact_collision,
        documentation=[
            "Photos of frame rails",
            "Photos of subframe",
            "Measurements of any deformation",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.AIRBAG_DEPLOYMENT,
        category=SupplementCategory.OTHER,
        check=_airbag_deployment,
        documentation=[
            "Photos of dash/steering column",
            "Photos of sensors",
            "Check for frame damage",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.WATER_FLOOD_EXPOSURE,
        category=SupplementCategory.OTHER,
        check=_water_flood_exposure,
        documentation=[
            "Photos of carpet/padding",
            "Photos of electrical components",
            "Document water line height",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.AGE_RELATED_ISSUES,
        category=SupplementCategory.LABOR,
        check=_age_related_issues,
        documentation=[
            "Photos of any rust or corrosion",
            "Document condition of fasteners",
            "Additional labor if disassembly difficult",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.FRAME_DAMAGE_LIKELY,
        category=SupplementCategory.LABOR,
        check=_frame_damage_likely,
        documentation=[
            "Detailed frame measurements",
            "Photos of all frame rails",
            "Centering gauge readings",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.SENSOR_REPLACEMENT,
        category=SupplementCategory.PARTS,
        check=_sensor_replacement,
        documentation=[
            "Calibration requirements",
            "Specialized equipment needs",
            "Additional labor estimates",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.CORROSION_RISK,
        category=SupplementCategory.LABOR,
        check=_corrosion_risk,
        documentation=[
            "Photos of all rust areas",
            "Probe/test suspect areas",
            "Document extent of corrosion",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.PART_AVAILABILITY,
        category=SupplementCategory.PARTS,
        check=_part_availability,
        documentation=[
            "Part availability research",
            "Alternative part options",
            "Lead time estimates",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.ELECTRICAL_EXPOSURE,
        category=SupplementCategory.OTHER,
        check=_electrical_exposure,
        documentation=[
            "Wiring diagrams",
            "Diagnostic trouble codes",
            "Photos of harness routing and connectors",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.STRUCTURAL_COMPROMISE,
        category=SupplementCategory.LABOR,
        check=_structural_compromise,
        documentation=[
            "Structural measurements",
            "Photos of pillars, rockers and aprons",
            "OEM structural repair procedures",
        ],
    ),
    TriggerRule(
        condition=TriggerCondition.HIDDEN_DAMAGE_LIKELY,
        category=SupplementCategory.LABOR,
        check=_hidden_damage_likely,
        documentation=[
            "Disassembly photos",
            "Photos behind bumper covers and panels",
            "Detailed damage description",
        ],
    ),
]


def get_rule(condition: str) -> TriggerRule:
    """Look up a rule by condition id."""
    for rule in TRIGGER_RULES:
        if rule.condition == condition:
            return rule
    raise ValueError(f"Unknown trigger condition: {condition}")
