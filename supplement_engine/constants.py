"""Constants for supplement detection."""


class AmountBucket:
    """Estimate total bands used for pattern grouping."""
    LOW = "$0-2K"
    MID_LOW = "$2K-5K"
    MID_HIGH = "$5K-10K"
    HIGH = "$10K+"

    ALL = (LOW, MID_LOW, MID_HIGH, HIGH)


class DamageLocation:
    """Damage location categories."""
    FRONT_END = "Front End"
    REAR_END = "Rear End"
    LEFT_FRONT = "Left Front"
    RIGHT_FRONT = "Right Front"
    LEFT_REAR = "Left Rear"
    RIGHT_REAR = "Right Rear"
    ROOF = "Roof"
    UNDERCARRIAGE = "Undercarriage"
    MULTIPLE = "Multiple"


class DamageType:
    """Damage type categories."""
    IMPACT = "Impact"
    SCRAPE = "Scrape"
    DENT = "Dent"
    CRACK = "Crack"
    SHATTER = "Shatter"
    BEND = "Bend"
    TEAR = "Tear"
    BURN = "Burn"
    WATER = "Water"
    RUST = "Rust"


class SupplementType:
    """Supplement type classes derived from trigger text."""
    FRAME = "Frame"
    MECHANICAL = "Mechanical"
    ELECTRICAL = "Electrical"
    CORROSION = "Corrosion"
    HIDDEN_DAMAGE = "Hidden Damage"
    PART_AVAILABILITY = "Part Availability"
    ADDITIONAL_LABOR = "Additional Labor"
    PAINT_BLEND = "Paint Blend"
    SUBLET = "Sublet"
    OTHER = "Other"


class SupplementCategory:
    """Line item / supplement category values."""
    LABOR = "labor"
    PARTS = "parts"
    PAINT = "paint"
    OTHER = "other"

    ALL = (LABOR, PARTS, PAINT, OTHER)


class Priority:
    """Suggestion priority values, in display order."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    ORDER = {HIGH: 0, MEDIUM: 1, LOW: 2}


class Timing:
    """When during the repair a suggestion applies."""
    PRE_DISASSEMBLY = "pre-disassembly"
    DURING_REPAIR = "during-repair"
    POST_REPAIR = "post-repair"


class TriggerCondition:
    """Fixed trigger condition identifiers."""
    HIGH_IMPACT_COLLISION = "high_impact_collision"
    WATER_FLOOD_EXPOSURE = "water_flood_exposure"
    AGE_RELATED_ISSUES = "age_related_issues"
    PART_AVAILABILITY = "part_availability"
    FRAME_DAMAGE_LIKELY = "frame_damage_likely"
    AIRBAG_DEPLOYMENT = "airbag_deployment"
    ELECTRICAL_EXPOSURE = "electrical_exposure"
    CORROSION_RISK = "corrosion_risk"
    STRUCTURAL_COMPROMISE = "structural_compromise"
    SENSOR_REPLACEMENT = "sensor_replacement"
    HIDDEN_DAMAGE_LIKELY = "hidden_damage_likely"


class MiningMode:
    """How the pattern miner writes aggregates back to the store."""
    ACCUMULATE = "accumulate"
    RECOMPUTE = "recompute"

    ALL = (ACCUMULATE, RECOMPUTE)


# Recommended documentation per supplement type
DOCUMENTATION_BY_SUPPLEMENT_TYPE = {
    SupplementType.FRAME: [
        "Frame measurements (before/after)",
        "Photos of damage to frame rails",
        "Centering gauge readings",
    ],
    SupplementType.MECHANICAL: [
        "Photos of mechanical components",
        "Diagnostic reports",
        "Part failure evidence",
    ],
    SupplementType.ELECTRICAL: [
        "Wiring diagrams",
        "Diagnostic trouble codes",
        "Photos of damaged wiring",
    ],
    SupplementType.CORROSION: [
        "Photos showing extent of rust",
        "Probe test results",
        "Before/after metal treatment",
    ],
    SupplementType.HIDDEN_DAMAGE: [
        "Disassembly photos",
        "Before/after comparison",
        "Detailed damage description",
    ],
    SupplementType.PART_AVAILABILITY: [
        "Part availability research",
        "Supplier communications",
        "Alternative options explored",
    ],
    SupplementType.ADDITIONAL_LABOR: [
        "Time tracking documentation",
        "Photos showing complexity",
        "Justification for extra hours",
    ],
    SupplementType.PAINT_BLEND: [
        "Color match photos",
        "Adjacent panel photos",
        "Blend area justification",
    ],
    SupplementType.OTHER: [
        "Detailed photos",
        "Written description",
        "Supporting documentation",
    ],
}
