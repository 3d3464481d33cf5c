"""Data models shared by the trigger rules, the matcher and the composer."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union

from supplement_engine.constants import SupplementCategory

if TYPE_CHECKING:
    from supplement_engine.patterns.model import SupplementPattern


class _AnyValue:
    """Wildcard marker: the field is unknown in source data and unconstrained in a key."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "ANY"

    def __reduce__(self):
        return (_AnyValue, ())


ANY = _AnyValue()


@dataclass(frozen=True)
class Known:
    """A field value that was actually observed."""

    value: Any

    def __repr__(self):
        return f"Known({self.value!r})"


Slot = Union[Known, _AnyValue]


def to_slot(value: Any) -> Slot:
    """Wrap a raw value, treating None and blank strings as ANY."""
    if value is None:
        return ANY
    if isinstance(value, str) and not value.strip():
        return ANY
    return Known(value)


def slot_value(slot: Slot) -> Any:
    """Unwrap a slot to its raw value (None for ANY)."""
    return slot.value if isinstance(slot, Known) else None


def slots_match(left: Slot, right: Slot) -> bool:
    """True only when both slots are known and equal."""
    return isinstance(left, Known) and isinstance(right, Known) and left.value == right.value


@dataclass(frozen=True)
class EstimateItem:
    """Single estimate line item."""

    type: str
    description: str
    quantity: float = 1
    unit_price: float = 0.0
    total: float = 0.0
    category: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total": self.total,
            "category": self.category,
        }


@dataclass(frozen=True)
class EstimateContext:
    """Read-only view of an estimate for one recommendation request."""

    id: str
    total: float
    vehicle_make: str
    vehicle_model: str
    vehicle_year: int
    vin: Optional[str] = None
    damage_description: Optional[str] = None
    items: Tuple[EstimateItem, ...] = ()
    photo_count: int = 0
    insurance_company: Optional[str] = None
    has_insurance_submission: bool = False

    def __post_init__(self):
        # Callers may pass a list; store a tuple so the context stays immutable
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))


@dataclass
class TriggerConditionResult:
    """Outcome of one trigger rule for an estimate."""

    condition: str
    met: bool
    confidence: int
    reason: str
    suggested_documentation: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "condition": self.condition,
            "met": self.met,
            "confidence": self.confidence,
            "reason": self.reason,
            "suggested_documentation": list(self.suggested_documentation),
        }


@dataclass
class SupplementSuggestion:
    """A ranked supplement recommendation shown to shop staff."""

    id: str
    trigger: str
    category: str
    confidence: int
    suggested_amount: float
    justification: str
    documentation_needed: List[str]
    priority: str
    timing: str
    related_patterns: List["SupplementPattern"] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "trigger": self.trigger,
            "category": self.category,
            "confidence": self.confidence,
            "suggested_amount": self.suggested_amount,
            "justification": self.justification,
            "documentation_needed": list(self.documentation_needed),
            "related_patterns": [p.to_dict() for p in self.related_patterns],
            "priority": self.priority,
            "timing": self.timing,
        }


def normalize_category(value: Optional[str]) -> str:
    """Map an arbitrary item type onto one of the supplement categories."""
    value = (value or "").strip().lower()
    return value if value in SupplementCategory.ALL else SupplementCategory.OTHER
