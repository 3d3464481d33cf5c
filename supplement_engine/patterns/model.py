"""Data models for supplement pattern mining and matching."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from supplement_engine.model import EstimateItem, Slot, slot_value


@dataclass(frozen=True)
class PatternKey:
    """Grouping key of a supplement pattern.

    Vehicle and damage fields are tagged slots: ``ANY`` means the source
    estimate did not carry that value, and the pattern applies to any value.
    """

    vehicle_make: Slot
    vehicle_model: Slot
    vehicle_year: Slot
    damage_location: Slot
    damage_type: Slot
    amount_bucket: str
    trigger: str
    supplement_type: str

    def token(self) -> str:
        """Pipe-joined key string, used for in-memory grouping."""
        parts = [
            self.vehicle_make,
            self.vehicle_model,
            self.vehicle_year,
            self.damage_location,
            self.damage_type,
        ]
        values = [str(slot_value(p)) if slot_value(p) is not None else "ANY" for p in parts]
        values.extend([self.amount_bucket, self.trigger, self.supplement_type])
        return "|".join(values)

    def to_dict(self) -> dict:
        """Flatten to raw values (None for ANY)."""
        return {
            "vehicle_make": slot_value(self.vehicle_make),
            "vehicle_model": slot_value(self.vehicle_model),
            "vehicle_year": slot_value(self.vehicle_year),
            "damage_location": slot_value(self.damage_location),
            "damage_type": slot_value(self.damage_type),
            "amount_bucket": self.amount_bucket,
            "trigger": self.trigger,
            "supplement_type": self.supplement_type,
        }


@dataclass
class SupplementPattern:
    """Aggregated history of one kind of approved supplement."""

    id: str
    key: PatternKey
    category: str
    frequency_count: int = 0
    approval_count: int = 0
    rejection_count: int = 0
    avg_approval_rate: float = 0.0  # percent
    avg_amount: float = 0.0
    avg_days_to_approval: float = 0.0
    confidence_score: int = 0  # 0-100
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def trigger(self) -> str:
        return self.key.trigger

    @property
    def supplement_type(self) -> str:
        return self.key.supplement_type

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        result = {"id": self.id}
        result.update(self.key.to_dict())
        result.update({
            "category": self.category,
            "frequency_count": self.frequency_count,
            "approval_count": self.approval_count,
            "rejection_count": self.rejection_count,
            "avg_approval_rate": self.avg_approval_rate,
            "avg_amount": self.avg_amount,
            "avg_days_to_approval": self.avg_days_to_approval,
            "confidence_score": self.confidence_score,
            "last_seen_at": self.last_seen_at.isoformat() if self.last_seen_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        })
        return result


@dataclass
class PatternDelta:
    """Aggregates for one pattern key produced by a single mining run."""

    category: str
    frequency_count: int
    approval_count: int
    rejection_count: int = 0
    total_amount: float = 0.0
    total_days: float = 0.0
    seen_at: Optional[datetime] = None
    replace: bool = False
    """Replace stored frequency and approvals instead of adding to them."""

    @property
    def avg_amount(self) -> float:
        return self.total_amount / self.frequency_count if self.frequency_count else 0.0

    @property
    def avg_days(self) -> float:
        return self.total_days / self.frequency_count if self.frequency_count else 0.0

    @property
    def approval_rate(self) -> float:
        decided = self.approval_count + self.rejection_count
        return self.approval_count / decided if decided else 0.0


@dataclass(frozen=True)
class EstimateSnapshot:
    """Estimate fields joined onto a historical supplement."""

    total: float
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    damage_description: Optional[str] = None
    items: Tuple[EstimateItem, ...] = ()


@dataclass(frozen=True)
class ApprovedSupplement:
    """One approved supplement from history, with its originating estimate."""

    id: str
    reason: str
    approved_amount: float
    estimate: Optional[EstimateSnapshot]
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    items: Tuple[Dict[str, Any], ...] = ()

    @property
    def days_to_approval(self) -> float:
        if not self.submitted_at or not self.approved_at:
            return 0.0
        return (self.approved_at - self.submitted_at).total_seconds() / 86400


@dataclass
class UpsertFailure:
    """A pattern aggregate that could not be written."""

    pattern_key: str
    error: str
    error_type: str

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "pattern_key": self.pattern_key,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass
class MiningResult:
    """Summary of one pattern mining run."""

    success: bool
    patterns_created: int = 0
    patterns_updated: int = 0
    supplements_processed: int = 0
    supplements_skipped: int = 0
    failures: List[UpsertFailure] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        result = {
            "success": self.success,
            "patterns_created": self.patterns_created,
            "patterns_updated": self.patterns_updated,
            "supplements_processed": self.supplements_processed,
            "supplements_skipped": self.supplements_skipped,
            "failures": [f.to_dict() for f in self.failures],
        }
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class PatternMatch:
    """A stored pattern scored against one estimate."""

    pattern: SupplementPattern
    context_match_score: int
    combined_confidence: int
