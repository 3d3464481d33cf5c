"""Pydantic request models for the supplement advisor API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from api.models.validation_helpers import normalize_optional_text, validate_vehicle_year
from supplement_engine.constants import MiningMode
from supplement_engine.model import EstimateContext, EstimateItem
from supplement_engine.recommendations import RecommendationOptions


class EstimateItemRequest(BaseModel):
    """Single estimate line item."""

    id: Optional[str] = Field(None, description="Line item identifier")
    type: str = Field(..., description="Item type (labor, parts, paint, other)")
    description: str = Field(..., description="Line item description")
    quantity: float = Field(1, ge=0, description="Quantity")
    unit_price: float = Field(0.0, description="Unit price")
    total: float = Field(0.0, description="Line total")
    category: Optional[str] = Field(None, description="Optional finer category")

    def to_item(self) -> EstimateItem:
        return EstimateItem(
            id=self.id,
            type=self.type,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total=self.total,
            category=self.category,
        )


class EstimateContextRequest(BaseModel):
    """Estimate to analyze."""

    id: str = Field(..., min_length=1, description="Estimate identifier")
    total: float = Field(..., ge=0, description="Estimate total in dollars")
    vehicle_make: str = Field(..., description="Vehicle make (e.g., 'Toyota')")
    vehicle_model: str = Field(..., description="Vehicle model (e.g., 'Camry')")
    vehicle_year: int = Field(..., description="Vehicle model year")
    vin: Optional[str] = Field(None, max_length=17, description="Vehicle identification number")
    damage_description: Optional[str] = Field(None, description="Free-text damage description")
    items: List[EstimateItemRequest] = Field(default_factory=list, description="Estimate line items")
    photo_count: int = Field(0, ge=0, description="Number of photos attached")
    insurance_company: Optional[str] = Field(None, description="Insurer name")
    has_insurance_submission: bool = Field(False, description="Whether the estimate was submitted to insurance")

    @field_validator("vehicle_year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        """Validate vehicle model year."""
        return validate_vehicle_year(v, datetime.now().year + 1)

    @field_validator("damage_description", "insurance_company", "vin")
    @classmethod
    def normalize_text(cls, v: Optional[str]) -> Optional[str]:
        """Trim free text and treat blanks as missing."""
        return normalize_optional_text(v)

    def to_context(self) -> EstimateContext:
        return EstimateContext(
            id=self.id,
            total=self.total,
            vehicle_make=self.vehicle_make,
            vehicle_model=self.vehicle_model,
            vehicle_year=self.vehicle_year,
            vin=self.vin,
            damage_description=self.damage_description,
            items=tuple(item.to_item() for item in self.items),
            photo_count=self.photo_count,
            insurance_company=self.insurance_company,
            has_insurance_submission=self.has_insurance_submission,
        )


class RecommendationOptionsRequest(BaseModel):
    """Switches for recommendation generation."""

    include_pre_disassembly: bool = Field(True, description="Include rule-based pre-disassembly suggestions")
    include_during_repair: bool = Field(True, description="Mark pattern suggestions as during-repair")
    min_confidence: Optional[int] = Field(None, ge=0, le=100, description="Minimum confidence (default from config)")

    def to_options(self) -> RecommendationOptions:
        return RecommendationOptions(
            include_pre_disassembly=self.include_pre_disassembly,
            include_during_repair=self.include_during_repair,
            min_confidence=self.min_confidence,
        )


class RecommendationRequest(BaseModel):
    """Request model for generating supplement recommendations."""

    estimate: EstimateContextRequest
    options: RecommendationOptionsRequest = Field(default_factory=RecommendationOptionsRequest)


class ExtractPatternsRequest(BaseModel):
    """Request model for running pattern mining."""

    mode: Optional[str] = Field(None, description="'accumulate' or 'recompute' (default from config)")
    approved_after: Optional[datetime] = Field(None, description="Only mine supplements approved after this time")

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: Optional[str]) -> Optional[str]:
        """Validate mining mode."""
        if v is not None and v not in MiningMode.ALL:
            raise ValueError(f"mode must be one of {', '.join(MiningMode.ALL)}")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "ExtractPatternsRequest":
        """approved_after only applies to accumulate runs."""
        if self.mode == MiningMode.RECOMPUTE and self.approved_after is not None:
            raise ValueError("approved_after can only be used with accumulate mode")
        return self


class PatternOutcomeRequest(BaseModel):
    """Request model for recording a supplement outcome against a pattern."""

    approved: bool = Field(..., description="True if the insurer approved the supplement")
