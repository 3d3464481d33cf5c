"""Shared fixtures for supplement engine tests."""

import uuid
from datetime import datetime, timedelta

import pytest

from supplement_engine.config import ScoringConfig
from supplement_engine.constants import AmountBucket, SupplementCategory, SupplementType
from supplement_engine.database.memory import InMemoryPatternRepository
from supplement_engine.model import EstimateContext, EstimateItem, to_slot
from supplement_engine.patterns.model import (
    ApprovedSupplement,
    EstimateSnapshot,
    PatternKey,
    SupplementPattern,
)


@pytest.fixture
def scoring():
    """Default scoring configuration."""
    return ScoringConfig()


@pytest.fixture
def repository(scoring):
    """Empty in-memory pattern repository."""
    return InMemoryPatternRepository(scoring=scoring)


@pytest.fixture
def make_context():
    """Factory for estimate contexts with sensible defaults."""

    def _make(
        total=1000.0,
        vehicle_make="Honda",
        vehicle_model="Civic",
        vehicle_year=2023,
        damage_description=None,
        items=(),
        estimate_id="est-1",
    ):
        return EstimateContext(
            id=estimate_id,
            total=total,
            vehicle_make=vehicle_make,
            vehicle_model=vehicle_model,
            vehicle_year=vehicle_year,
            damage_description=damage_description,
            items=tuple(
                item if isinstance(item, EstimateItem) else EstimateItem(type="parts", description=item)
                for item in items
            ),
        )

    return _make


@pytest.fixture
def make_pattern():
    """Factory for stored patterns. Pass None for a field to leave it as ANY."""

    def _make(
        vehicle_make="Toyota",
        vehicle_model="Camry",
        vehicle_year=2020,
        damage_location="Front End",
        damage_type="Impact",
        amount_bucket=AmountBucket.MID_HIGH,
        trigger="Hidden frame rail damage",
        supplement_type=SupplementType.FRAME,
        category=SupplementCategory.LABOR,
        confidence_score=80,
        frequency_count=5,
        approval_count=5,
        rejection_count=0,
        avg_amount=1800.0,
        pattern_id=None,
    ):
        key = PatternKey(
            vehicle_make=to_slot(vehicle_make),
            vehicle_model=to_slot(vehicle_model),
            vehicle_year=to_slot(vehicle_year),
            damage_location=to_slot(damage_location),
            damage_type=to_slot(damage_type),
            amount_bucket=amount_bucket,
            trigger=trigger,
            supplement_type=supplement_type,
        )
        decided = approval_count + rejection_count
        return SupplementPattern(
            id=pattern_id or str(uuid.uuid4()),
            key=key,
            category=category,
            frequency_count=frequency_count,
            approval_count=approval_count,
            rejection_count=rejection_count,
            avg_approval_rate=(approval_count / decided * 100) if decided else 0.0,
            avg_amount=avg_amount,
            confidence_score=confidence_score,
        )

    return _make


@pytest.fixture
def make_supplement():
    """Factory for approved supplements joined with an estimate snapshot."""

    def _make(
        reason="Hidden frame rail damage found during teardown",
        approved_amount=1500.0,
        total=6000.0,
        vehicle_make="Toyota",
        vehicle_model="Camry",
        vehicle_year=2020,
        damage_description="Front end collision",
        items=(),
        supplement_items=({"type": "labor", "description": "Frame pull", "total": 1500.0},),
        approved_at=None,
        days_to_approval=4,
        with_estimate=True,
        supplement_id=None,
    ):
        approved_at = approved_at or datetime(2025, 3, 10, 12, 0, 0)
        estimate = None
        if with_estimate:
            estimate = EstimateSnapshot(
                total=total,
                vehicle_make=vehicle_make,
                vehicle_model=vehicle_model,
                vehicle_year=vehicle_year,
                damage_description=damage_description,
                items=tuple(EstimateItem(type="parts", description=d) for d in items),
            )
        return ApprovedSupplement(
            id=supplement_id or str(uuid.uuid4()),
            reason=reason,
            approved_amount=approved_amount,
            estimate=estimate,
            submitted_at=approved_at - timedelta(days=days_to_approval),
            approved_at=approved_at,
            items=tuple(supplement_items),
        )

    return _make
