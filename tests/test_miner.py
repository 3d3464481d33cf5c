"""
Tests for pattern mining.

Tests cover:
- Grouping approved supplements by pattern key
- Accumulate vs recompute mining modes
- Incremental runs with approved_after
- Skipped rows, fetch failures and reported upsert failures
"""
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from supplement_engine.constants import AmountBucket, MiningMode, SupplementCategory, SupplementType
from supplement_engine.database.memory import InMemoryPatternRepository
from supplement_engine.exceptions import StoreFetchError, StoreUpsertError
from supplement_engine.model import ANY, Known
from supplement_engine.patterns.miner import PatternMiner, build_pattern_key, extract_supplement_patterns


class FlakyRepository(InMemoryPatternRepository):
    """In-memory repository whose upserts fail for one trigger."""

    def __init__(self, failing_trigger, **kwargs):
        super().__init__(**kwargs)
        self.failing_trigger = failing_trigger

    def upsert_pattern(self, key, delta):
        if key.trigger == self.failing_trigger:
            raise StoreUpsertError("disk I/O error")
        return super().upsert_pattern(key, delta)


class TestBuildPatternKey:
    """Tests for describing supplements with the matching vocabulary."""

    def test_key_fields(self, make_supplement, scoring):
        key = build_pattern_key(make_supplement(), scoring)

        assert key.vehicle_make == Known("Toyota")
        assert key.vehicle_year == Known(2020)
        assert key.damage_location == Known("Front End")
        assert key.damage_type == Known("Impact")
        assert key.amount_bucket == AmountBucket.MID_HIGH
        assert key.supplement_type == SupplementType.FRAME

    def test_trigger_truncated(self, make_supplement, scoring):
        reason = "Hidden frame rail damage found during teardown of the front clip assembly"
        key = build_pattern_key(make_supplement(reason=reason), scoring)

        assert key.trigger == reason[:50]

    def test_missing_fields_are_any(self, make_supplement, scoring):
        supplement = make_supplement(vehicle_make="", vehicle_year=None, damage_description=None)
        key = build_pattern_key(supplement, scoring)

        assert key.vehicle_make is ANY
        assert key.vehicle_year is ANY
        assert key.damage_location is ANY
        assert key.damage_type is ANY


class TestPatternMiner:
    """Tests for mining runs."""

    def test_groups_identical_keys(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement(approved_amount=1000, days_to_approval=2))
        repository.add_supplement(make_supplement(approved_amount=2000, days_to_approval=4))

        result = PatternMiner(repository, scoring).run()

        assert result.success is True
        assert result.patterns_created == 1
        assert result.patterns_updated == 0
        assert result.supplements_processed == 2

        pattern = repository.list_patterns()[0]
        assert pattern.frequency_count == 2
        assert pattern.approval_count == 2
        assert pattern.avg_amount == pytest.approx(1500)
        assert pattern.avg_days_to_approval == pytest.approx(3)
        assert pattern.avg_approval_rate == pytest.approx(100)
        assert pattern.category == SupplementCategory.LABOR
        # rate 100 at 2 of 5 observations: 100 * (0.5 + 0.5 * 0.4)
        assert pattern.confidence_score == 70

    def test_distinct_keys_create_distinct_patterns(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement(vehicle_model="Corolla"))
        repository.add_supplement(make_supplement(reason="Paint blend adjacent panel"))

        result = PatternMiner(repository, scoring).run()

        assert result.patterns_created == 3

    def test_accumulate_doubles_frequency(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement())
        miner = PatternMiner(repository, scoring)

        miner.run(mode=MiningMode.ACCUMULATE)
        second = miner.run(mode=MiningMode.ACCUMULATE)

        assert second.patterns_created == 0
        assert second.patterns_updated == 1
        pattern = repository.list_patterns()[0]
        assert pattern.frequency_count == 4
        assert pattern.confidence_score == 90

    def test_recompute_is_idempotent(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement())
        miner = PatternMiner(repository, scoring)

        miner.run(mode=MiningMode.RECOMPUTE)
        first_id = repository.list_patterns()[0].id
        miner.run(mode=MiningMode.RECOMPUTE)

        patterns = repository.list_patterns()
        assert len(patterns) == 1
        assert patterns[0].id == first_id
        assert patterns[0].frequency_count == 2

    def test_approved_after_high_water_mark(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement(approved_at=datetime(2025, 1, 5)))
        repository.add_supplement(make_supplement(approved_at=datetime(2025, 2, 5)))

        result = PatternMiner(repository, scoring).run(approved_after=datetime(2025, 2, 1))

        assert result.supplements_processed == 1
        assert repository.list_patterns()[0].frequency_count == 1

    def test_supplement_without_estimate_skipped(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement(with_estimate=False))

        result = PatternMiner(repository, scoring).run()

        assert result.success is True
        assert result.supplements_skipped == 1
        assert result.supplements_processed == 1
        assert result.patterns_created == 1

    def test_empty_history(self, repository, scoring):
        result = PatternMiner(repository, scoring).run()

        assert result.success is True
        assert result.patterns_created == 0
        assert result.failures == []

    def test_fetch_failure(self, scoring):
        repository = MagicMock()
        repository.fetch_approved_supplements.side_effect = StoreFetchError("connection refused")

        result = PatternMiner(repository, scoring).run()

        assert result.success is False
        assert "connection refused" in result.error
        repository.upsert_pattern.assert_not_called()

    def test_upsert_failure_reported_and_run_continues(self, make_supplement, scoring):
        repository = FlakyRepository(failing_trigger="Paint blend adjacent panel", scoring=scoring)
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement(reason="Paint blend adjacent panel"))

        result = PatternMiner(repository, scoring).run()

        assert result.success is True
        assert result.patterns_created == 1
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert "Paint blend adjacent panel" in failure.pattern_key
        assert failure.error_type == "StoreUpsertError"
        assert failure.to_dict()["error"] == "disk I/O error"

    def test_recompute_rejects_approved_after(self, repository, make_supplement, scoring):
        for day in (5, 10, 15, 20):
            repository.add_supplement(make_supplement(approved_at=datetime(2025, 1, day)))
        repository.add_supplement(make_supplement(approved_at=datetime(2025, 2, 5)))
        miner = PatternMiner(repository, scoring)
        miner.run(mode=MiningMode.RECOMPUTE)

        with pytest.raises(ValueError, match="accumulate"):
            miner.run(mode=MiningMode.RECOMPUTE, approved_after=datetime(2025, 2, 1))

        assert repository.list_patterns()[0].frequency_count == 5

    def test_recompute_keeps_recorded_rejections(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())
        repository.add_supplement(make_supplement())
        miner = PatternMiner(repository, scoring)
        miner.run(mode=MiningMode.RECOMPUTE)
        pattern_id = repository.list_patterns()[0].id
        repository.record_outcome(pattern_id, approved=False)
        repository.record_outcome(pattern_id, approved=False)

        miner.run(mode=MiningMode.RECOMPUTE)

        pattern = repository.get_pattern(pattern_id)
        assert pattern.frequency_count == 2
        assert pattern.approval_count == 2
        assert pattern.rejection_count == 2
        # rate 50 at 2 of 5 observations: 50 * (0.5 + 0.5 * 0.4)
        assert pattern.confidence_score == 35

    def test_invalid_mode(self, repository, scoring):
        with pytest.raises(ValueError):
            PatternMiner(repository, scoring).run(mode="merge")

    def test_extract_supplement_patterns(self, repository, make_supplement, scoring):
        repository.add_supplement(make_supplement())

        result = extract_supplement_patterns(repository, mode=MiningMode.ACCUMULATE, scoring=scoring)

        assert result.to_dict()["patterns_created"] == 1
