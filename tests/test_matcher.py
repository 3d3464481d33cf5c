"""
Tests for the cascading pattern matcher and context scoring.

Tests cover:
- Context match score and blended confidence
- Cascading fallback to less specific query levels
- ANY criteria, deduplication and early stop
- Parallel and sequential lookups agreeing
- Store failures surfacing as PatternLookupError
"""
from unittest.mock import MagicMock

import pytest

from supplement_engine.config import ScoringConfig
from supplement_engine.database.memory import InMemoryPatternRepository
from supplement_engine.exceptions import PatternLookupError
from supplement_engine.features.extractors import extract_features
from supplement_engine.model import ANY, Known
from supplement_engine.patterns.matcher import PatternMatcher, build_queries
from supplement_engine.patterns.scoring import combined_confidence, context_match_score


@pytest.fixture
def camry_context(make_context):
    """2020 Toyota Camry, front end collision, $6,000."""
    return make_context(
        total=6000,
        vehicle_make="Toyota",
        vehicle_model="Camry",
        vehicle_year=2020,
        damage_description="Front end collision",
    )


class TestContextScoring:
    """Tests for context match score and confidence blending."""

    def test_full_match_scores_100(self, make_pattern, camry_context, scoring):
        pattern = make_pattern(confidence_score=80)
        features = extract_features(camry_context)

        score = context_match_score(pattern, camry_context, features, scoring)

        assert score == 100
        assert combined_confidence(pattern.confidence_score, score) == 90

    def test_blend_rounds_half_up(self):
        assert combined_confidence(75, 100) == 88
        assert combined_confidence(70, 30) == 50

    @pytest.mark.parametrize(
        "pattern_year,points",
        [(2020, 20), (2018, 15), (2015, 10), (2010, 5), (2005, 0)],
    )
    def test_year_proximity(self, make_pattern, camry_context, scoring, pattern_year, points):
        pattern = make_pattern(
            vehicle_make=None, vehicle_model=None, vehicle_year=pattern_year,
            damage_location=None, amount_bucket="$0-2K",
        )
        features = extract_features(camry_context)

        assert context_match_score(pattern, camry_context, features, scoring) == points

    def test_any_fields_do_not_score(self, make_pattern, make_context, scoring):
        """An unknown location on both sides is not a match."""
        pattern = make_pattern(
            vehicle_make=None, vehicle_model=None, vehicle_year=None,
            damage_location=None, amount_bucket="$0-2K",
        )
        context = make_context(total=6000)

        assert context_match_score(pattern, context, extract_features(context), scoring) == 0


class TestQueries:
    """Tests for query level construction."""

    def test_levels_most_to_least_specific(self, camry_context):
        queries = build_queries(camry_context, extract_features(camry_context))

        assert len(queries) == 4
        assert set(queries[0]) == {
            "vehicle_make", "vehicle_model", "vehicle_year", "damage_location", "damage_type",
        }
        assert set(queries[1]) == {"vehicle_make", "vehicle_model", "damage_location"}
        assert set(queries[2]) == {"vehicle_make", "damage_location"}
        assert set(queries[3]) == {"damage_location", "damage_type"}
        assert queries[0]["vehicle_make"] == Known("Toyota")

    def test_unknown_features_become_any(self, make_context):
        context = make_context(total=6000)
        queries = build_queries(context, extract_features(context))

        assert queries[3]["damage_location"] is ANY
        assert queries[3]["damage_type"] is ANY


class TestPatternMatcher:
    """Tests for pattern lookup and scoring."""

    def test_exact_match(self, repository, make_pattern, camry_context, scoring):
        pattern = make_pattern(confidence_score=80)
        repository.add_pattern(pattern)

        matches = PatternMatcher(repository, scoring).match(camry_context)

        assert len(matches) == 1
        assert matches[0].pattern.id == pattern.id
        assert matches[0].context_match_score == 100
        assert matches[0].combined_confidence == 90

    def test_cascade_to_vehicle_agnostic_level(self, repository, make_pattern, camry_context, scoring):
        """Only the location+type level finds a pattern stored without vehicle fields."""
        pattern = make_pattern(vehicle_make=None, vehicle_model=None, vehicle_year=None, confidence_score=90)
        repository.add_pattern(pattern)

        matches = PatternMatcher(repository, scoring).match(camry_context)

        assert [m.pattern.id for m in matches] == [pattern.id]
        assert matches[0].context_match_score == 30
        assert matches[0].combined_confidence == 60

    def test_any_criterion_matches_only_any_fields(self, repository, make_pattern, make_context, scoring):
        context = make_context(total=6000, vehicle_make="Ford", vehicle_model="F-150")
        known = make_pattern(vehicle_make=None, vehicle_model=None, vehicle_year=None, confidence_score=100)
        unknown = make_pattern(
            vehicle_make=None, vehicle_model=None, vehicle_year=None,
            damage_location=None, damage_type=None, confidence_score=100,
        )
        repository.add_pattern(known)
        repository.add_pattern(unknown)

        candidates = PatternMatcher(repository, scoring).find_candidates(context, min_confidence=50)

        assert [p.id for p in candidates] == [unknown.id]

    def test_deduplicates_across_levels(self, repository, make_pattern, camry_context, scoring):
        pattern = make_pattern(confidence_score=80)
        repository.add_pattern(pattern)

        candidates = PatternMatcher(repository, scoring).find_candidates(camry_context, min_confidence=50)

        assert len(candidates) == 1

    def test_stops_once_target_reached(self, repository, make_pattern, camry_context, scoring):
        specific = [make_pattern(trigger=f"Trigger {i}", confidence_score=90) for i in range(5)]
        generic = make_pattern(
            vehicle_make=None, vehicle_model=None, vehicle_year=None,
            trigger="Generic", confidence_score=99,
        )
        for pattern in specific + [generic]:
            repository.add_pattern(pattern)

        candidates = PatternMatcher(repository, scoring).find_candidates(camry_context, min_confidence=50)

        assert {p.id for p in candidates} == {p.id for p in specific}

    def test_parallel_matches_sequential(self, make_pattern, camry_context):
        patterns = [make_pattern(trigger=f"Trigger {i}", confidence_score=90 - i) for i in range(3)]
        patterns.append(make_pattern(vehicle_model="Corolla", trigger="Corolla", confidence_score=85))
        patterns.append(make_pattern(vehicle_make=None, vehicle_model=None, vehicle_year=None, confidence_score=95))

        results = []
        for parallel in (False, True):
            scoring = ScoringConfig(parallel_pattern_queries=parallel)
            repository = InMemoryPatternRepository(patterns=patterns, scoring=scoring)
            matches = PatternMatcher(repository, scoring).match(camry_context)
            results.append([(m.pattern.id, m.combined_confidence) for m in matches])

        assert results[0] == results[1]

    def test_low_stored_confidence_excluded(self, repository, make_pattern, camry_context, scoring):
        repository.add_pattern(make_pattern(confidence_score=40))

        assert PatternMatcher(repository, scoring).match(camry_context) == []

    def test_low_blended_confidence_dropped(self, repository, make_pattern, camry_context, scoring):
        """Stored 60 with context 30 blends to 45, below the default 50."""
        repository.add_pattern(
            make_pattern(vehicle_make=None, vehicle_model=None, vehicle_year=None, confidence_score=60)
        )

        assert PatternMatcher(repository, scoring).match(camry_context) == []

    def test_store_error_wrapped(self, camry_context, scoring):
        repository = MagicMock()
        repository.query_patterns.side_effect = RuntimeError("database is locked")

        with pytest.raises(PatternLookupError, match="database is locked"):
            PatternMatcher(repository, scoring).match(camry_context)

    def test_lookup_error_propagates(self, camry_context, scoring):
        repository = MagicMock()
        error = PatternLookupError("store unavailable")
        repository.query_patterns.side_effect = error

        with pytest.raises(PatternLookupError) as exc_info:
            PatternMatcher(repository, scoring).match(camry_context)
        assert exc_info.value is error
