"""
Tests for recommendation composition and the engine.

Tests cover:
- Priority bands and ranking
- Truncation to the configured maximum
- Trigger and pattern suggestion contents
- Request options (pre-disassembly, timing, minimum confidence)
- Summary figures and outcome feedback
"""
import pytest

from supplement_engine.config import ScoringConfig
from supplement_engine.constants import Priority, SupplementType, Timing
from supplement_engine.exceptions import PatternNotFoundError
from supplement_engine.model import SupplementSuggestion
from supplement_engine.patterns.feedback import list_patterns, record_pattern_outcome
from supplement_engine.patterns.model import PatternMatch
from supplement_engine.recommendations import (
    RecommendationOptions,
    generate_recommendations,
    summarize_recommendations,
)
from supplement_engine.recommendations.composer import (
    documentation_for_type,
    from_pattern,
    pattern_justification,
    priority_for,
    rank,
)

CURRENT_YEAR = 2025


def suggestion(confidence, priority=None, suggestion_id=None, amount=100.0, scoring=None):
    scoring = scoring or ScoringConfig()
    return SupplementSuggestion(
        id=suggestion_id or f"s{confidence}",
        trigger="t",
        category="labor",
        confidence=confidence,
        suggested_amount=amount,
        justification="j",
        documentation_needed=[],
        priority=priority or priority_for(confidence, scoring),
        timing=Timing.PRE_DISASSEMBLY,
    )


@pytest.fixture
def camry_context(make_context):
    return make_context(
        total=6000,
        vehicle_make="Toyota",
        vehicle_model="Camry",
        vehicle_year=2020,
        damage_description="Front end collision",
    )


class TestPriority:
    """Tests for confidence to priority mapping."""

    @pytest.mark.parametrize(
        "confidence,expected",
        [(100, Priority.HIGH), (80, Priority.HIGH), (79, Priority.MEDIUM),
         (65, Priority.MEDIUM), (64, Priority.LOW), (50, Priority.LOW)],
    )
    def test_bands(self, scoring, confidence, expected):
        assert priority_for(confidence, scoring) == expected


class TestRanking:
    """Tests for suggestion ordering and truncation."""

    def test_priority_first(self, scoring):
        ranked = rank([suggestion(68), suggestion(82)], scoring)
        assert [s.confidence for s in ranked] == [82, 68]

    def test_confidence_within_priority(self, scoring):
        ranked = rank([suggestion(81), suggestion(95)], scoring)
        assert [s.confidence for s in ranked] == [95, 81]

    def test_ties_keep_input_order(self, scoring):
        ranked = rank([suggestion(70, suggestion_id="a"), suggestion(70, suggestion_id="b")], scoring)
        assert [s.id for s in ranked] == ["a", "b"]

    def test_truncates_to_max(self, scoring):
        ranked = rank([suggestion(50 + i, suggestion_id=str(i)) for i in range(15)], scoring)

        assert len(ranked) == 10
        assert ranked[0].confidence == 64
        assert min(s.confidence for s in ranked) == 55

    def test_max_from_config(self):
        scoring = ScoringConfig(max_suggestions=3)
        ranked = rank([suggestion(60 + i, suggestion_id=str(i)) for i in range(6)], scoring)
        assert len(ranked) == 3


class TestComposer:
    """Tests for converting patterns into suggestions."""

    def test_pattern_suggestion(self, make_pattern, scoring):
        pattern = make_pattern(frequency_count=4, approval_count=3, rejection_count=1, avg_amount=1750.0)
        match = PatternMatch(pattern=pattern, context_match_score=100, combined_confidence=90)

        result = from_pattern(match, scoring)

        assert result.id == f"pattern_{pattern.id}"
        assert result.trigger == pattern.trigger
        assert result.suggested_amount == 1750.0
        assert result.priority == Priority.HIGH
        assert result.timing == Timing.DURING_REPAIR
        assert result.related_patterns == [pattern]
        assert result.documentation_needed == documentation_for_type(SupplementType.FRAME)

    def test_pattern_timing_without_during_repair(self, make_pattern, scoring):
        match = PatternMatch(pattern=make_pattern(), context_match_score=100, combined_confidence=90)
        assert from_pattern(match, scoring, include_during_repair=False).timing == Timing.PRE_DISASSEMBLY

    def test_pattern_justification(self, make_pattern):
        text = pattern_justification(make_pattern(frequency_count=2, approval_count=2))
        assert "supplements 2 times with a 100% approval rate" in text
        assert "Common issue: Hidden frame rail damage." in text

    def test_pattern_justification_singular(self, make_pattern):
        text = pattern_justification(make_pattern(frequency_count=1, approval_count=1))
        assert "supplements 1 time with" in text

    def test_documentation_falls_back_to_other(self):
        assert documentation_for_type("Sublet") == documentation_for_type(SupplementType.OTHER)
        assert documentation_for_type(None) == documentation_for_type(SupplementType.OTHER)


class TestGenerateRecommendations:
    """Tests for the end-to-end engine."""

    def test_empty_result(self, repository, make_context):
        context = make_context(total=1000, damage_description="Scratched door")
        assert generate_recommendations(context, repository, current_year=CURRENT_YEAR) == []

    def test_trigger_suggestion(self, repository, camry_context):
        results = generate_recommendations(camry_context, repository, current_year=CURRENT_YEAR)
        by_id = {s.id: s for s in results}

        high_impact = by_id["trigger_high_impact_collision"]
        assert high_impact.confidence == 75
        assert high_impact.suggested_amount == pytest.approx(900)
        assert high_impact.category == "labor"
        assert high_impact.priority == Priority.MEDIUM
        assert high_impact.timing == Timing.PRE_DISASSEMBLY
        assert high_impact.related_patterns == []
        assert high_impact.justification.startswith(
            "Pre-disassembly analysis indicates potential for additional damage: High-value estimate"
        )

    def test_pattern_and_trigger_ranked_together(self, repository, make_pattern, camry_context):
        pattern = make_pattern(confidence_score=80)
        repository.add_pattern(pattern)

        results = generate_recommendations(camry_context, repository, current_year=CURRENT_YEAR)

        assert results[0].id == f"pattern_{pattern.id}"
        assert results[0].confidence == 90
        assert results[0].timing == Timing.DURING_REPAIR
        priorities = [Priority.ORDER[s.priority] for s in results]
        assert priorities == sorted(priorities)

    def test_exclude_pre_disassembly(self, repository, make_pattern, camry_context):
        repository.add_pattern(make_pattern(confidence_score=80))
        options = RecommendationOptions(include_pre_disassembly=False)

        results = generate_recommendations(camry_context, repository, options, current_year=CURRENT_YEAR)

        assert results
        assert all(s.id.startswith("pattern_") for s in results)

    def test_min_confidence_filters_triggers(self, repository, camry_context):
        options = RecommendationOptions(min_confidence=80)

        results = generate_recommendations(camry_context, repository, options, current_year=CURRENT_YEAR)

        assert all(s.confidence >= 80 for s in results)
        assert "trigger_high_impact_collision" not in {s.id for s in results}

    def test_truncated_to_ten(self, repository, make_pattern, camry_context):
        for i in range(12):
            repository.add_pattern(make_pattern(trigger=f"Issue {i}", confidence_score=80))

        results = generate_recommendations(camry_context, repository, current_year=CURRENT_YEAR)

        assert len(results) == 10


class TestSummary:
    """Tests for suggestion summaries."""

    def test_summary(self):
        suggestions = [suggestion(85, amount=900.0), suggestion(70, amount=600.5), suggestion(52, amount=100.0)]

        summary = summarize_recommendations(suggestions)

        assert summary.total_count == 3
        assert summary.high_priority_count == 1
        assert summary.estimated_total_amount == pytest.approx(1600.5)
        assert summary.avg_confidence == 69

    def test_empty_summary(self):
        assert summarize_recommendations([]).to_dict() == {
            "total_count": 0,
            "high_priority_count": 0,
            "estimated_total_amount": 0.0,
            "avg_confidence": 0,
        }


class TestOutcomeFeedback:
    """Tests for recording outcomes against patterns."""

    def test_rejection_lowers_confidence(self, repository, make_pattern):
        pattern = make_pattern(frequency_count=5, approval_count=5, confidence_score=100)
        repository.add_pattern(pattern)

        updated = record_pattern_outcome(repository, pattern.id, approved=False)

        assert updated.rejection_count == 1
        assert updated.avg_approval_rate == pytest.approx(5 / 6 * 100)
        assert updated.confidence_score == 83

    def test_unknown_pattern(self, repository):
        with pytest.raises(PatternNotFoundError):
            record_pattern_outcome(repository, "missing", approved=True)

    def test_returned_suggestions_unaffected_by_later_outcomes(self, repository, make_pattern, camry_context):
        pattern = make_pattern(frequency_count=5, approval_count=5, confidence_score=100)
        repository.add_pattern(pattern)
        results = generate_recommendations(camry_context, repository, current_year=CURRENT_YEAR)
        related = results[0].related_patterns[0]

        record_pattern_outcome(repository, pattern.id, approved=False)

        assert related.rejection_count == 0
        assert related.confidence_score == 100
        assert pattern.rejection_count == 0
        assert repository.get_pattern(pattern.id).rejection_count == 1

    def test_list_patterns_filters(self, repository, make_pattern):
        repository.add_pattern(make_pattern(confidence_score=90))
        repository.add_pattern(make_pattern(vehicle_make="Honda", confidence_score=95))
        repository.add_pattern(make_pattern(trigger="Other", confidence_score=40))

        toyota = list_patterns(repository, vehicle_make="Toyota")
        confident = list_patterns(repository, min_confidence=50)

        assert len(toyota) == 2
        assert [p.confidence_score for p in confident] == [95, 90]
