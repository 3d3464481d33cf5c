"""In-memory pattern repository for tests and local experiments."""

import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.database.repository import PatternRepository
from supplement_engine.exceptions import PatternNotFoundError
from supplement_engine.model import Known, Slot
from supplement_engine.patterns.model import (
    ApprovedSupplement,
    PatternDelta,
    PatternKey,
    SupplementPattern,
)
from supplement_engine.patterns.scoring import apply_delta, apply_outcome


def _slot_matches(stored: Slot, criterion: Slot) -> bool:
    if isinstance(criterion, Known):
        return isinstance(stored, Known) and stored.value == criterion.value
    return not isinstance(stored, Known)


class InMemoryPatternRepository(PatternRepository):
    """Dictionary-backed repository with thread-safe access.

    Patterns are copied in and out, so callers never share the stored objects.
    """

    def __init__(
        self,
        supplements: Optional[Iterable[ApprovedSupplement]] = None,
        patterns: Optional[Iterable[SupplementPattern]] = None,
        scoring: Optional[ScoringConfig] = None,
    ):
        """
        Initialize the repository.

        Args:
            supplements: Approved supplement history
            patterns: Pre-existing patterns
            scoring: Scoring configuration (defaults to global config)
        """
        self.supplements: List[ApprovedSupplement] = list(supplements or [])
        self.patterns: Dict[str, SupplementPattern] = {p.id: replace(p) for p in patterns or []}
        self.scoring = scoring or get_config().scoring
        self._lock = threading.Lock()

    def add_supplement(self, supplement: ApprovedSupplement) -> None:
        with self._lock:
            self.supplements.append(supplement)

    def add_pattern(self, pattern: SupplementPattern) -> None:
        with self._lock:
            self.patterns[pattern.id] = replace(pattern)

    def fetch_approved_supplements(
        self, approved_after: Optional[datetime] = None
    ) -> List[ApprovedSupplement]:
        with self._lock:
            rows = list(self.supplements)
        if approved_after is not None:
            rows = [s for s in rows if s.approved_at is not None and s.approved_at > approved_after]
        return rows

    def _find(self, key: PatternKey) -> Optional[SupplementPattern]:
        for pattern in self.patterns.values():
            if pattern.key == key:
                return pattern
        return None

    def find_pattern(self, key: PatternKey) -> Optional[SupplementPattern]:
        with self._lock:
            pattern = self._find(key)
            return replace(pattern) if pattern else None

    def upsert_pattern(self, key: PatternKey, delta: PatternDelta) -> SupplementPattern:
        with self._lock:
            existing = self._find(key)
            pattern = apply_delta(replace(existing) if existing else None, key, delta, self.scoring)
            self.patterns[pattern.id] = pattern
            return replace(pattern)

    def query_patterns(
        self, criteria: Dict[str, Slot], min_confidence: int, limit: int
    ) -> List[SupplementPattern]:
        with self._lock:
            candidates = [
                replace(p) for p in self.patterns.values()
                if p.confidence_score >= min_confidence
                and all(_slot_matches(getattr(p.key, name), slot) for name, slot in criteria.items())
            ]
        candidates.sort(key=lambda p: (-p.confidence_score, p.id))
        return candidates[:limit]

    def get_pattern(self, pattern_id: str) -> Optional[SupplementPattern]:
        with self._lock:
            pattern = self.patterns.get(pattern_id)
            return replace(pattern) if pattern else None

    def record_outcome(self, pattern_id: str, approved: bool) -> SupplementPattern:
        with self._lock:
            pattern = self.patterns.get(pattern_id)
            if pattern is None:
                raise PatternNotFoundError(f"Pattern not found: {pattern_id}")
            updated = apply_outcome(replace(pattern), approved, self.scoring)
            self.patterns[pattern_id] = updated
            return replace(updated)

    def list_patterns(
        self,
        vehicle_make: Optional[str] = None,
        vehicle_model: Optional[str] = None,
        min_confidence: int = 0,
        limit: int = 50,
    ) -> List[SupplementPattern]:
        criteria: Dict[str, Slot] = {}
        if vehicle_make:
            criteria["vehicle_make"] = Known(vehicle_make)
        if vehicle_model:
            criteria["vehicle_model"] = Known(vehicle_model)
        return self.query_patterns(criteria, min_confidence, limit)
