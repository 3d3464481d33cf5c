"""Pattern store access.

The engine only talks to the store through ``PatternRepository``; the
SQLAlchemy implementation below is the production adapter, and
``supplement_engine.database.memory`` provides an in-memory one.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.database.models import (
    Estimate,
    InsuranceSupplement,
    SupplementPatternRecord,
)
from supplement_engine.database.schema import get_session_factory, init_database
from supplement_engine.exceptions import (
    PatternLookupError,
    PatternNotFoundError,
    StoreFetchError,
    StoreUpsertError,
)
from supplement_engine.model import EstimateItem, Known, Slot, normalize_category, slot_value, to_slot
from supplement_engine.patterns.model import (
    ApprovedSupplement,
    EstimateSnapshot,
    PatternDelta,
    PatternKey,
    SupplementPattern,
)
from supplement_engine.patterns.scoring import apply_delta, apply_outcome

logger = logging.getLogger(__name__)

# PatternKey slot field -> pattern table column
SLOT_COLUMNS = {
    "vehicle_make": SupplementPatternRecord.vehicle_make,
    "vehicle_model": SupplementPatternRecord.vehicle_model,
    "vehicle_year": SupplementPatternRecord.vehicle_year,
    "damage_location": SupplementPatternRecord.damage_location,
    "damage_type": SupplementPatternRecord.initial_damage_type,
}


class PatternRepository(ABC):
    """Read/upsert interface over supplement history and mined patterns."""

    @abstractmethod
    def fetch_approved_supplements(
        self, approved_after: Optional[datetime] = None
    ) -> List[ApprovedSupplement]:
        """
        Fetch approved supplements that have an approved amount.

        Args:
            approved_after: Only return supplements approved strictly after this time

        Returns:
            List of ApprovedSupplement, each joined with its estimate (or None)

        Raises:
            StoreFetchError: If the store cannot be read
        """
        pass

    @abstractmethod
    def find_pattern(self, key: PatternKey) -> Optional[SupplementPattern]:
        """
        Find the stored pattern with exactly this key.

        ANY fields only match patterns whose field is also ANY.
        """
        pass

    @abstractmethod
    def upsert_pattern(self, key: PatternKey, delta: PatternDelta) -> SupplementPattern:
        """
        Insert a pattern or merge a delta into the existing one.

        Raises:
            StoreUpsertError: If the write fails
        """
        pass

    @abstractmethod
    def query_patterns(
        self, criteria: Dict[str, Slot], min_confidence: int, limit: int
    ) -> List[SupplementPattern]:
        """
        Query patterns matching every criterion.

        Args:
            criteria: PatternKey slot field name -> Known value (equality) or ANY (field is ANY)
            min_confidence: Minimum confidence score
            limit: Maximum number of patterns

        Returns:
            Patterns ordered by confidence score, highest first

        Raises:
            PatternLookupError: If the store cannot be read
        """
        pass

    @abstractmethod
    def get_pattern(self, pattern_id: str) -> Optional[SupplementPattern]:
        """Get a pattern by id."""
        pass

    @abstractmethod
    def record_outcome(self, pattern_id: str, approved: bool) -> SupplementPattern:
        """
        Count an approval or rejection against a pattern.

        Raises:
            PatternNotFoundError: If the pattern does not exist
            StoreUpsertError: If the write fails
        """
        pass

    @abstractmethod
    def list_patterns(
        self,
        vehicle_make: Optional[str] = None,
        vehicle_model: Optional[str] = None,
        min_confidence: int = 0,
        limit: int = 50,
    ) -> List[SupplementPattern]:
        """List stored patterns, highest confidence first."""
        pass


class SQLAlchemyPatternRepository(PatternRepository):
    """Pattern repository backed by the SQLAlchemy models."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        engine=None,
        scoring: Optional[ScoringConfig] = None,
        echo: bool = False,
    ):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file (defaults to configured path)
            engine: Existing SQLAlchemy engine; takes precedence over db_path
            scoring: Scoring configuration (defaults to global config)
            echo: Whether to echo SQL queries (for debugging)
        """
        app_config = get_config()
        if engine is None:
            engine = init_database(Path(db_path or app_config.database_path), echo=echo)
        self.engine = engine
        self.Session = get_session_factory(engine)
        self.scoring = scoring or app_config.scoring

    @contextmanager
    def _get_session(self, commit: bool = True):
        """
        Context manager for database sessions.

        Args:
            commit: Whether to commit on successful exit (default: True)
        """
        session = self.Session()
        try:
            yield session
            if commit:
                session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ==================== History ====================

    def fetch_approved_supplements(
        self, approved_after: Optional[datetime] = None
    ) -> List[ApprovedSupplement]:
        try:
            with self._get_session(commit=False) as session:
                query = (
                    session.query(InsuranceSupplement)
                    .options(
                        selectinload(InsuranceSupplement.estimate).selectinload(Estimate.items)
                    )
                    .filter(
                        InsuranceSupplement.status == "approved",
                        InsuranceSupplement.approved_amount.isnot(None),
                    )
                )
                if approved_after is not None:
                    query = query.filter(InsuranceSupplement.approved_at > approved_after)

                rows = query.order_by(InsuranceSupplement.approved_at).all()
                return [self._to_approved_supplement(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreFetchError(f"Failed to fetch approved supplements: {e}") from e

    def _to_approved_supplement(self, row: InsuranceSupplement) -> ApprovedSupplement:
        snapshot = None
        if row.estimate is not None:
            estimate = row.estimate
            snapshot = EstimateSnapshot(
                total=estimate.total or 0,
                vehicle_make=estimate.vehicle_make,
                vehicle_model=estimate.vehicle_model,
                vehicle_year=estimate.vehicle_year,
                damage_description=estimate.damage_description,
                items=tuple(
                    EstimateItem(
                        id=str(item.id),
                        type=normalize_category(item.type),
                        description=item.description or "",
                        quantity=item.quantity or 0,
                        unit_price=item.unit_price or 0,
                        total=item.total or 0,
                        category=item.category,
                    )
                    for item in estimate.items
                ),
            )
        return ApprovedSupplement(
            id=row.id,
            reason=row.reason or "",
            approved_amount=row.approved_amount or 0,
            estimate=snapshot,
            submitted_at=row.submitted_at,
            approved_at=row.approved_at,
            items=tuple(row.items or ()),
        )

    # ==================== Patterns ====================

    def _key_filters(self, key: PatternKey):
        filters = [
            self._slot_filter(SLOT_COLUMNS[name], getattr(key, name))
            for name in SLOT_COLUMNS
        ]
        filters.extend([
            SupplementPatternRecord.initial_estimate_range == key.amount_bucket,
            SupplementPatternRecord.supplement_trigger == key.trigger,
            SupplementPatternRecord.supplement_type == key.supplement_type,
        ])
        return filters

    @staticmethod
    def _slot_filter(column, slot: Slot):
        if isinstance(slot, Known):
            return column == slot.value
        return column.is_(None)

    def find_pattern(self, key: PatternKey) -> Optional[SupplementPattern]:
        try:
            with self._get_session(commit=False) as session:
                record = (
                    session.query(SupplementPatternRecord)
                    .filter(*self._key_filters(key))
                    .first()
                )
                return self._to_pattern(record) if record else None
        except SQLAlchemyError as e:
            raise PatternLookupError(f"Failed to look up pattern {key.token()}: {e}") from e

    def upsert_pattern(self, key: PatternKey, delta: PatternDelta) -> SupplementPattern:
        try:
            with self._get_session() as session:
                record = (
                    session.query(SupplementPatternRecord)
                    .filter(*self._key_filters(key))
                    .first()
                )
                existing = self._to_pattern(record) if record else None
                pattern = apply_delta(existing, key, delta, self.scoring)

                if record is None:
                    record = SupplementPatternRecord(id=pattern.id)
                    session.add(record)
                self._write_record(record, pattern)
                logger.debug(f"Upserted pattern {pattern.id} (frequency={pattern.frequency_count})")
                return pattern
        except SQLAlchemyError as e:
            raise StoreUpsertError(f"Failed to upsert pattern {key.token()}: {e}") from e

    def query_patterns(
        self, criteria: Dict[str, Slot], min_confidence: int, limit: int
    ) -> List[SupplementPattern]:
        try:
            with self._get_session(commit=False) as session:
                query = session.query(SupplementPatternRecord).filter(
                    SupplementPatternRecord.confidence_score >= min_confidence
                )
                for name, slot in criteria.items():
                    query = query.filter(self._slot_filter(SLOT_COLUMNS[name], slot))

                records = (
                    query.order_by(
                        SupplementPatternRecord.confidence_score.desc(),
                        SupplementPatternRecord.id,  # Tie-breaker for same confidence
                    )
                    .limit(limit)
                    .all()
                )
                return [self._to_pattern(r) for r in records]
        except SQLAlchemyError as e:
            raise PatternLookupError(f"Failed to query patterns: {e}") from e

    def get_pattern(self, pattern_id: str) -> Optional[SupplementPattern]:
        try:
            with self._get_session(commit=False) as session:
                record = session.get(SupplementPatternRecord, pattern_id)
                return self._to_pattern(record) if record else None
        except SQLAlchemyError as e:
            raise PatternLookupError(f"Failed to load pattern {pattern_id}: {e}") from e

    def record_outcome(self, pattern_id: str, approved: bool) -> SupplementPattern:
        try:
            with self._get_session() as session:
                record = session.get(SupplementPatternRecord, pattern_id)
                if record is None:
                    raise PatternNotFoundError(f"Pattern not found: {pattern_id}")
                pattern = apply_outcome(self._to_pattern(record), approved, self.scoring)
                self._write_record(record, pattern)
                return pattern
        except SQLAlchemyError as e:
            raise StoreUpsertError(f"Failed to record outcome for pattern {pattern_id}: {e}") from e

    def list_patterns(
        self,
        vehicle_make: Optional[str] = None,
        vehicle_model: Optional[str] = None,
        min_confidence: int = 0,
        limit: int = 50,
    ) -> List[SupplementPattern]:
        try:
            with self._get_session(commit=False) as session:
                query = session.query(SupplementPatternRecord).filter(
                    SupplementPatternRecord.confidence_score >= min_confidence
                )
                if vehicle_make:
                    query = query.filter(SupplementPatternRecord.vehicle_make == vehicle_make)
                if vehicle_model:
                    query = query.filter(SupplementPatternRecord.vehicle_model == vehicle_model)
                records = (
                    query.order_by(
                        SupplementPatternRecord.confidence_score.desc(),
                        SupplementPatternRecord.id,
                    )
                    .limit(limit)
                    .all()
                )
                return [self._to_pattern(r) for r in records]
        except SQLAlchemyError as e:
            raise PatternLookupError(f"Failed to list patterns: {e}") from e

    # ==================== Conversion ====================

    def _to_pattern(self, record: SupplementPatternRecord) -> SupplementPattern:
        """Convert database entry to SupplementPattern."""
        key = PatternKey(
            vehicle_make=to_slot(record.vehicle_make),
            vehicle_model=to_slot(record.vehicle_model),
            vehicle_year=to_slot(record.vehicle_year),
            damage_location=to_slot(record.damage_location),
            damage_type=to_slot(record.initial_damage_type),
            amount_bucket=record.initial_estimate_range,
            trigger=record.supplement_trigger,
            supplement_type=record.supplement_type,
        )
        return SupplementPattern(
            id=record.id,
            key=key,
            category=record.supplement_category,
            frequency_count=record.frequency_count or 0,
            approval_count=record.approval_count or 0,
            rejection_count=record.rejection_count or 0,
            avg_approval_rate=record.avg_approval_rate or 0.0,
            avg_amount=record.avg_amount or 0.0,
            avg_days_to_approval=record.avg_days_to_approval or 0.0,
            confidence_score=record.confidence_score or 0,
            last_seen_at=record.last_seen_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def _write_record(self, record: SupplementPatternRecord, pattern: SupplementPattern) -> None:
        key = pattern.key
        record.vehicle_make = slot_value(key.vehicle_make)
        record.vehicle_model = slot_value(key.vehicle_model)
        record.vehicle_year = slot_value(key.vehicle_year)
        record.damage_location = slot_value(key.damage_location)
        record.initial_damage_type = slot_value(key.damage_type)
        record.initial_estimate_range = key.amount_bucket
        record.supplement_trigger = key.trigger
        record.supplement_type = key.supplement_type
        record.supplement_category = pattern.category
        record.frequency_count = pattern.frequency_count
        record.approval_count = pattern.approval_count
        record.rejection_count = pattern.rejection_count
        record.avg_approval_rate = pattern.avg_approval_rate
        record.avg_amount = pattern.avg_amount
        record.avg_days_to_approval = pattern.avg_days_to_approval
        record.confidence_score = pattern.confidence_score
        record.last_seen_at = pattern.last_seen_at
        if pattern.created_at is not None:
            record.created_at = pattern.created_at
        if pattern.updated_at is not None:
            record.updated_at = pattern.updated_at
