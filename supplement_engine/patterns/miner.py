"""Pattern mining over approved supplement history.

Batch job:
1. Fetch approved supplements joined with their estimates
2. Describe each with the shared feature extractors and build its pattern key
3. Group by exact key and aggregate counts, amounts and cycle times
4. Upsert each aggregate into the pattern store

The job holds no transaction across upserts; a crash mid-run keeps the
patterns already written. Concurrent runs must be serialized by the caller.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import pandas as pd

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.constants import MiningMode
from supplement_engine.exceptions import PatternLookupError, StoreFetchError, StoreUpsertError
from supplement_engine.features.extractors import (
    amount_bucket,
    damage_location,
    damage_type,
    supplement_category,
    supplement_type,
)
from supplement_engine.model import to_slot
from supplement_engine.patterns.model import (
    ApprovedSupplement,
    MiningResult,
    PatternDelta,
    PatternKey,
    UpsertFailure,
)

if TYPE_CHECKING:
    from supplement_engine.database.repository import PatternRepository

logger = logging.getLogger(__name__)


def build_pattern_key(supplement: ApprovedSupplement, scoring: ScoringConfig) -> PatternKey:
    """Describe a historical supplement with the matching vocabulary."""
    estimate = supplement.estimate
    trigger = supplement.reason or ""
    return PatternKey(
        vehicle_make=to_slot(estimate.vehicle_make),
        vehicle_model=to_slot(estimate.vehicle_model),
        vehicle_year=to_slot(estimate.vehicle_year),
        damage_location=to_slot(damage_location(estimate.damage_description, estimate.items)),
        damage_type=to_slot(damage_type(estimate.damage_description)),
        amount_bucket=amount_bucket(estimate.total),
        trigger=trigger[: scoring.trigger_text_length],
        supplement_type=supplement_type(trigger),
    )


class PatternMiner:
    """Aggregates approved supplements into stored supplement patterns."""

    def __init__(
        self,
        repository: "PatternRepository",
        scoring: Optional[ScoringConfig] = None,
    ):
        """
        Initialize miner.

        Args:
            repository: Pattern store
            scoring: Scoring configuration (defaults to global config)
        """
        self.repository = repository
        self.scoring = scoring or get_config().scoring

    def _to_frame(self, supplements: List[ApprovedSupplement]) -> Tuple[pd.DataFrame, int]:
        """Build one row per usable supplement; returns (frame, skipped count)."""
        rows = []
        skipped = 0
        for supplement in supplements:
            if supplement.estimate is None:
                skipped += 1
                logger.debug(f"Skipping supplement {supplement.id}: no estimate joined")
                continue

            key = build_pattern_key(supplement, self.scoring)
            rows.append({
                "token": key.token(),
                "key": key,
                "category": supplement_category(supplement.items),
                "approved_amount": float(supplement.approved_amount or 0),
                "days_to_approval": supplement.days_to_approval,
            })

        return pd.DataFrame(rows), skipped

    def aggregate(self, supplements: List[ApprovedSupplement], replace: bool = False) -> Tuple[Dict[str, Tuple[PatternKey, PatternDelta]], int]:
        """
        Group supplements by exact pattern key.

        Args:
            supplements: Approved supplement history
            replace: Mark deltas to replace stored counts

        Returns:
            Tuple of ({key token: (key, delta)}, skipped count)
        """
        df, skipped = self._to_frame(supplements)
        if df.empty:
            return {}, skipped

        seen_at = datetime.utcnow()
        grouped = df.groupby("token", sort=False).agg(
            key=("key", "first"),
            category=("category", "first"),
            frequency_count=("approved_amount", "count"),
            total_amount=("approved_amount", "sum"),
            total_days=("days_to_approval", "sum"),
        )

        aggregates = {}
        for token, row in grouped.iterrows():
            frequency = int(row["frequency_count"])
            aggregates[token] = (
                row["key"],
                PatternDelta(
                    category=row["category"],
                    frequency_count=frequency,
                    # every mined supplement is an approved one
                    approval_count=frequency,
                    rejection_count=0,
                    total_amount=float(row["total_amount"]),
                    total_days=float(row["total_days"]),
                    seen_at=seen_at,
                    replace=replace,
                ),
            )
        return aggregates, skipped

    def run(
        self,
        mode: str = MiningMode.ACCUMULATE,
        approved_after: Optional[datetime] = None,
    ) -> MiningResult:
        """
        Run one mining pass.

        Args:
            mode: MiningMode.ACCUMULATE adds counts to stored patterns;
                MiningMode.RECOMPUTE replaces them with this run's aggregates
            approved_after: Only mine supplements approved after this time
                (high-water mark for incremental accumulate runs)

        Returns:
            MiningResult with created/updated counts and per-pattern failures

        Raises:
            ValueError: If mode is unknown, or approved_after is combined with recompute

        Recompute only rewrites patterns whose key appears in this run's
        history; patterns with no qualifying supplements keep their stored counts.
        """
        if mode not in MiningMode.ALL:
            raise ValueError(f"Invalid mining mode: {mode}. Must be one of {MiningMode.ALL}")
        if mode == MiningMode.RECOMPUTE and approved_after is not None:
            # A partial window would overwrite full-history counts
            raise ValueError("approved_after can only be used with accumulate mode")

        logger.info(f"Starting pattern mining (mode={mode}, approved_after={approved_after})")

        try:
            supplements = self.repository.fetch_approved_supplements(approved_after=approved_after)
        except StoreFetchError as e:
            logger.error(f"Pattern mining aborted: {e}", exc_info=True)
            return MiningResult(success=False, error=str(e))

        result = MiningResult(success=True)
        if not supplements:
            logger.info("No approved supplements to mine")
            return result

        aggregates, result.supplements_skipped = self.aggregate(
            supplements, replace=(mode == MiningMode.RECOMPUTE)
        )
        result.supplements_processed = len(supplements) - result.supplements_skipped

        for token, (key, delta) in aggregates.items():
            try:
                existing = self.repository.find_pattern(key)
                self.repository.upsert_pattern(key, delta)
            except (PatternLookupError, StoreUpsertError) as e:
                logger.warning(f"Failed to upsert pattern {token}: {e}")
                result.failures.append(
                    UpsertFailure(pattern_key=token, error=str(e), error_type=type(e).__name__)
                )
                continue

            if existing is None:
                result.patterns_created += 1
            else:
                result.patterns_updated += 1

        logger.info(
            f"Pattern mining complete: created={result.patterns_created}, "
            f"updated={result.patterns_updated}, skipped={result.supplements_skipped}, "
            f"failed={len(result.failures)}"
        )
        return result


def extract_supplement_patterns(
    repository: "PatternRepository",
    mode: Optional[str] = None,
    approved_after: Optional[datetime] = None,
    scoring: Optional[ScoringConfig] = None,
) -> MiningResult:
    """
    Mine supplement patterns from approved history.

    Args:
        repository: Pattern store
        mode: Mining mode (defaults to configured MINING_MODE)
        approved_after: Only mine supplements approved after this time
        scoring: Scoring configuration (defaults to global config)

    Returns:
        MiningResult
    """
    mode = mode or get_config().mining_mode
    return PatternMiner(repository, scoring=scoring).run(mode=mode, approved_after=approved_after)
