"""
Batch runner that mines supplement patterns from approved supplement history.

Usage:
  PYTHONPATH=. python run_pattern_mining.py \
    --mode accumulate \
    --approved-after 2024-01-01T00:00:00 \
    --db-path data/supplements.db
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from supplement_engine.config import get_config
from supplement_engine.constants import MiningMode
from supplement_engine.database.repository import SQLAlchemyPatternRepository
from supplement_engine.patterns.miner import extract_supplement_patterns

logger = logging.getLogger(__name__)


def run_mining(db_path: Path, mode: str, approved_after=None) -> int:
    config = get_config()
    repository = SQLAlchemyPatternRepository(db_path=db_path, scoring=config.scoring)
    result = extract_supplement_patterns(repository, mode=mode, approved_after=approved_after)

    if not result.success:
        print(f"Pattern mining failed: {result.error}")
        return 1

    print(f"Supplements processed: {result.supplements_processed}")
    print(f"Supplements skipped:   {result.supplements_skipped}")
    print(f"Patterns created:      {result.patterns_created}")
    print(f"Patterns updated:      {result.patterns_updated}")
    if result.failures:
        print(f"Failed upserts:        {len(result.failures)}")
        for failure in result.failures:
            print(f" - {failure.pattern_key}: {failure.error_type}: {failure.error}")
        return 2
    return 0


def main():
    config = get_config()
    parser = argparse.ArgumentParser(description="Mine supplement patterns from approved supplement history.")
    parser.add_argument(
        "--mode",
        choices=list(MiningMode.ALL),
        default=config.mining_mode,
        help="accumulate adds to stored counts, recompute replaces them",
    )
    parser.add_argument(
        "--approved-after",
        type=datetime.fromisoformat,
        default=None,
        help="Only mine supplements approved after this ISO timestamp",
    )
    parser.add_argument("--db-path", default=str(config.database_path), help="Path to SQLite database")
    args = parser.parse_args()
    if args.mode == MiningMode.RECOMPUTE and args.approved_after is not None:
        parser.error("--approved-after can only be used with --mode accumulate")

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    db_path = Path(args.db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path} (run init_database.py first)")

    return run_mining(db_path, args.mode, args.approved_after)


if __name__ == "__main__":
    sys.exit(main())
