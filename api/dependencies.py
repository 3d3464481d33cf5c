"""FastAPI dependencies for the pattern store and scoring configuration."""

from functools import lru_cache

from supplement_engine.config import ScoringConfig, get_config
from supplement_engine.database.repository import PatternRepository, SQLAlchemyPatternRepository


@lru_cache()
def get_repository() -> PatternRepository:
    """
    Get cached pattern repository backed by the configured database.

    Returns:
        SQLAlchemyPatternRepository instance
    """
    config = get_config()
    return SQLAlchemyPatternRepository(db_path=config.database_path, scoring=config.scoring)


def get_scoring_config() -> ScoringConfig:
    """
    Get scoring configuration.

    Returns:
        ScoringConfig instance
    """
    return get_config().scoring
