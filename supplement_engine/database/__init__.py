"""Database module for supplement history and mined patterns."""

from supplement_engine.database.memory import InMemoryPatternRepository
from supplement_engine.database.models import SupplementPatternRecord
from supplement_engine.database.repository import PatternRepository, SQLAlchemyPatternRepository

__all__ = [
    "InMemoryPatternRepository",
    "PatternRepository",
    "SQLAlchemyPatternRepository",
    "SupplementPatternRecord",
]
