"""Shared validation functions for request models."""

from typing import Optional


def validate_vehicle_year(year: int, max_year: int) -> int:
    """
    Validate a vehicle model year.

    Args:
        year: Model year
        max_year: Latest accepted model year

    Returns:
        The year unchanged

    Raises:
        ValueError: If year is outside 1900..max_year
    """
    if year < 1900 or year > max_year:
        raise ValueError(f"vehicle_year must be between 1900 and {max_year}")
    return year


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    """
    Trim free text, returning None for blank values.

    Args:
        value: Raw text

    Returns:
        Trimmed text or None
    """
    if value is None:
        return None
    value = value.strip()
    return value or None
