"""Feature extractors shared by mining and matching."""

from supplement_engine.features.extractors import (
    EstimateFeatures,
    amount_bucket,
    damage_location,
    damage_type,
    extract_features,
    supplement_category,
    supplement_type,
)

__all__ = [
    "EstimateFeatures",
    "amount_bucket",
    "damage_location",
    "damage_type",
    "extract_features",
    "supplement_category",
    "supplement_type",
]
