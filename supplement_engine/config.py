"""Configuration management for the supplement advisor."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load environment variables from .env file in ops folder
env_path = Path(__file__).parent.parent / "ops" / ".env"
load_dotenv(dotenv_path=env_path)


class ScoringConfig(BaseSettings):
    """Weights, thresholds and per-trigger constants used by matching and rule evaluation.

    Every magic number of the recommendation engine lives here so the
    matcher, the trigger rules and the composer stay free of literals.
    """

    # Recommendation output
    min_confidence: int = Field(default=50, alias="MIN_CONFIDENCE")
    max_suggestions: int = Field(default=10, alias="MAX_SUGGESTIONS")
    high_priority_threshold: int = Field(default=80, alias="HIGH_PRIORITY_THRESHOLD")
    medium_priority_threshold: int = Field(default=65, alias="MEDIUM_PRIORITY_THRESHOLD")

    # Pattern lookup
    pattern_query_limit: int = Field(default=10, alias="PATTERN_QUERY_LIMIT")
    pattern_target_count: int = Field(default=5, alias="PATTERN_TARGET_COUNT")
    parallel_pattern_queries: bool = Field(default=False, alias="PARALLEL_PATTERN_QUERIES")

    # Context match weights (sum to 100)
    make_weight: int = Field(default=25, alias="MAKE_WEIGHT")
    model_weight: int = Field(default=25, alias="MODEL_WEIGHT")
    location_weight: int = Field(default=15, alias="LOCATION_WEIGHT")
    amount_bucket_weight: int = Field(default=15, alias="AMOUNT_BUCKET_WEIGHT")
    year_proximity_weights: List[Tuple[int, int]] = Field(
        default_factory=lambda: [(0, 20), (2, 15), (5, 10), (10, 5)],
        alias="YEAR_PROXIMITY_WEIGHTS",
    )
    """(max year difference, points) tiers, checked in order."""

    # Pattern mining
    trigger_text_length: int = Field(default=50, alias="TRIGGER_TEXT_LENGTH")
    confidence_support_threshold: int = Field(default=5, alias="CONFIDENCE_SUPPORT_THRESHOLD")
    """Number of observations at which a pattern's approval rate counts in full."""

    # Trigger rule thresholds
    high_impact_total: float = Field(default=5000, alias="HIGH_IMPACT_TOTAL")
    frame_damage_total: float = Field(default=10000, alias="FRAME_DAMAGE_TOTAL")
    structural_total: float = Field(default=5000, alias="STRUCTURAL_TOTAL")
    hidden_damage_total: float = Field(default=3000, alias="HIDDEN_DAMAGE_TOTAL")
    older_vehicle_age: int = Field(default=10, alias="OLDER_VEHICLE_AGE")
    corrosion_vehicle_age: int = Field(default=7, alias="CORROSION_VEHICLE_AGE")
    discontinued_parts_age: int = Field(default=15, alias="DISCONTINUED_PARTS_AGE")
    luxury_makes: List[str] = Field(
        default_factory=lambda: ["BMW", "Mercedes", "Audi", "Lexus", "Porsche", "Tesla"],
        alias="LUXURY_MAKES",
    )

    trigger_confidence: Dict[str, int] = Field(
        default_factory=lambda: {
            "high_impact_collision": 75,
            "airbag_deployment": 85,
            "water_flood_exposure": 80,
            "age_related_issues": 65,
            "frame_damage_likely": 70,
            "sensor_replacement": 90,
            "corrosion_risk": 75,
            "part_availability": 60,
            "electrical_exposure": 70,
            "structural_compromise": 70,
            "hidden_damage_likely": 65,
        },
        alias="TRIGGER_CONFIDENCE",
    )
    trigger_amount_rates: Dict[str, float] = Field(
        default_factory=lambda: {
            "high_impact_collision": 0.15,
            "age_related_issues": 0.10,
            "part_availability": 0.08,
            "hidden_damage_likely": 0.12,
        },
        alias="TRIGGER_AMOUNT_RATES",
    )
    """Suggested amount as a share of the estimate total."""
    trigger_fixed_amounts: Dict[str, float] = Field(
        default_factory=lambda: {
            "airbag_deployment": 800,
            "water_flood_exposure": 1200,
            "frame_damage_likely": 2500,
            "sensor_replacement": 600,
            "corrosion_risk": 1500,
            "electrical_exposure": 900,
            "structural_compromise": 2000,
        },
        alias="TRIGGER_FIXED_AMOUNTS",
    )
    default_trigger_amount: float = Field(default=1000, alias="DEFAULT_TRIGGER_AMOUNT")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


class AppConfig(BaseSettings):
    """Main application configuration."""

    # Application settings
    app_name: str = Field(default="supplement-advisor", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_path: Path = Field(
        default=Path("data/supplements.db"), alias="DATABASE_PATH"
    )

    # Pattern mining
    mining_mode: str = Field(default="accumulate", alias="MINING_MODE")
    """"accumulate" adds each run's counts to stored patterns, "recompute" replaces them."""

    scoring_config_path: Optional[Path] = Field(default=None, alias="SCORING_CONFIG_PATH")
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    # CORS configuration
    cors_origins: str = Field(default="", alias="CORS_ORIGINS")

    class Config:
        env_file = "ops/.env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    def __init__(self, **kwargs):
        """Initialize configuration with nested settings."""
        super().__init__(**kwargs)
        if self.scoring_config_path is not None:
            self.scoring = load_scoring_config(self.scoring_config_path)
        # Ensure database directory exists
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_scoring_config(path: Path) -> ScoringConfig:
    """
    Load scoring constants from a YAML file.

    Keys may use either field names (``min_confidence``) or env aliases
    (``MIN_CONFIDENCE``); missing keys keep their defaults.

    Args:
        path: Path to YAML file

    Returns:
        ScoringConfig instance

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scoring config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    return ScoringConfig(**data)


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config


def reload_config() -> AppConfig:
    """Reload configuration from environment variables."""
    global config
    config = AppConfig()
    return config
