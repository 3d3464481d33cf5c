#!/usr/bin/env python3
"""Database initialization script.

Creates the estimate, supplement history and pattern tables and verifies
the schema. It can be run standalone or as part of the setup process.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from supplement_engine.config import get_config
from supplement_engine.database.schema import init_database
from sqlalchemy import inspect

EXPECTED_TABLES = [
    "estimates",
    "estimate_items",
    "insurance_supplements",
    "supplement_patterns",
]

EXPECTED_PATTERN_INDEXES = [
    "idx_pattern_confidence",
    "idx_pattern_damage",
    "idx_pattern_vehicle",
]


def main():
    """Initialize database and verify setup."""
    print("=" * 50)
    print("Database Initialization")
    print("=" * 50)
    print()

    try:
        config = get_config()
        db_path = config.database_path

        print(f"Database path: {db_path}")
        print()

        print("Initializing database schema...")
        engine = init_database(db_path, echo=False)
        print("✓ Database initialized successfully")

        # Verify tables were created
        print()
        print("Verifying database schema...")
        inspector = inspect(engine)
        tables = inspector.get_table_names()

        print(f"Found {len(tables)} table(s):")
        for table in sorted(tables):
            marker = "✓" if table in EXPECTED_TABLES else "?"
            print(f"  {marker} {table}")

        missing_tables = [t for t in EXPECTED_TABLES if t not in tables]
        if missing_tables:
            print()
            print(f"⚠ Warning: Some expected tables are missing: {missing_tables}")
        else:
            print()
            print("✓ All expected tables are present")

        if "supplement_patterns" in tables:
            indexes = [idx["name"] for idx in inspector.get_indexes("supplement_patterns")]
            print()
            print("Indexes on supplement_patterns:")
            for idx in sorted(indexes):
                marker = "✓" if idx in EXPECTED_PATTERN_INDEXES else "?"
                print(f"  {marker} {idx}")

        print()
        print("=" * 50)
        print("Database initialization completed successfully!")
        print("=" * 50)
        return 0

    except Exception as e:
        print()
        print("=" * 50)
        print(f"❌ Error initializing database: {e}")
        print("=" * 50)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
