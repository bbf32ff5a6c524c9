#!/usr/bin/env python3
"""Database migration script to drop and recreate the analytics cache table."""

import os
import sys

from dotenv import load_dotenv
from sqlalchemy import create_engine, text

_api_dir = os.path.dirname(os.path.abspath(__file__))


def migrate_database(database_url: str | None = None) -> None:
    """Drop the cache table and recreate it with the current schema."""
    database_url = database_url or os.getenv("ANALYTICS_CACHE_DATABASE_URL")
    if not database_url:
        print("ERROR: ANALYTICS_CACHE_DATABASE_URL environment variable not set")
        sys.exit(1)

    print("Connecting to database...")
    engine = create_engine(database_url, pool_pre_ping=True)

    print("Dropping old cache table...")
    with engine.connect() as conn:
        conn.execute(text("DROP TABLE IF EXISTS analytics_cache;"))
        conn.commit()

    print("Creating cache table...")
    from org_analytics.adapters.sql_cache_store import Base
    Base.metadata.create_all(bind=engine)

    print("✓ Database migration complete!")
    print("  - analytics_cache: key, value, expires_at")


if __name__ == "__main__":
    load_dotenv(os.path.join(_api_dir, ".env"))
    migrate_database()
