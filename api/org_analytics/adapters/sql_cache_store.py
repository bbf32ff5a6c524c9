"""SQLAlchemy-backed CacheStore for a cache shared across API processes."""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy import Column, Float, String, Text, create_engine, delete
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class CacheEntryModel(Base):
    __tablename__ = "analytics_cache"

    key = Column(String(512), primary_key=True)
    value = Column(Text, nullable=False)
    expires_at = Column(Float, nullable=False, index=True)


class SqlCacheStore:
    """TTL cache rows in a relational table. Expired rows are deleted on read."""

    def __init__(self, database_url: str | None = None, clock: Callable[[], float] = time.time) -> None:
        if not database_url:
            database_url = os.getenv("ANALYTICS_CACHE_DATABASE_URL")
        if not database_url:
            raise ValueError("ANALYTICS_CACHE_DATABASE_URL is required for SqlCacheStore")

        self.engine = create_engine(database_url, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self._clock = clock
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> Optional[str]:
        with self._session() as session:
            row = session.get(CacheEntryModel, key)
            if row is None:
                return None
            if self._clock() >= row.expires_at:
                session.delete(row)
                return None
            return row.value

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._session() as session:
            session.merge(CacheEntryModel(key=key, value=value, expires_at=self._clock() + ttl))

    def purge_expired(self) -> int:
        """Delete every expired row. Returns the number of rows removed."""
        with self._session() as session:
            result = session.execute(delete(CacheEntryModel).where(CacheEntryModel.expires_at <= self._clock()))
            return int(result.rowcount or 0)
