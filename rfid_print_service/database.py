"""
Database Session Management
===========================

Engine and transactional session handling for the label store.

SQLite (default, file under the data dir) and PostgreSQL are both supported;
pass any SQLAlchemy URL.
"""

import os
import logging
from contextlib import contextmanager
from typing import Optional, Generator, Iterable

from sqlalchemy import create_engine, event, select, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL, LABEL_CLASSES
from .models import Base, IdCounter

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Owns the engine and hands out transactional sessions.

    Usage:
        db = DatabaseManager('sqlite:///labels.db')

        with db.session() as session:
            session.add(record)
            # Commits on success, rolls back on error
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False,
                 create_tables: bool = True):
        self.database_url = database_url or DATABASE_URL
        self._is_sqlite = self.database_url.startswith('sqlite')

        if self._is_sqlite:
            self._ensure_sqlite_dir()
            in_memory = ':memory:' in self.database_url or self.database_url == 'sqlite://'
            self._engine = create_engine(
                self.database_url,
                echo=echo,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool if in_memory else None,
            )

            @event.listens_for(self._engine, 'connect')
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute('PRAGMA foreign_keys=ON')
                if not in_memory:
                    cursor.execute('PRAGMA journal_mode=WAL')
                cursor.execute('PRAGMA busy_timeout=5000')
                cursor.close()
        else:
            self._engine = create_engine(
                self.database_url,
                echo=echo,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

        self._session_factory = sessionmaker(bind=self._engine, autoflush=False)

        if create_tables:
            self.create_all()

    def _ensure_sqlite_dir(self):
        path = self.database_url.split('///', 1)[-1]
        if path and ':memory:' not in path:
            directory = os.path.dirname(os.path.abspath(path))
            os.makedirs(directory, exist_ok=True)

    @property
    def engine(self):
        return self._engine

    def create_all(self):
        """Create all database tables."""
        Base.metadata.create_all(self._engine)

    def dispose(self):
        """Dispose of the connection pool."""
        self._engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text('SELECT 1'))
            return True
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return False

    def seed_counters(self, label_classes: Optional[Iterable[str]] = None, start: int = 0) -> int:
        """
        Create missing id counter rows.

        Args:
            label_classes: Counter names (default: every configured label class)
            start: Initial max id for new rows

        Returns:
            Number of rows created
        """
        if label_classes is None:
            label_classes = [c['counter'] for c in LABEL_CLASSES.values()]

        created = 0
        with self.session() as session:
            existing = set(session.scalars(select(IdCounter.label_class)))
            for name in label_classes:
                if name not in existing:
                    session.add(IdCounter(label_class=name, max_id=start))
                    created += 1
        if created:
            logger.info("Seeded %d id counter(s)", created)
        return created
