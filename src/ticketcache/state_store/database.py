"""SQLite engine and session management for the ticket cache."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ticketcache.state_store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"

# Writers wait this long for the snapshot writer's lock before failing
BUSY_TIMEOUT_MS = 5000

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}",
)


def _configure_connection(dbapi_connection: object, _connection_record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    for pragma in _PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def _create_engine(db_path: str) -> Engine:
    options: dict = {"connect_args": {"check_same_thread": False}}
    if db_path == MEMORY:
        # One shared connection, otherwise every checkout sees an empty database
        options["poolclass"] = StaticPool
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(f"sqlite:///{db_path}", **options)
    event.listen(engine, "connect", _configure_connection)
    return engine


class Database:
    """Lazily created engine and session factory for one cache file.

    The cache is rebuilt from the ticket files by the sync job, so tables
    are created on first use and never migrated.
    """

    def __init__(self, db_path: str = "ticketcache.db") -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.
        """
        self.db_path = db_path
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = _create_engine(self.db_path)
        return self._engine

    def create_tables(self) -> None:
        """Create all cache tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session; objects stay readable after commit."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._session_factory()

    def is_wal_mode(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def close(self) -> None:
        """Dispose of the engine; the next use reconnects."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
