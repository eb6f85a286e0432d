"""Integration tests for the State Store database file."""

import tempfile
from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from ticketcache.state_store import StateStore, TicketRecord
from ticketcache.state_store.database import BUSY_TIMEOUT_MS, Database

TICKET = TicketRecord(
    full_id="01HQ3K5M0AAAAAAAAAAAAAAAAA", title="t", state="ready", priority="p1"
)


@pytest.fixture
def temp_db_path():
    """Temporary database path, removed with its WAL files afterwards."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield str(Path(tmpdir) / "nested" / "cache.db")


@pytest.mark.integration
class TestDatabaseSetup:
    """Tests for database setup."""

    def test_creates_file_and_tables(self, temp_db_path: str) -> None:
        db = Database(temp_db_path)
        db.create_tables()

        tables = set(inspect(db.engine).get_table_names())
        db.close()

        assert Path(temp_db_path).exists()
        assert {"repos", "tickets", "ticket_prs", "pending_changes"} <= tables

    def test_wal_mode_enabled(self, temp_db_path: str) -> None:
        db = Database(temp_db_path)
        db.create_tables()

        assert db.is_wal_mode() is True
        db.close()

    def test_connection_pragmas(self, temp_db_path: str) -> None:
        db = Database(temp_db_path)

        with db.engine.connect() as conn:
            foreign_keys = conn.execute(text("PRAGMA foreign_keys")).scalar()
            busy_timeout = conn.execute(text("PRAGMA busy_timeout")).scalar()
        db.close()

        assert foreign_keys == 1
        assert busy_timeout == BUSY_TIMEOUT_MS


@pytest.mark.integration
class TestPersistence:
    """Data survives reopening the store."""

    def test_reopen_keeps_cache(self, temp_db_path: str) -> None:
        first = StateStore(temp_db_path)
        first.create_repo("acme/widgets")
        first.replace_tickets("acme/widgets", [TICKET])
        first.close()

        second = StateStore(temp_db_path)
        tickets = second.list_tickets("acme/widgets")
        second.close()

        assert [t.display_id for t in tickets] == ["TK-01hq3k5m"]

    def test_deleting_repo_row_cascades(self, temp_db_path: str) -> None:
        store = StateStore(temp_db_path)
        store.create_repo("acme/widgets")
        store.replace_tickets("acme/widgets", [TICKET])
        store.create_pending_change("acme/widgets", TICKET.full_id, pr_number=1)

        db = Database(temp_db_path)
        with db.engine.begin() as conn:
            conn.exec_driver_sql("DELETE FROM repos WHERE full_name = 'acme/widgets'")
            remaining = conn.exec_driver_sql("SELECT COUNT(*) FROM tickets").scalar()
            changes = conn.exec_driver_sql("SELECT COUNT(*) FROM pending_changes").scalar()
        db.close()
        store.close()

        assert remaining == 0
        assert changes == 0
