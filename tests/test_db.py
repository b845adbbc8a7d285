from __future__ import annotations

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from marketpredict.registry.db import MIGRATIONS_DIR, Database

DSN = "postgresql://u:p@localhost:5432/markets"


def _mock_connection(cursor: MagicMock) -> MagicMock:
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn = MagicMock()
    conn.cursor.return_value = cursor
    return conn


class TestDatabaseInit:
    def test_stores_dsn(self) -> None:
        db = Database(DSN)
        assert db._dsn == DSN

    def test_not_connected_by_default(self) -> None:
        db = Database(DSN)
        assert db._pool is None
        assert db._conn is None


class TestDatabaseExecute:
    def test_execute_returns_dicts(self) -> None:
        db = Database(DSN)
        cursor = MagicMock()
        cursor.description = [("id",), ("name",)]
        cursor.fetchall.return_value = [
            {"id": "ACME", "name": "Acme"},
            {"id": "INIT", "name": "Initech"},
        ]
        db._conn = _mock_connection(cursor)

        result = db.execute("SELECT id, name FROM markets.companies")
        assert result == [{"id": "ACME", "name": "Acme"}, {"id": "INIT", "name": "Initech"}]
        db._conn.commit.assert_called_once()

    def test_execute_no_results(self) -> None:
        db = Database(DSN)
        cursor = MagicMock()
        cursor.description = None
        db._conn = _mock_connection(cursor)

        result = db.execute("UPDATE markets.predictions SET certainty = %s", (0.5,))
        assert result == []

    def test_execute_rolls_back_on_error(self) -> None:
        db = Database(DSN)
        cursor = MagicMock()
        cursor.execute.side_effect = RuntimeError("boom")
        db._conn = _mock_connection(cursor)

        with pytest.raises(RuntimeError, match="boom"):
            db.execute("SELECT 1")
        db._conn.rollback.assert_called_once()
        db._conn.commit.assert_not_called()

    def test_execute_raises_when_not_connected(self) -> None:
        db = Database(DSN)
        with pytest.raises(RuntimeError, match="not connected"):
            db.execute("SELECT 1")


class TestMigrationRunner:
    def test_finds_and_runs_sql_files(self) -> None:
        db = Database(DSN)

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "001_schema.sql").write_text("CREATE SCHEMA markets;")
            (Path(tmpdir) / "002_quotes.sql").write_text("CREATE TABLE markets.quotes (id INT);")

            cursor = MagicMock()
            cursor.fetchall.return_value = []
            db._conn = _mock_connection(cursor)

            applied = db.run_migrations(tmpdir)

            calls = cursor.execute.call_args_list
            assert "_migrations" in str(calls[0])
            assert "SELECT filename" in str(calls[1])
            # CREATE + SELECT + 2*(SQL + INSERT)
            assert len(calls) == 6
            assert applied == ["001_schema.sql", "002_quotes.sql"]

    def test_skips_applied_migrations(self) -> None:
        db = Database(DSN)

        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "001_schema.sql").write_text("CREATE SCHEMA markets;")
            (Path(tmpdir) / "002_quotes.sql").write_text("CREATE TABLE markets.quotes (id INT);")

            cursor = MagicMock()
            cursor.fetchall.return_value = [{"filename": "001_schema.sql"}]
            db._conn = _mock_connection(cursor)

            applied = db.run_migrations(tmpdir)

            assert len(cursor.execute.call_args_list) == 4
            assert applied == ["002_quotes.sql"]

    def test_bundled_migrations_exist(self) -> None:
        files = sorted(p.name for p in MIGRATIONS_DIR.glob("*.sql"))
        assert files
        schema = (MIGRATIONS_DIR / files[0]).read_text()
        for table in ("predictions", "quotes", "learning_model_records", "messages", "cron_runs"):
            assert f"markets.{table}" in schema


class TestHealthCheck:
    def test_healthy(self) -> None:
        db = Database(DSN)
        cursor = MagicMock()
        cursor.description = [("ok",)]
        cursor.fetchall.return_value = [{"ok": 1}]
        db._conn = _mock_connection(cursor)

        assert db.health_check() is True

    def test_unhealthy(self) -> None:
        db = Database(DSN)
        assert db.health_check() is False


class TestContextManager:
    @patch("marketpredict.registry.db.psycopg")
    def test_single_connection(self, mock_psycopg: MagicMock) -> None:
        mock_conn = MagicMock()
        mock_psycopg.connect.return_value = mock_conn

        with Database(DSN) as db:
            assert db._conn is mock_conn

        mock_conn.close.assert_called_once()

    @patch("marketpredict.registry.db.ConnectionPool")
    def test_pool(self, mock_pool_cls: MagicMock) -> None:
        with Database(DSN, use_pool=True, max_size=2) as db:
            assert db._pool is mock_pool_cls.return_value
            assert mock_pool_cls.call_args.kwargs["max_size"] == 2

        mock_pool_cls.return_value.close.assert_called_once()

    @patch("marketpredict.registry.db.psycopg")
    def test_single_connection_session_in_utc(self, mock_psycopg: MagicMock) -> None:
        with Database(DSN):
            pass

        assert mock_psycopg.connect.call_args.kwargs["options"] == "-c TimeZone=UTC"

    @patch("marketpredict.registry.db.ConnectionPool")
    def test_pool_sessions_in_utc(self, mock_pool_cls: MagicMock) -> None:
        with Database(DSN, use_pool=True):
            pass

        assert mock_pool_cls.call_args.kwargs["kwargs"]["options"] == "-c TimeZone=UTC"
