from __future__ import annotations

import os
from unittest.mock import patch

from marketpredict.config import AppConfig, DatabaseConfig, load_config

_KEYS = (
    "DATABASE_URL", "QUOTE_WINDOW", "CERTAINTY_LOOKBACK_DAYS", "CERTAINTY_HISTORY_LIMIT",
    "PREDICTION_HORIZON_DAYS", "API_TOKEN", "PGHOST", "PGPORT", "PGDATABASE", "PGUSER",
    "PGPASSWORD",
)


def _clean_env(**env: str) -> dict[str, str]:
    clean = {k: v for k, v in os.environ.items() if k not in _KEYS}
    clean.update(env)
    return clean


class TestDatabaseConfig:
    def test_dsn_property(self) -> None:
        cfg = DatabaseConfig(
            host="localhost", port=5432, database="markets", user="u", password="p"
        )
        assert cfg.dsn == "postgresql://u:p@localhost:5432/markets"

    def test_frozen(self) -> None:
        cfg = DatabaseConfig(
            host="localhost", port=5432, database="markets", user="u", password="p"
        )
        try:
            cfg.host = "other"  # type: ignore[misc]
            assert False, "Should be frozen"
        except AttributeError:
            pass


class TestLoadConfig:
    def test_loads_from_env(self) -> None:
        env = _clean_env(
            DATABASE_URL="postgresql://u:p@host:5432/markets",
            QUOTE_WINDOW="10",
            CERTAINTY_LOOKBACK_DAYS="60",
            CERTAINTY_HISTORY_LIMIT="50",
            PREDICTION_HORIZON_DAYS="2",
            API_TOKEN="secret",
        )
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.db_dsn == "postgresql://u:p@host:5432/markets"
        assert cfg.quote_window == 10
        assert cfg.certainty_lookback_days == 60
        assert cfg.certainty_history_limit == 50
        assert cfg.prediction_horizon_days == 2
        assert cfg.api_token == "secret"

    def test_defaults(self) -> None:
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = load_config()

        assert cfg.db_dsn == ""
        assert cfg.quote_window == 7
        assert cfg.certainty_lookback_days == 30
        assert cfg.certainty_history_limit == 100
        assert cfg.prediction_horizon_days == 1
        assert cfg.api_token == ""

    def test_builds_dsn_from_pg_variables(self) -> None:
        env = _clean_env(PGHOST="db", PGPORT="5433", PGDATABASE="mk", PGUSER="bot", PGPASSWORD="pw")
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.db_dsn == "postgresql://bot:pw@db:5433/mk"

    def test_database_url_wins(self) -> None:
        env = _clean_env(DATABASE_URL="postgresql://a:b@c:1/d", PGHOST="db")
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.db_dsn == "postgresql://a:b@c:1/d"

    def test_app_config_frozen(self) -> None:
        cfg = AppConfig(db_dsn="")
        try:
            cfg.db_dsn = "x"  # type: ignore[misc]
            assert False, "Should be frozen"
        except AttributeError:
            pass
