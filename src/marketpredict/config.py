from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class DatabaseConfig:
    host: str
    port: int
    database: str
    user: str
    password: str

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass(frozen=True)
class AppConfig:
    db_dsn: str
    quote_window: int = 7
    certainty_lookback_days: int = 30
    certainty_history_limit: int = 100
    prediction_horizon_days: int = 1
    api_token: str = ""


def load_config() -> AppConfig:
    """Load application config from environment variables.

    Loads .env file if present in the current directory. DATABASE_URL wins
    over the PGHOST/PGPORT/... variables when both are set.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    db_dsn = os.environ.get("DATABASE_URL", "")
    if not db_dsn and os.environ.get("PGHOST"):
        # Fall back to the libpq-style variables
        db_dsn = DatabaseConfig(
            host=os.environ["PGHOST"],
            port=int(os.environ.get("PGPORT", "5432")),
            database=os.environ.get("PGDATABASE", "markets"),
            user=os.environ.get("PGUSER", "markets"),
            password=os.environ.get("PGPASSWORD", ""),
        ).dsn

    return AppConfig(
        db_dsn=db_dsn,
        quote_window=int(os.environ.get("QUOTE_WINDOW", "7")),
        certainty_lookback_days=int(os.environ.get("CERTAINTY_LOOKBACK_DAYS", "30")),
        certainty_history_limit=int(os.environ.get("CERTAINTY_HISTORY_LIMIT", "100")),
        prediction_horizon_days=int(os.environ.get("PREDICTION_HORIZON_DAYS", "1")),
        api_token=os.environ.get("API_TOKEN", ""),
    )
