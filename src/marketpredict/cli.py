"""CLI entry point for the market prediction engine.

Provides commands for the scheduled jobs:
  - generate: Generate forecasts for one or more companies
  - validate: Grade all overdue open forecasts
  - status: Show open/resolved forecast counts and hit rate
  - migrate: Run database migrations
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable

from marketpredict.config import AppConfig, load_config
from marketpredict.registry.db import Database
from marketpredict.registry.queries import Registry


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _connect(config: AppConfig) -> Database:
    db = Database(config.db_dsn)
    db.connect()
    return db


def _run_audited(registry: Registry, job: str, run: Callable[[], str]) -> None:
    """Run a job inside a cron_runs audit record; failures are re-raised."""
    cron_id = registry.log_cron_start(job)
    logging.info("Job %s started (id=%d)", job, cron_id)
    try:
        msg = run()
    except Exception as e:
        logging.exception("Job %s failed", job)
        registry.log_cron_finish(cron_id, "error", str(e))
        raise
    logging.info(msg)
    print(msg)
    registry.log_cron_finish(cron_id, "success")


def cmd_generate(args: argparse.Namespace) -> None:
    """Generate forecasts for the given companies."""
    from marketpredict.engine.generator import PredictionGenerator
    from marketpredict.messaging import MessageBus

    config = load_config()
    db = _connect(config)
    try:
        registry = Registry(db)
        generator = PredictionGenerator(
            registry,
            MessageBus(db),
            quote_window=config.quote_window,
            history_limit=config.certainty_history_limit,
            lookback_days=config.certainty_lookback_days,
            horizon_days=config.prediction_horizon_days,
        )

        def _run() -> str:
            lines = []
            for company_id in args.company_ids:
                result = generator.generate(company_id)
                action = result.action.value if result.action else "NO_PREDICTION"
                lines.append(f"{company_id}: {action}")
            return "\n".join(lines)

        _run_audited(registry, "generate", _run)
    finally:
        db.close()


def cmd_validate(args: argparse.Namespace) -> None:
    """Grade all overdue open forecasts."""
    from marketpredict.engine.validator import PredictionValidator
    from marketpredict.messaging import MessageBus

    config = load_config()
    db = _connect(config)
    try:
        registry = Registry(db)
        validator = PredictionValidator(registry, MessageBus(db))

        def _run() -> str:
            result = validator.validate()
            return (
                f"Validated {len(result.resolved)}, pending {len(result.pending)}, "
                f"missing data requests {len(result.missing_data)}"
            )

        _run_audited(registry, "validate", _run)
    finally:
        db.close()


def cmd_status(args: argparse.Namespace) -> None:
    """Show forecast counts and overall hit rate."""
    config = load_config()
    db = _connect(config)
    try:
        summary = Registry(db).get_prediction_summary()
    finally:
        db.close()

    print("Predictions:")
    print(f"  Open: {summary['open']}")
    print(f"  Resolved: {summary['resolved']}")
    if summary["resolved"] > 0:
        print(f"  Correct: {summary['correct']} ({summary['accuracy']:.1%})")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Run database migrations."""
    config = load_config()
    db = _connect(config)
    try:
        applied = db.run_migrations()
    finally:
        db.close()
    print(f"Migrations complete ({len(applied)} applied).")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="marketpredict",
        description="Sentiment-driven next-day price direction forecasts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subs = parser.add_subparsers(dest="command", required=True)

    p_generate = subs.add_parser("generate", help="Generate forecasts for companies")
    p_generate.add_argument("company_ids", nargs="+", help="Company ids to forecast")

    subs.add_parser("validate", help="Grade all overdue open forecasts")
    subs.add_parser("status", help="Show forecast counts and hit rate")
    subs.add_parser("migrate", help="Run database migrations")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "generate": cmd_generate,
        "validate": cmd_validate,
        "status": cmd_status,
        "migrate": cmd_migrate,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
