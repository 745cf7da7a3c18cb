"""
AI Commodity Composite Index — CLI entry point.

Every command follows the same pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Run the action (schema, import, pipeline stage, read query).
  5. Report the result to stdout; ``[ERROR]`` lines and exit code 1 on failure.

Install and run::

    pip install -e .
    acci init-db
    acci import-predictions --file predictions.csv
    acci fetch-prices
    acci calculate-index
    acci update-accuracy
    acci rank-models --period 30d
    acci show-index --days 30
    acci fear-greed
    acci export-rankings --period all --out data/exports/rankings.csv
    acci start-scheduler
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="acci",
    help="AI Commodity Composite Index — prediction accuracy and sentiment index CLI.",
    add_completion=False,
)

_DB_PATH_OPTION = typer.Option(None, "--db-path", help="Override DB path from config.")
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from ai_commodity_index.config import load_config

    try:
        return load_config(Path(config_path) if config_path else None)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _setup(config_path: Optional[str]):
    from ai_commodity_index.utils.logging import configure_logging

    config = _load_config_or_exit(config_path)
    configure_logging(config.logging)
    return config


def _open_db(config, db_path: Optional[str]):
    from ai_commodity_index.db.connection import get_connection

    return get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )


def _dashboard(conn, config):
    from ai_commodity_index.reporting.dashboard import DashboardService
    from ai_commodity_index.utils.cache import TTLCache

    return DashboardService(
        conn, TTLCache(config.cache.ttl_seconds), accuracy=config.accuracy,
    )


def _validate_period(period: str) -> str:
    from ai_commodity_index.config import VALID_PERIODS

    if period not in VALID_PERIODS:
        typer.echo(
            f"[ERROR] Unknown period '{period}'. Use one of {sorted(VALID_PERIODS)}.", err=True
        )
        raise typer.Exit(code=1)
    return period


def _run_stage(stage, **kwargs):
    """Run a pipeline stage, turning a failure into exit code 1."""
    try:
        return stage.run(**kwargs)
    except Exception as exc:
        typer.echo(f"[ERROR] {stage.stage_name} failed: {exc}", err=True)
        raise typer.Exit(code=1)


# ── Setup commands ────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
    seed: bool = typer.Option(
        True, "--seed/--no-seed", help="Load default AI models and commodities.",
    ),
) -> None:
    """Create the SQLite schema and load reference data.

    Safe to run repeatedly: DDL uses IF NOT EXISTS and seeding skips rows
    that already exist.
    """
    from ai_commodity_index.config import resolve_project_path
    from ai_commodity_index.db.schema import ALL_TABLE_NAMES, apply_schema
    from ai_commodity_index.db.seed import seed_reference_data

    config = _setup(config_path)
    target = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target}")

    with _open_db(config, db_path) as conn:
        apply_schema(conn)
        typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
        if seed:
            seed_path = resolve_project_path(config.database.seed_file)
            if not seed_path.exists():
                typer.echo(f"[ERROR] Seed file not found: {seed_path}", err=True)
                raise typer.Exit(code=1)
            models, commodities = seed_reference_data(conn, seed_path)
            typer.echo(f"  Seeded: {models} AI model(s), {commodities} commodit(ies).")

    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(False, "--full", help="Print the full config as JSON."),
) -> None:
    """Validate the configuration and print the main values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:     {config.database.db_path}")
    typer.echo(f"  Default period:    {config.accuracy.default_period}")
    typer.echo(f"  Metric periods:    {', '.join(config.accuracy.periods)}")
    typer.echo(f"  Recent window:     {config.index.recent_window_days} days")
    typer.echo(f"  Cache TTL:         {config.cache.ttl_seconds:.0f}s")
    typer.echo(f"  Daily index time:  {config.scheduler.daily_index_time}")
    typer.echo(f"  Log level:         {config.logging.level}")
    typer.echo(f"  Debug mode:        {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


# ── Import / ingest commands ──────────────────────────────────────────────────

@app.command("import-predictions")
def import_predictions(
    file: str = typer.Option(..., "--file", "-f", help="Predictions CSV file."),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate only; write nothing."),
) -> None:
    """Import AI predictions from CSV.

    \b
    Columns: ai_model, commodity_symbol, prediction_date, target_date,
             predicted_price, confidence, timeframe
    """
    from ai_commodity_index.db.repositories.market_repo import MarketRepository
    from ai_commodity_index.ingestion.csv_import import parse_predictions_csv

    config = _setup(config_path)
    try:
        rows = parse_predictions_csv(Path(file))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] CSV parse failed:\n{exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Validated {len(rows)} prediction row(s).")
    if dry_run:
        typer.echo("[DRY RUN] No predictions written to database.")
        return

    with _open_db(config, db_path) as conn:
        repo = MarketRepository(conn)
        models = {m.name: m.id for m in repo.get_ai_models()}
        commodities = {c.symbol: c.id for c in repo.get_commodities()}

        unknown = sorted(
            {f"model '{r.ai_model}'" for r in rows if r.ai_model not in models}
            | {f"commodity '{r.commodity_symbol}'" for r in rows if r.commodity_symbol not in commodities}
        )
        if unknown:
            typer.echo(f"[ERROR] Unknown references: {', '.join(unknown)}", err=True)
            raise typer.Exit(code=1)

        inserted = repo.insert_predictions([
            r.to_prediction(models[r.ai_model], commodities[r.commodity_symbol]) for r in rows
        ])

    typer.echo(f"[OK] Imported {inserted} prediction(s).")


@app.command("import-prices")
def import_prices(
    file: str = typer.Option(..., "--file", "-f", help="Actual prices CSV file."),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Import observed prices from CSV (columns: commodity_symbol, date, price, volume, source)."""
    from ai_commodity_index.db.repositories.market_repo import MarketRepository
    from ai_commodity_index.ingestion.csv_import import parse_actual_prices_csv

    config = _setup(config_path)
    try:
        rows = parse_actual_prices_csv(Path(file))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] CSV parse failed:\n{exc}", err=True)
        raise typer.Exit(code=1)

    with _open_db(config, db_path) as conn:
        repo = MarketRepository(conn)
        commodities = {c.symbol: c.id for c in repo.get_commodities()}
        unknown = sorted({r.commodity_symbol for r in rows if r.commodity_symbol not in commodities})
        if unknown:
            typer.echo(f"[ERROR] Unknown commodity symbols: {', '.join(unknown)}", err=True)
            raise typer.Exit(code=1)
        inserted = repo.insert_actual_prices([
            r.to_actual_price(commodities[r.commodity_symbol]) for r in rows
        ])

    typer.echo(f"[OK] Imported {inserted} price(s).")


@app.command("fetch-prices")
def fetch_prices(
    commodity: Optional[str] = typer.Option(
        None, "--commodity", help="Only this commodity symbol (e.g. XAU)."
    ),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Fetch recent daily closes from Yahoo Finance."""
    from ai_commodity_index.pipeline.ingest import PriceIngestStage

    config = _setup(config_path)
    run = _run_stage(PriceIngestStage(config, db_path=db_path), symbol=commodity)
    typer.echo(f"[OK] Inserted {run.rows_processed} new price(s) | run={run.run_slug}")


# ── Pipeline commands ─────────────────────────────────────────────────────────

@app.command("calculate-index")
def calculate_index(
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Calculate the composite index and store one snapshot."""
    from ai_commodity_index.pipeline.composite_index import CompositeIndexStage
    from ai_commodity_index.reporting.formatters import format_index_summary

    config = _setup(config_path)
    stage = CompositeIndexStage(config, db_path=db_path)
    run = _run_stage(stage)
    if stage.snapshot is not None:
        typer.echo(format_index_summary(stage.snapshot))
    typer.echo(f"[OK] Composite index stored | run={run.run_slug}")


@app.command("update-accuracy")
def update_accuracy(
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Recompute accuracy metrics for every configured period."""
    from ai_commodity_index.pipeline.accuracy_metrics import AccuracyMetricsStage

    config = _setup(config_path)
    run = _run_stage(AccuracyMetricsStage(config, db_path=db_path))
    typer.echo(f"[OK] Upserted {run.rows_processed} accuracy metric row(s) | run={run.run_slug}")


@app.command("rank-models")
def rank_models_cmd(
    period: Optional[str] = typer.Option(None, "--period", help="7d, 30d, 90d or all."),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Rank AI models by accuracy and record the ranking for trend tracking."""
    from ai_commodity_index.pipeline.model_ranking import ModelRankingStage
    from ai_commodity_index.reporting.formatters import format_rankings_table

    config = _setup(config_path)
    period = _validate_period(period or config.accuracy.default_period)
    stage = ModelRankingStage(config, db_path=db_path)
    _run_stage(stage, period=period)
    typer.echo(format_rankings_table(stage.rankings or [], period))


# ── Read commands ─────────────────────────────────────────────────────────────

@app.command("show-index")
def show_index(
    days: Optional[int] = typer.Option(None, "--days", help="History window in days."),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show the latest composite index and its recent history."""
    from ai_commodity_index.reporting.formatters import format_index_history, format_index_summary

    config = _setup(config_path)
    with _open_db(config, db_path) as conn:
        service = _dashboard(conn, config)
        latest = service.get_latest_index()
        history = service.get_index_history(days or config.index.history_days)

    if latest is None:
        typer.echo("  (no composite index yet; run 'acci calculate-index' first)")
        return
    typer.echo(format_index_summary(latest))
    typer.echo(format_index_history(history))


@app.command("fear-greed")
def fear_greed(
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show the Fear/Greed reading derived from the latest composite index."""
    from ai_commodity_index.reporting.formatters import format_fear_greed

    config = _setup(config_path)
    with _open_db(config, db_path) as conn:
        reading = _dashboard(conn, config).get_fear_greed()

    if reading is None:
        typer.echo("[ERROR] No composite index data available.", err=True)
        raise typer.Exit(code=1)
    typer.echo(format_fear_greed(reading))


@app.command("export-rankings")
def export_rankings(
    period: Optional[str] = typer.Option(None, "--period", help="7d, 30d, 90d or all."),
    out: str = typer.Option(..., "--out", help="Output file (.csv or .json)."),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Export the league table to CSV or JSON without recording rank history."""
    from ai_commodity_index.reporting.export import (
        RANKING_COLUMNS,
        export_to_csv,
        export_to_json,
        rankings_to_rows,
    )

    config = _setup(config_path)
    period = _validate_period(period or config.accuracy.default_period)
    out_path = Path(out)
    if out_path.suffix.lower() not in (".csv", ".json"):
        typer.echo(f"[ERROR] Unsupported output format '{out_path.suffix}'. Use .csv or .json.", err=True)
        raise typer.Exit(code=1)

    with _open_db(config, db_path) as conn:
        rows = rankings_to_rows(_dashboard(conn, config).get_model_rankings(period))

    if out_path.suffix.lower() == ".csv":
        export_to_csv(rows, out_path, fieldnames=RANKING_COLUMNS)
    else:
        export_to_json({"period": period, "rankings": rows}, out_path)
    typer.echo(f"[OK] Wrote {len(rows)} ranking row(s) to {out_path}")


# ── Scheduler ─────────────────────────────────────────────────────────────────

@app.command("start-scheduler")
def start_scheduler(
    daily_time: Optional[str] = typer.Option(
        None, "--daily-time", help="Local HH:MM for the daily job (default from config)."
    ),
    db_path: Optional[str] = _DB_PATH_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Run calculate-index and update-accuracy every day. Blocks until Ctrl-C."""
    from ai_commodity_index.config import SchedulerConfig
    from ai_commodity_index.scheduler import SchedulerDaemon

    config = _setup(config_path)
    try:
        schedule = SchedulerConfig(daily_index_time=daily_time or config.scheduler.daily_index_time)
        daemon = SchedulerDaemon(
            db_path=db_path or config.database.db_path,
            daily_time=schedule.daily_index_time,
            config_path=config_path,
        )
    except (ValueError, RuntimeError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Scheduler running; daily job at {schedule.daily_index_time}. Ctrl-C to stop.")
    daemon.start()


if __name__ == "__main__":
    app()
