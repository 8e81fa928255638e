"""
Command-line interface for RECON Health.

Provides commands for importing exports, viewing the dashboard aggregates,
managing goals and serving the ingestion endpoint.
"""

import json
from pathlib import Path

import typer

from recon_health.domain.metrics import Goals, TimeRange
from recon_health.infrastructure.storage.base import MetricsStore
from recon_health.infrastructure.storage.factory import build_store
from recon_health.services.derived_metrics import (
    dashboard_summary,
    personal_records,
)
from recon_health.services.ingestion import IngestionService
from recon_health.utils.exceptions import EmptyImportError, ParsingError, ReconHealthError
from recon_health.utils.logging_config import get_logger, setup_logging
from recon_health.utils.parameters import ParameterLoader
from recon_health.utils.timezone_utils import today_in_timezone

app = typer.Typer(help="RECON Health - Health export ingestion and dashboard metrics")

logger = get_logger(__name__)


def init_config(config_path: str, verbose: bool = False) -> ParameterLoader:
    """
    Initialize configuration and logging.

    Args:
        config_path: Path to configuration file.
        verbose: Log at DEBUG regardless of the configured level.

    Returns:
        Parameter loader instance.
    """
    param_loader = ParameterLoader(config_path)
    setup_logging(
        param_loader.get_logging_config(),
        "recon_health",
        level_override="DEBUG" if verbose else None,
    )
    return param_loader


def _store(param_loader: ParameterLoader) -> MetricsStore:
    return build_store(param_loader.get_storage_config(), param_loader.get_goal_defaults())


@app.command("import")
def import_files(
    paths: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="CSV/JSON exports"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Import Health Auto Export files into the stored series.

    Each file is merged in the order given; later files win for fields
    they define.
    """
    try:
        param_loader = init_config(config_path, verbose)
        storage_config = param_loader.get_storage_config()
        service = IngestionService(
            _store(param_loader),
            ingestion_config=param_loader.get_ingestion_config(),
            csv_config=param_loader.get_csv_config(),
            default_identity=storage_config.identity,
        )
    except ReconHealthError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    failures = 0
    for path in paths:
        try:
            summary = service.import_file(path)
            typer.echo(f"{path.name}: {summary.message}")
        except EmptyImportError:
            failures += 1
            typer.echo(f"{path.name}: No valid data found", err=True)
        except ParsingError as e:
            failures += 1
            logger.error(f"Failed to parse {path.name}: {e}")
            typer.echo(f"{path.name}: Could not read file", err=True)
        except ReconHealthError as e:
            failures += 1
            logger.error(f"Import of {path.name} failed: {e}")
            typer.echo(f"{path.name}: Error: {e}", err=True)

    if failures:
        raise typer.Exit(code=1)


@app.command()
def dashboard(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    time_range: TimeRange = typer.Option(
        TimeRange.ALL, "--range", help="Time range for the activity, sleep and heart summaries"
    ),
) -> None:
    """Print the dashboard aggregates as JSON."""
    try:
        param_loader = init_config(config_path)
        store = _store(param_loader)
        identity = param_loader.get_storage_config().identity
        today = today_in_timezone(param_loader.get_processing_config().timezone)

        summary = dashboard_summary(
            store.load_metrics(identity), store.load_goals(identity), today, time_range
        )

        typer.echo(json.dumps(summary, indent=2))

    except ReconHealthError as e:
        logger.error(f"Dashboard failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def records(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """List personal records."""
    try:
        param_loader = init_config(config_path)
        store = _store(param_loader)
        series = store.load_metrics(param_loader.get_storage_config().identity)

        found = personal_records(series)
        if not found:
            typer.echo("No data imported yet")
            return

        for record in found:
            typer.echo(f"{record.label}: {record.display_value} ({record.date})")

    except ReconHealthError as e:
        logger.error(f"Records failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def goals(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    target_weight: float | None = typer.Option(None, help="Target weight (kg)"),
    target_date: str | None = typer.Option(None, help="Target date (YYYY-MM-DD)"),
    daily_steps: float | None = typer.Option(None, help="Daily step goal"),
    daily_calories: float | None = typer.Option(None, help="Daily active kcal goal"),
    daily_sleep: float | None = typer.Option(None, help="Daily sleep goal (minutes)"),
) -> None:
    """Show goals, or update the ones given as options."""
    try:
        param_loader = init_config(config_path)
        store = _store(param_loader)
        identity = param_loader.get_storage_config().identity

        current = store.load_goals(identity)
        updates = {
            "target_weight": target_weight,
            "target_date": target_date,
            "daily_steps": daily_steps,
            "daily_calories": daily_calories,
            "daily_sleep": daily_sleep,
        }
        updates = {key: value for key, value in updates.items() if value is not None}

        if updates:
            current = Goals.model_validate({**current.model_dump(), **updates})
            store.save_goals(identity, current)
            typer.echo("Goals updated")

        typer.echo(json.dumps(current.to_dict(), indent=2))

    except ReconHealthError as e:
        logger.error(f"Goals failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def clear(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete the stored series."""
    if not yes:
        typer.confirm("Delete all imported health data?", abort=True)

    try:
        param_loader = init_config(config_path)
        _store(param_loader).clear_metrics(param_loader.get_storage_config().identity)
        typer.echo("Stored data cleared")

    except ReconHealthError as e:
        logger.error(f"Clear failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def serve(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Run the HTTP ingestion endpoint."""
    import uvicorn

    from recon_health.api.app import create_app

    try:
        param_loader = init_config(config_path)
        api = create_app(param_loader.config)
    except ReconHealthError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    uvicorn.run(api, host=host, port=port)


if __name__ == "__main__":
    app()
