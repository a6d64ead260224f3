"""CLI commands for meshtrack."""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from meshtrack import __logo__, __version__
from meshtrack.api import MeshtasticApiClient
from meshtrack.config.schema import Config
from meshtrack.devices import normalize_devices
from meshtrack.utils.helpers import format_value, time_ago

app = typer.Typer(
    name="meshtrack",
    help=f"{__logo__} meshtrack - Meshtastic device tracking client",
    no_args_is_help=True,
)

console = Console()


def _build_client(config: Config) -> MeshtasticApiClient:
    return MeshtasticApiClient.from_config(config)


def _load(config_path: Path | None, logs: bool) -> Config:
    from meshtrack.config.loader import load_config

    if logs:
        logger.enable("meshtrack")
    else:
        logger.disable("meshtrack")
    return load_config(config_path.expanduser() if config_path else None)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} meshtrack v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
):
    """meshtrack - Meshtastic device tracking client."""
    pass


# ============================================================================
# Device Commands
# ============================================================================


@app.command()
def devices(
    config: Path | None = typer.Option(None, "--config", help="Config path"),
    active_only: bool = typer.Option(False, "--active-only", help="Only show recently active devices"),
    as_json: bool = typer.Option(False, "--json", help="Print normalized devices as JSON"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show client logs"),
):
    """List devices known to the backend."""
    cfg = _load(config, logs)
    client = _build_client(cfg)
    payload = asyncio.run(client.get_all_devices())
    rows = normalize_devices(
        payload,
        active_threshold=cfg.thresholds.device_active_threshold,
        recently_active_threshold=cfg.thresholds.device_recently_active_threshold,
    )
    if active_only:
        rows = [row for row in rows if row["is_recently_active"]]

    if as_json:
        console.print_json(json.dumps(rows, default=str))
        return

    if not rows:
        console.print("[yellow]No devices.[/yellow]")
        return

    table = Table(title="Devices")
    table.add_column("Node", style="cyan")
    table.add_column("Name")
    table.add_column("Position")
    table.add_column("Last seen")
    table.add_column("Status")
    table.add_column("MQTT")
    for row in rows:
        table.add_row(
            escape(row["node_id"]),
            escape(str(format_value(row["device_name"], "-"))),
            escape(_format_coordinates(row["coordinates"])),
            _format_last_seen(row["latest_timestamp"]),
            _format_status(row),
            "✓" if row["is_mqtt_node"] else "",
        )
    console.print(table)


@app.command()
def track(
    node_id: str = typer.Argument(..., help="Node id, e.g. !a1b2c3d4"),
    config: Path | None = typer.Option(None, "--config", help="Config path"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show client logs"),
):
    """Show the GPS track summary for a node."""
    cfg = _load(config, logs)
    client = _build_client(cfg)
    points = asyncio.run(client.get_gps_track(node_id))
    if not points:
        console.print(f"[yellow]No track points for {escape(node_id)}[/yellow]")
        return
    console.print(f"node={escape(node_id)} points={len(points)}")
    console.print_json(json.dumps(points[-1], default=str))


@app.command()
def metrics(
    node_id: str = typer.Argument(..., help="Node id, e.g. !a1b2c3d4"),
    environment: bool = typer.Option(False, "--environment", help="Show environment metrics"),
    config: Path | None = typer.Option(None, "--config", help="Config path"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show client logs"),
):
    """Show device or environment metrics for a node."""
    cfg = _load(config, logs)
    client = _build_client(cfg)
    if environment:
        data = asyncio.run(client.get_environment_metrics(node_id))
    else:
        data = asyncio.run(client.get_device_metrics(node_id))
    if data is None:
        console.print(f"[yellow]No metrics for {escape(node_id)}[/yellow]")
        return
    console.print_json(json.dumps(data, default=str))


# ============================================================================
# Config Commands
# ============================================================================

config_app = typer.Typer(help="Manage meshtrack config")
app.add_typer(config_app, name="config")


@config_app.command("check")
def config_check(
    config: Path | None = typer.Option(None, "--config", help="Config path to validate"),
):
    """Validate config JSON structure and schema."""
    from meshtrack.config.loader import convert_keys, convert_to_camel, get_config_path

    config_path = (config or get_config_path()).expanduser()
    if not config_path.exists():
        console.print(f"[red]Config file not found:[/red] {config_path}")
        raise typer.Exit(2)

    try:
        raw = json.loads(config_path.read_text())
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {escape(str(exc))}")
        raise typer.Exit(2) from exc
    except Exception as exc:
        console.print(f"[red]Failed to read config:[/red] {escape(str(exc))}")
        raise typer.Exit(2) from exc

    if not isinstance(raw, dict):
        console.print("[red]Config must be a JSON object[/red]")
        raise typer.Exit(2)

    try:
        cfg = Config.model_validate(convert_keys(raw))
    except Exception as exc:
        console.print(f"[red]Schema validation failed:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    console.print("[green]✓[/green] Config validation passed")
    console.print(f"path={config_path}")
    console.print(f"devices={cfg.api.base_url_main}/devices")
    console.print(
        "thresholds="
        f"active={cfg.thresholds.device_active_threshold}s "
        f"recently_active={cfg.thresholds.device_recently_active_threshold}s"
    )
    console.print_json(json.dumps(convert_to_camel(cfg.model_dump())))


def _format_coordinates(coords: Any) -> str:
    if not coords:
        return "-"
    lat, lon, alt = coords
    return f"{lat}, {lon} ({alt} m)"


def _format_last_seen(ts: float | None) -> str:
    if not ts:
        return "-"
    try:
        seen = datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return str(ts)
    return f"{seen} ({time_ago(ts * 1000)})"


def _format_status(row: dict[str, Any]) -> str:
    if row["is_online"]:
        return "[green]online[/green]"
    if row["is_recently_active"]:
        return "[yellow]recent[/yellow]"
    return "[dim]offline[/dim]"


if __name__ == "__main__":
    app()
