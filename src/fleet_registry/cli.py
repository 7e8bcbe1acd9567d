"""
Fleet Registry CLI - Command-line interface.

Create, read and query fleet records from the terminal.
"""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from fleet_registry.config import FleetSettings, StoreBackend, configure_logging
from fleet_registry.core.exceptions import FleetRegistryError, format_exception
from fleet_registry.core.models import AssetKind, AssetState, RecordKindName
from fleet_registry.fleet import Fleet
from fleet_registry.store.base import InvokeResponse

app = typer.Typer(
    name="fleet-registry",
    help="Fleet Registry - inventory, resource and latency records for distributed nodes",
    no_args_is_help=True,
)
console = Console()

FLEET_QUERIES = {
    "servers": "GetServerAssets",
    "sensors": "GetSensorAssets",
    "robots": "GetRobotAssets",
    "sensors-and-robots": "GetSensorAndRobotAssets",
}


@app.callback()
def main_callback(
    ctx: typer.Context,
    backend: Optional[StoreBackend] = typer.Option(
        None, "--backend", "-b", help="World state backend (overrides FLEET_BACKEND)"
    ),
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", "-d", help="Directory for the SQLite world state"
    ),
):
    """Load settings and logging for every command."""
    try:
        settings = FleetSettings.from_env()
    except FleetRegistryError as e:
        console.print(f"[red]Configuration error:[/red] {format_exception(e)}")
        raise typer.Exit(1)

    if backend is not None:
        settings = replace(settings, backend=backend)
    if data_dir is not None:
        settings = replace(settings, data_dir=data_dir)

    configure_logging(settings.log_level)
    ctx.obj = settings


def _settings(ctx: typer.Context) -> FleetSettings:
    return ctx.obj if isinstance(ctx.obj, FleetSettings) else FleetSettings()


def _fleet(ctx: typer.Context) -> Fleet:
    return Fleet(_settings(ctx))


def _note_backend(ctx: typer.Context) -> None:
    """Remind that changes made on the memory backend end with the command."""
    if _settings(ctx).backend == StoreBackend.MEMORY:
        console.print("[yellow]memory backend:[/yellow] not kept after exit, use --backend sqlite")


def _check_kind(kind: str) -> str:
    names = {k.value for k in RecordKindName}
    if kind not in names:
        console.print(f"[red]Unknown record kind:[/red] {kind} (expected one of {', '.join(sorted(names))})")
        raise typer.Exit(1)
    return kind


def _run(fleet: Fleet, kind: str, operation: str, *args: str) -> Any:
    """Invoke a transaction and return its decoded payload, exiting on failure."""
    try:
        response: InvokeResponse = fleet.invoke(kind, operation, *args)
    finally:
        fleet.close()

    if not response.ok:
        console.print(f"[red]Error ({response.status}):[/red] {response.message}")
        raise typer.Exit(1)
    if not response.payload:
        return None
    return json.loads(response.payload)


def _records_table(title: str, kind: str, records: list[dict[str, Any]]) -> Table:
    table = Table(title=f"{title} ({len(records)})")
    table.add_column("ID", style="cyan")

    if kind == RecordKindName.INVENTORY.value:
        table.add_column("Name")
        table.add_column("Owner")
        table.add_column("Type", style="magenta")
        table.add_column("State")
        for record in records:
            state = AssetState(record["state"])
            state_style = "green" if state == AssetState.ENABLED else "red"
            table.add_row(
                record["id"],
                record.get("name", ""),
                record.get("owner", ""),
                AssetKind(record["type"]).name.title(),
                f"[{state_style}]{state.name.title()}[/{state_style}]",
            )
    elif kind == RecordKindName.RESOURCE.value:
        table.add_column("Host")
        table.add_column("CPU %", justify="right")
        table.add_column("Memory", justify="right")
        table.add_column("Time", justify="right")
        for record in records:
            metrics = record.get("metrics", {})
            cpu = metrics.get("cpuPercent")
            table.add_row(
                record["id"],
                record["host"].get("hostname") or record["host"]["hostId"],
                "-" if cpu is None else f"{cpu:.1f}",
                f"{metrics.get('memoryUsed') or '-'}/{metrics.get('memoryTotal') or '-'}",
                str(record["timestamp"]["timeSeconds"]),
            )
    else:
        table.add_column("Source")
        table.add_column("Targets")
        table.add_column("Time", justify="right")
        for record in records:
            targets = ", ".join(
                f"{r['hostname']} ({r['latency']:.1f}ms)" for r in record.get("results", [])
            )
            table.add_row(
                record["id"],
                record.get("source", ""),
                targets,
                str(record["timestamp"]["timeSeconds"]),
            )
    return table


@app.command()
def create(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind: inventory, resource or latency"),
    payload: str = typer.Argument(..., help="Record JSON"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Host key (resource records)"),
):
    """Create a new record."""
    kind = _check_kind(kind)
    args = [key or "", payload] if kind == RecordKindName.RESOURCE.value else [payload]
    _run(_fleet(ctx), kind, "CreateAsset", *args)
    console.print(f"[green]Created[/green] {kind} record")
    _note_backend(ctx)


@app.command()
def read(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
    key: str = typer.Argument(..., help="Record key"),
):
    """Show a single record."""
    record = _run(_fleet(ctx), _check_kind(kind), "ReadAsset", key)
    console.print_json(data=record)


@app.command()
def update(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
    payload: str = typer.Argument(..., help="Replacement record JSON"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Host key (resource records)"),
):
    """Replace an existing record."""
    kind = _check_kind(kind)
    args = [key or "", payload] if kind == RecordKindName.RESOURCE.value else [payload]
    _run(_fleet(ctx), kind, "UpdateAsset", *args)
    console.print(f"[green]Updated[/green] {kind} record")
    _note_backend(ctx)


@app.command()
def delete(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
    key: str = typer.Argument(..., help="Record key"),
):
    """Delete a record."""
    _run(_fleet(ctx), _check_kind(kind), "DeleteAsset", key)
    console.print(f"[green]Deleted[/green] {kind} record '{key}'")
    _note_backend(ctx)


@app.command()
def exists(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
    key: str = typer.Argument(..., help="Record key"),
):
    """Check whether a key is present."""
    present = _run(_fleet(ctx), _check_kind(kind), "AssetExists", key)
    if present:
        console.print(f"[green]present[/green] {key}")
    else:
        console.print(f"[yellow]absent[/yellow] {key}")


@app.command()
def transfer(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind (inventory or resource)"),
    old_key: str = typer.Argument(..., help="Current key"),
    new_key: str = typer.Argument(..., help="New key"),
):
    """Re-key a record."""
    record = _run(_fleet(ctx), _check_kind(kind), "TransferAsset", old_key, new_key)
    console.print(f"[green]Transferred[/green] {old_key} -> {record['id']}")
    _note_backend(ctx)


@app.command("list")
def list_records(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
):
    """List every record of a kind."""
    kind = _check_kind(kind)
    records = _run(_fleet(ctx), kind, "GetAllAssets") or []
    console.print(_records_table(f"{kind.title()} Records", kind, records))


@app.command()
def query(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind"),
    selector: str = typer.Argument(..., help='Selector JSON, e.g. \'{"owner": "ops"}\''),
):
    """Run a raw selector query against one registry."""
    kind = _check_kind(kind)
    try:
        parsed = json.loads(selector)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid selector JSON:[/red] {e}")
        raise typer.Exit(1)

    fleet = _fleet(ctx)
    try:
        records = fleet.contract(kind).queries.query(fleet.context(kind), parsed)
    except FleetRegistryError as e:
        console.print(f"[red]Error:[/red] {format_exception(e)}")
        raise typer.Exit(1)
    finally:
        fleet.close()

    rows = [record.model_dump(mode="json", by_alias=True) for record in records]
    console.print(_records_table("Query Results", kind, rows))


@app.command("recent-latency")
def recent_latency(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Measuring node"),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Measured host"),
    minutes: int = typer.Option(30, "--minutes", "-m", help="Window length"),
):
    """Latency measurements from the last few minutes."""
    if (source is None) == (target is None):
        console.print("[red]Give exactly one of --source or --target[/red]")
        raise typer.Exit(1)

    latency = RecordKindName.LATENCY.value
    if source is not None:
        records = _run(_fleet(ctx), latency, "GetAssetListTimeSource", source, str(minutes))
    else:
        records = _run(_fleet(ctx), latency, "GetAssetListTimeTarget", target, str(minutes))
    console.print(_records_table(f"Latency, last {minutes} min", latency, records or []))


@app.command("fleet-assets")
def fleet_assets(
    ctx: typer.Context,
    group: str = typer.Argument("servers", help=f"One of: {', '.join(FLEET_QUERIES)}"),
    except_id: Optional[str] = typer.Option(None, "--except-id", "-x", help="Asset id to leave out"),
):
    """Inventory assets as seen from the latency registry."""
    operation = FLEET_QUERIES.get(group)
    if operation is None:
        console.print(f"[red]Unknown group:[/red] {group}")
        raise typer.Exit(1)

    args: list[str] = []
    if except_id is not None:
        operation += "ExceptId"
        args.append(except_id)

    records = _run(_fleet(ctx), RecordKindName.LATENCY.value, operation, *args)
    console.print(
        _records_table(f"Fleet {group}", RecordKindName.INVENTORY.value, records or [])
    )


@app.command()
def version():
    """Show Fleet Registry version."""
    from fleet_registry import __version__

    console.print(f"Fleet Registry v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
