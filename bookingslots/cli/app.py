"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.calendar_source import CalendarBusyTimeSource
from ..adapters.snapshot import SnapshotRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotEngineError
from ..domain.models import Slot
from ..services.availability import AvailabilityService
from ..services.team_scheduling import TeamSchedulingService

app = typer.Typer(
    name="bookingslots",
    help="Compute bookable slots and round-robin assignments from a schedule snapshot",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(level: str) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path], verbose: bool) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)
    _configure_logging("DEBUG" if verbose else config.log_level)
    return config


def _build_team_service(config: AppConfig) -> TeamSchedulingService:
    """Wire the snapshot repository and calendar sources into the services."""
    repository = SnapshotRepository.load(config.data_file)
    availability = AvailabilityService(
        schedule_provider=repository,
        booking_store=repository,
        busy_time_source=CalendarBusyTimeSource.from_connections(config.calendars)
    )
    return TeamSchedulingService(
        availability,
        schedule_provider=repository,
        roster_provider=repository,
        max_concurrency=config.team.max_concurrency,
        lookback_days=config.team.round_robin_lookback_days
    )


def _determine_date_range(tz: str, start_option: Optional[str], end_option: Optional[str]) -> Tuple[str, str]:
    """
    Resolve the date range. Defaults to today plus the following six days.
    """
    start = start_option or pendulum.now(tz).to_date_string()

    if end_option:
        return start, end_option

    try:
        end = pendulum.from_format(start, "YYYY-MM-DD").add(days=6).to_date_string()
    except ValueError as exc:
        console.print(f"[red]Error parsing start date: {escape(str(exc))}[/red]")
        raise typer.Exit(1)

    return start, end


def _render_slots(slots: List[Slot], tz: str) -> None:
    if not slots:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer date range or check the event's schedule."
        )
        return

    table = Table(
        title=f"{len(slots)} available slot(s) ({tz})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Duration", justify="right")
    table.add_column("UTC", style="dim")

    for slot in slots:
        table.add_row(
            slot.start_utc.in_timezone(tz).format("ddd DD.MM.YYYY"),
            slot.local_time,
            f"{slot.duration_minutes} min",
            slot.time
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    event_id: Annotated[str, typer.Argument(help="Event type id")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD), inclusive")] = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="Attendee IANA timezone")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List bookable slots of an event type.

    Personal, collective and round-robin event types are all supported.

    Examples:

        bookingslots slots intro-call
        bookingslots slots team-demo --start 2026-03-09 --end 2026-03-13 --tz Europe/Berlin
    """
    try:
        config = _load_config(config_file, verbose)
        timezone = tz or config.timezone
        start_date, end_date = _determine_date_range(timezone, start, end)

        service = _build_team_service(config)
        found = asyncio.run(service.get_slots(event_id, start_date, end_date, timezone))

        _render_slots(found, timezone)

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def assign(
    event_id: Annotated[str, typer.Argument(help="Round-robin team event type id")],
    slot_time: Annotated[str, typer.Argument(help="Slot start, ISO 8601 (e.g. 2026-03-10T09:00:00Z)")],
    tz: Annotated[Optional[str], typer.Option("--tz", help="Attendee IANA timezone")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show which team member a round-robin booking would be routed to.
    """
    try:
        config = _load_config(config_file, verbose)
        service = _build_team_service(config)
        member_id = asyncio.run(
            service.get_round_robin_assignment(event_id, slot_time, tz or config.timezone)
        )

    except (FileNotFoundError, ValueError, SlotEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if member_id is None:
        console.print("[yellow]⚠ No team member is available at that time.[/yellow]")
        raise typer.Exit(2)

    console.print(f"[green]✓ Assign to:[/green] [bold]{member_id}[/bold]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
