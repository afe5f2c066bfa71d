"""
DemoScope CLI - Command Line Interface for TF2 match analysis

Provides commands for:
- Analysing decoded demo records
- Generating a default configuration file
- Showing environment information
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from demoscope import __version__
from demoscope.analysis.analyser import analyse
from demoscope.analysis.describe import describe_event
from demoscope.analysis.models import EventKind, MatchState
from demoscope.core.config import LoggingConfig, generate_default_config, load_config
from demoscope.core.errors import DemoScopeError
from demoscope.core.records import load_records
from demoscope.core.utils import (
    sec_to_timestamp,
    steam_profile_url,
    steamid_32_to_64,
    ticks_to_timestamp,
)
from demoscope.export import export_match

app = typer.Typer(
    name="demoscope",
    help="Reconstruct TF2 matches from decoded demo records",
    add_completion=False,
)
console = Console()

logger = logging.getLogger(__name__)

TEAM_STYLES = {"RED": "red", "BLU": "blue"}


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Configure the root logger from LoggingConfig."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format, handlers=handlers, force=True)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]DemoScope[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
) -> None:
    """DemoScope - TF2 Demo Match Analyser"""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def analyze(
    records_path: Path = typer.Argument(
        ...,
        help="Path to the decoded records (.jsonl) of a demo",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for results (format detected from extension: .json, .csv)",
    ),
    kinds: Optional[list[str]] = typer.Option(
        None,
        "--kind",
        "-k",
        help="Only show events of this kind (repeatable): " + ", ".join(k.value for k in EventKind),
    ),
    player: Optional[str] = typer.Option(
        None, "--player", "-p", help="Only show events involving this player (name)"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on malformed records instead of skipping them"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (YAML, TOML or JSON)"
    ),
) -> None:
    """
    Analyse a demo's decoded records and display the match.

    Shows server information, the player list with Steam IDs and class
    switches, and the chronological event log.
    """
    config = load_config(config_file)
    configure_logging(config.logging, verbose=logger.getEffectiveLevel() <= logging.DEBUG)
    if strict:
        config.analysis.strict = True

    try:
        kind_filter = {EventKind(k) for k in kinds} if kinds else None
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    try:
        records = load_records(records_path)
        state = analyse(records, config.analysis)
    except DemoScopeError as e:
        console.print(f"[red]Error analysing records:[/red] {e}")
        raise typer.Exit(1)

    _display_match_info(state, records_path)
    _display_players(state)

    player_uid = None
    if player:
        user = state.find_user(player)
        if user is None:
            console.print(f"[yellow]Warning:[/yellow] Player '{escape(player)}' not found")
        else:
            player_uid = user.uid

    _display_events(state, kind_filter, player_uid)

    if output:
        try:
            export_match(state, output, config.export)
        except ValueError as e:
            console.print(f"[red]Error exporting results:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"\n[green]Results exported to:[/green] {output}")


def _display_match_info(state: MatchState, records_path: Path) -> None:
    info = state.server_info
    table = Table(title="Match Information", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("File", records_path.name)
    table.add_row("Server", escape(info.name or "unknown"))
    table.add_row("Map", escape(info.map_name or "unknown"))
    table.add_row(
        "Duration", f"{sec_to_timestamp(state.duration_seconds)} ({state.duration_ticks} ticks)"
    )
    table.add_row("Players", f"{len(state.users)} (maxplayers {info.max_players})")
    table.add_row(
        "Tick Rate",
        f"{state.tick_rate:.2f} ({info.interval_per_tick * 1000:.0f} ms/tick)",
    )
    table.add_row("SourceTV", "yes" if info.is_stv else "no")
    console.print(table)
    console.print()


def _profile_link(steam_id: str | None) -> str:
    sid64 = steamid_32_to_64(steam_id or "")
    if sid64 is None:
        return "-"
    return f"[link={steam_profile_url(steam_id)}]{sid64}[/link]"


def _display_players(state: MatchState) -> None:
    if not state.users:
        console.print("[yellow]No players found[/yellow]")
        return

    table = Table(title="Players")
    table.add_column("Name", style="cyan")
    table.add_column("Steam ID")
    table.add_column("SteamID64")
    table.add_column("Team")
    table.add_column("Class")
    table.add_column("Switches", justify="right")

    users = sorted(state.users, key=lambda u: (u.last_team is None, u.last_team or 0, u.uid))
    for user in users:
        team = str(user.last_team) if user.last_team is not None else "-"
        style = TEAM_STYLES.get(team, "dim")
        table.add_row(
            escape(user.display_name),
            escape(user.steam_id or "-"),
            _profile_link(user.steam_id),
            f"[{style}]{team}[/{style}]",
            str(user.last_class) if user.last_class is not None else "-",
            str(len(user.class_switches)),
        )

    console.print(table)
    console.print()


def _display_events(
    state: MatchState, kinds: set[EventKind] | None, player_uid: int | None
) -> None:
    events = state.events
    if kinds:
        events = tuple(e for e in events if e.kind in kinds)
    if player_uid is not None:
        involved = set(map(id, state.events_for(player_uid)))
        events = tuple(e for e in events if id(e) in involved)

    if not events:
        console.print("[yellow]No events to display[/yellow]")
        return

    table = Table(title=f"Events ({len(events)})")
    table.add_column("Time", style="dim")
    table.add_column("Tick", justify="right", style="dim")
    table.add_column("Kind", style="magenta")
    table.add_column("Event")
    table.add_column("Details", style="cyan")

    for event in events:
        description = describe_event(state, event)
        table.add_row(
            ticks_to_timestamp(event.tick, state.tick_rate),
            str(event.tick),
            event.kind.value,
            escape(description.title),
            escape(description.subtitle),
        )

    console.print(table)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("demoscope.yaml"), help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    try:
        generate_default_config(path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]Wrote default config to:[/green] {path}")


@app.command()
def info() -> None:
    """
    Display information about DemoScope and the environment.
    """
    import platform as plat

    console.print(f"\n[bold blue]DemoScope[/bold blue] v{__version__}\n")

    table = Table(show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Python", plat.python_version())
    table.add_row("Platform", plat.system())
    table.add_row("Architecture", plat.machine())

    for module_name in ("pandas", "yaml", "typer", "rich"):
        try:
            module = __import__(module_name)
            table.add_row(module_name, getattr(module, "__version__", "installed"))
        except ImportError:
            table.add_row(module_name, "[red]not installed[/red]")

    console.print(table)


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
