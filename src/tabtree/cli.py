"""tabtree CLI - inspect and feed per-tab navigation trees."""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tabtree import __version__, config
from tabtree.exceptions import EventParseError

app = typer.Typer(
    name="tabtree",
    help="Branching navigation history for browser tabs.",
    no_args_is_help=True,
)
mcp_app = typer.Typer(help="MCP server management.")

app.add_typer(mcp_app, name="mcp")

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"tabtree {__version__}")
        raise typer.Exit()


def _open_tracker():
    from tabtree.history.store import KeyValueStore
    from tabtree.history.tracker import SessionTracker

    tracker = SessionTracker(store=KeyValueStore())
    tracker.load()
    return tracker


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Show debug logging")
    ] = False,
) -> None:
    """tabtree - rebuild what paths you took in each browser tab."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    config.ensure_dirs()


# ── History commands ─────────────────────────────────────────────


@app.command("trees")
def trees(
    tab_id: Annotated[
        Optional[int], typer.Option("--tab-id", "-t", help="Only show this tab")
    ] = None,
    include_closed: Annotated[
        bool, typer.Option("--closed/--no-closed", help="Include closed tabs")
    ] = True,
    raw: Annotated[
        bool, typer.Option("--raw", help="Also print the raw session history")
    ] = False,
) -> None:
    """Show navigation trees for tracked tabs."""
    from tabtree.render import render_tab

    tab_trees = _open_tracker().get_all_tab_trees()
    if tab_id is not None:
        tab_trees = [t for t in tab_trees if t["tabId"] == tab_id]
    if not include_closed:
        tab_trees = [t for t in tab_trees if not t["isClosed"]]

    if not tab_trees:
        console.print("[dim]No tab history available.[/dim]")
        console.print("Feed navigation events with: tabtree replay <events.jsonl>")
        return

    for tab_tree in tab_trees:
        console.print(render_tab(tab_tree, raw=raw))
        console.print()


@app.command("status")
def status() -> None:
    """Summarize tracked tabs and session entries."""
    info = _open_tracker().get_status()

    table = Table(title="Tab History")
    table.add_column("Tracked", justify="right")
    table.add_column("Active", justify="right", style="green")
    table.add_column("Closed", justify="right", style="red")
    table.add_column("Entries", justify="right", style="cyan")
    table.add_row(
        str(info["trackedTabs"]),
        str(info["activeTabs"]),
        str(info["closedTabs"]),
        str(info["totalSessionEntries"]),
    )
    console.print(table)


@app.command("clear")
def clear(
    closed_only: Annotated[
        bool, typer.Option("--closed-only", help="Only clear closed tab histories")
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
) -> None:
    """Clear tab histories. This cannot be undone."""
    what = "all closed tab histories" if closed_only else "ALL tab history (active and closed)"
    if not yes and not typer.confirm(f"Clear {what}?"):
        raise typer.Exit(1)

    tracker = _open_tracker()
    if closed_only:
        tracker.clear_closed_tabs()
    else:
        tracker.clear_history()
    console.print(f"[green]Cleared[/green] {what}")


@app.command("refresh")
def refresh(
    tab_id: Annotated[int, typer.Argument(help="Tab to rebuild")],
) -> None:
    """Rebuild one active tab's tree from its session log."""
    from tabtree.render import build_rich_tree

    tracker = _open_tracker()
    result = tracker.refresh_tab_history(tab_id)
    if result is None:
        console.print(f"[red]Tab not tracked:[/red] {tab_id}")
        raise typer.Exit(1)
    tracker.save()
    console.print(build_rich_tree(result))


@app.command("debug")
def debug() -> None:
    """Dump every session log with simplified trees."""
    console.print_json(data=_open_tracker().debug_info())


@app.command("export")
def export(
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="File to write")
    ] = None,
) -> None:
    """Export all tab trees to a JSON file."""
    from tabtree.render import default_export_name, export_payload

    now = config.now_ms()
    payload = export_payload(_open_tracker().get_all_tab_trees(), now)
    output = output or Path.cwd() / default_export_name(now)
    output.write_text(json.dumps(payload, indent=2) + "\n")
    console.print(f"[green]Exported {len(payload['tabTrees'])} tabs:[/green] {output}")


@app.command("replay")
def replay_events(
    events_file: Annotated[Path, typer.Argument(help="JSON-lines navigation event log")],
) -> None:
    """Feed a recorded navigation event log into the tracker."""
    from tabtree.history.events import read_events, replay

    if not events_file.is_file():
        console.print(f"[red]Error:[/red] {events_file} is not a file")
        raise typer.Exit(1)

    try:
        events = read_events(events_file)
    except EventParseError as e:
        console.print(f"[red]Error:[/red] {events_file}: {e}")
        raise typer.Exit(1)

    tracker = _open_tracker()
    count = replay(tracker, events)
    info = tracker.get_status()
    console.print(
        f"[green]Replayed {count} events:[/green] "
        f"{info['activeTabs']} active, {info['closedTabs']} closed tabs"
    )


@app.command("request")
def request(
    action: Annotated[str, typer.Argument(help="Action name, e.g. getStatus")],
    tab_id: Annotated[Optional[int], typer.Option("--tab-id", "-t")] = None,
) -> None:
    """Send a raw request to the command surface and print the response."""
    from tabtree.commands import handle_request

    payload: dict = {"action": action}
    if tab_id is not None:
        payload["tabId"] = tab_id
    response = handle_request(_open_tracker(), payload)
    console.print_json(data=response)
    if not response["success"]:
        raise typer.Exit(1)


# ── MCP commands ─────────────────────────────────────────────────


@mcp_app.command("serve")
def mcp_serve() -> None:
    """Start the MCP server (stdio transport)."""
    from tabtree.mcp.server import mcp

    mcp.run()
