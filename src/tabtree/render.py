"""Render tab trees with rich, and build export payloads."""

from datetime import datetime, timezone

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from tabtree.config import EXPORT_VERSION
from tabtree.history.models import NavigationKind, domain_from_url


def format_time(timestamp: int | None) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")


def kind_label(kind: str) -> str:
    """Display label for a navigation kind, or the raw value if unknown."""
    try:
        return NavigationKind(kind).label
    except ValueError:
        return kind


def _entry_title(entry: dict) -> str:
    return entry.get("title") or domain_from_url(entry["url"])


def _node_label(node: dict) -> Text:
    entry = node["entry"]
    style = "bold blue" if node.get("isCurrent") else ""
    label = Text(_entry_title(entry), style=style)
    if node.get("isCurrent"):
        label.append(" ◀ current", style="bold blue")
    label.append(f"\n{entry['url']}", style="dim")
    label.append(f"\n{format_time(entry.get('timestamp'))}", style="dim")
    label.append(f"  {kind_label(entry.get('type', ''))}", style="cyan")
    label.append(f"  depth {node.get('depth', 0)}", style="dim")
    label.append(f"  children {len(node.get('children') or [])}", style="dim")
    label.append(f"  history {entry.get('historyLength', 1)}", style="dim")
    if entry.get("canGoBack"):
        label.append("  can go back", style="green")
    if entry.get("canGoForward"):
        label.append("  can go forward", style="green")
    return label


def _add_children(branch: Tree, node: dict) -> None:
    for child in node.get("children") or []:
        _add_children(branch.add(_node_label(child)), child)


def tab_heading(tab_tree: dict, current_tab_id: int | None = None) -> Text:
    """One-line header with the tab's lifecycle stats."""
    heading = Text(f"Tab {tab_tree['tabId']}", style="bold")
    if current_tab_id is not None and tab_tree["tabId"] == current_tab_id:
        heading.append(" (Current)", style="bold green")
    if tab_tree.get("isClosed"):
        heading.append(" (Closed)", style="bold red")

    length = len(tab_tree.get("sessionHistory") or [])
    stats = [f"Created: {format_time(tab_tree.get('creationTime'))}"]
    if tab_tree.get("isClosed"):
        stats.append(f"Closed: {format_time(tab_tree.get('closedAt'))}")
    stats.append(f"Session: {length} entries")
    stats.append(f"Current: {tab_tree.get('currentIndex', 0) + 1}/{length}")
    heading.append("  " + "  ".join(stats), style="dim")
    return heading


def linear_history(tab_tree: dict) -> Tree:
    """Flat history, used when a tab has entries but no tree yet."""
    root = Tree(Text("Linear history", style="bold"))
    current_index = tab_tree.get("currentIndex", 0)
    for index, entry in enumerate(tab_tree.get("sessionHistory") or []):
        style = "bold blue" if index == current_index else ""
        label = Text(f"{index + 1}. {_entry_title(entry)}", style=style)
        label.append(f"\n{entry['url']}", style="dim")
        label.append(
            f"\n{format_time(entry.get('timestamp'))} • {kind_label(entry.get('type', ''))}",
            style="dim",
        )
        root.add(label)
    return root


def build_rich_tree(tab_tree: dict) -> Tree | Text:
    """Rich tree for one ``getAllTabTrees`` item."""
    node = tab_tree.get("tree")
    if node and node.get("entry"):
        root = Tree(_node_label(node))
        _add_children(root, node)
        return root
    if tab_tree.get("sessionHistory"):
        return linear_history(tab_tree)
    return Text("No history data available", style="dim")


def session_table(tab_tree: dict) -> Table:
    """Raw session history, current entry in bold."""
    history = tab_tree.get("sessionHistory") or []
    table = Table(title=f"Raw Session History ({len(history)} entries)")
    table.add_column("#", justify="right")
    table.add_column("Title", style="green")
    table.add_column("URL")
    table.add_column("Visited")
    table.add_column("Type", style="cyan")

    current_index = tab_tree.get("currentIndex", 0)
    for index, entry in enumerate(history):
        table.add_row(
            str(index + 1),
            _entry_title(entry),
            entry["url"],
            format_time(entry.get("timestamp")),
            kind_label(entry.get("type", "")),
            style="bold blue" if index == current_index else None,
        )
    return table


def render_tab(tab_tree: dict, current_tab_id: int | None = None, raw: bool = False) -> Group:
    parts = [tab_heading(tab_tree, current_tab_id), build_rich_tree(tab_tree)]
    if raw:
        parts.append(session_table(tab_tree))
    return Group(*parts)


def render_text(tab_tree: dict, width: int = 100) -> str:
    """Plain-text rendering of a tab, for non-terminal consumers."""
    console = Console(width=width, force_terminal=False, color_system=None)
    with console.capture() as capture:
        console.print(render_tab(tab_tree))
    return capture.get()


def default_export_name(now_ms: int) -> str:
    return f"tab-history-export-{now_ms}.json"


def export_payload(tab_trees: list[dict], now_ms: int) -> dict:
    """Document written by ``tabtree export``."""
    exported = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    return {
        "tabTrees": tab_trees,
        "exportTime": exported.isoformat().replace("+00:00", "Z"),
        "version": EXPORT_VERSION,
    }
