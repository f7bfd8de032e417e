"""MCP server exposing tab history trees and navigation intake."""

from mcp.server.fastmcp import FastMCP

from tabtree.commands import handle_request
from tabtree.history.events import ReportedNavigationSource
from tabtree.history.models import NavInfo
from tabtree.history.store import KeyValueStore
from tabtree.history.tracker import SessionTracker
from tabtree.render import render_text

mcp = FastMCP("tabtree")
source = ReportedNavigationSource()
tracker: SessionTracker | None = None


def _get_tracker() -> SessionTracker:
    global tracker
    if tracker is None:
        tracker = SessionTracker(store=KeyValueStore(), source=source)
        tracker.start()
    return tracker


def _report(
    tab_id: int,
    history_length: int | None,
    can_go_back: bool | None,
    can_go_forward: bool | None,
) -> NavInfo:
    # Flags describe this call only; omitted ones fall back to defaults
    nav_info = NavInfo(
        history_length=history_length or 1,
        can_go_back=bool(can_go_back),
        can_go_forward=bool(can_go_forward),
    )
    source.report(tab_id, nav_info)
    return nav_info


@mcp.tool()
def record_navigation(
    tab_id: int,
    url: str,
    title: str = "",
    history_length: int | None = None,
    can_go_back: bool | None = None,
    can_go_forward: bool | None = None,
) -> dict:
    """Record a completed page load in a browser tab.

    The tab's session log decides whether this was a refresh, a back step,
    a forward step or a new navigation, and its tree is rebuilt.

    Args:
        tab_id: Browser tab identifier
        url: URL that finished loading (only http/https are tracked)
        title: Page title; the host name is used when empty
        history_length: Length of the tab's history stack, if known
        can_go_back: Whether the tab can navigate back, if known
        can_go_forward: Whether the tab can navigate forward, if known
    """
    nav_info = _report(tab_id, history_length, can_go_back, can_go_forward)
    transition = _get_tracker().tab_updated(tab_id, url, title, True, nav_info)
    if transition is None:
        return {"status": "ignored", "url": url}
    record = _get_tracker().active[tab_id]
    return {
        "status": transition.value,
        "tabId": tab_id,
        "currentIndex": record.log.current_index,
        "sessionLength": len(record.log.entries),
    }


@mcp.tool()
def record_activation(
    tab_id: int,
    url: str,
    title: str = "",
    history_length: int | None = None,
    can_go_back: bool | None = None,
    can_go_forward: bool | None = None,
) -> dict:
    """Record a browser tab being brought to the foreground.

    Args:
        tab_id: Browser tab identifier
        url: URL currently shown in the tab
        title: Page title
        history_length: Length of the tab's history stack, if known
        can_go_back: Whether the tab can navigate back, if known
        can_go_forward: Whether the tab can navigate forward, if known
    """
    nav_info = _report(tab_id, history_length, can_go_back, can_go_forward)
    transition = _get_tracker().tab_activated(tab_id, url, title, nav_info)
    if transition is None:
        return {"status": "ignored", "url": url}
    return {"status": transition.value, "tabId": tab_id}


@mcp.tool()
def close_tab(tab_id: int) -> dict:
    """Record that a browser tab was closed. Its history is kept.

    Args:
        tab_id: Browser tab identifier
    """
    record = _get_tracker().tab_closed(tab_id)
    source.close_tab(tab_id)
    if record is None:
        return {"status": "untracked", "tabId": tab_id}
    return {"status": "closed", "tabId": tab_id, "sessionLength": len(record.log.entries)}


@mcp.tool()
def get_all_tab_trees() -> list[dict]:
    """List every tracked tab's navigation tree, most recently updated first.

    Each item carries the tree, the raw session history, the current index
    and lifecycle times. Closed tabs are included with isClosed set.
    """
    return handle_request(_get_tracker(), {"action": "getAllTabTrees"})["tabTrees"]


@mcp.tool()
def get_status() -> dict:
    """Count tracked, active and closed tabs and total session entries."""
    return handle_request(_get_tracker(), {"action": "getStatus"})


@mcp.tool()
def clear_history() -> dict:
    """Forget the history of every tab, active and closed."""
    return handle_request(_get_tracker(), {"action": "clearHistory"})


@mcp.tool()
def clear_closed_tabs() -> dict:
    """Forget the history of closed tabs only."""
    return handle_request(_get_tracker(), {"action": "clearClosedTabs"})


@mcp.tool()
def refresh_tab_history(tab_id: int) -> dict | str:
    """Rebuild one tab's tree and return it.

    Args:
        tab_id: Browser tab identifier
    """
    response = handle_request(_get_tracker(), {"action": "refreshTabHistory", "tabId": tab_id})
    if not response.get("tree"):
        return f"Tab {tab_id} not tracked"
    return response["tree"]


@mcp.tool()
def debug_info() -> dict:
    """Structural dump of every session log with simplified trees."""
    return handle_request(_get_tracker(), {"action": "debugInfo"})["debugInfo"]


@mcp.tool()
def render_tab_tree(tab_id: int) -> str:
    """Render a tab's navigation tree as indented text.

    Args:
        tab_id: Browser tab identifier
    """
    record = _get_tracker().get_record(tab_id)
    if record is None:
        return f"Tab {tab_id} not tracked"
    return render_text(record.to_tab_tree())
