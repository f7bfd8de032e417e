"""Request/response surface keyed by an ``action`` field."""

import logging
from collections.abc import Callable

from tabtree.exceptions import UnknownActionError
from tabtree.history.tracker import SessionTracker

logger = logging.getLogger(__name__)


def _get_all_tab_trees(tracker: SessionTracker, request: dict) -> dict:
    return {"tabTrees": tracker.get_all_tab_trees()}


def _get_status(tracker: SessionTracker, request: dict) -> dict:
    return tracker.get_status()


def _clear_history(tracker: SessionTracker, request: dict) -> dict:
    tracker.clear_history()
    return {}


def _clear_closed_tabs(tracker: SessionTracker, request: dict) -> dict:
    tracker.clear_closed_tabs()
    return {}


def _refresh_tab_history(tracker: SessionTracker, request: dict) -> dict:
    tab_id = request.get("tabId")
    if tab_id is None:
        raise ValueError("refreshTabHistory requires a tabId")
    if isinstance(tab_id, bool) or not isinstance(tab_id, (int, str)):
        raise ValueError(f"tabId must be an integer, got {type(tab_id).__name__}")
    return {"tree": tracker.refresh_tab_history(int(tab_id))}


def _debug_info(tracker: SessionTracker, request: dict) -> dict:
    return {"debugInfo": tracker.debug_info()}


ACTIONS: dict[str, Callable[[SessionTracker, dict], dict]] = {
    "getAllTabTrees": _get_all_tab_trees,
    "getStatus": _get_status,
    "clearHistory": _clear_history,
    "clearClosedTabs": _clear_closed_tabs,
    "refreshTabHistory": _refresh_tab_history,
    "debugInfo": _debug_info,
}


def dispatch(tracker: SessionTracker, request: dict) -> dict:
    """Run an action, raising for unknown actions and bad input."""
    action = request.get("action")
    handler = ACTIONS.get(action) if isinstance(action, str) else None
    if handler is None:
        raise UnknownActionError(f"Unknown action: {action}")
    return handler(tracker, request)


def handle_request(tracker: SessionTracker, request: dict) -> dict:
    """Answer a request with ``{"success": ...}``. Never raises for bad requests."""
    logger.debug("Received request: %s", request.get("action"))
    try:
        result = dispatch(tracker, request)
    except (UnknownActionError, ValueError) as e:
        logger.warning("Rejected request: %s", e)
        return {"success": False, "error": str(e)}
    return {"success": True, **result}
