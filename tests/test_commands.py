"""Tests for the action request surface."""

from conftest import A, B

from tabtree.commands import ACTIONS, handle_request
from tabtree.history.models import NavigationKind


def seed(tracker):
    for url in (A, B):
        tracker.update(1, url, None, NavigationKind.NAVIGATION)
    tracker.update(2, A, None, NavigationKind.NAVIGATION)
    tracker.tab_closed(2)


class TestHandleRequest:
    def test_actions_registered(self):
        assert set(ACTIONS) == {
            "getAllTabTrees",
            "getStatus",
            "clearHistory",
            "clearClosedTabs",
            "refreshTabHistory",
            "debugInfo",
        }

    def test_get_all_tab_trees(self, tracker):
        seed(tracker)
        response = handle_request(tracker, {"action": "getAllTabTrees"})
        assert response["success"]
        assert [t["tabId"] for t in response["tabTrees"]] == [2, 1]

    def test_get_status(self, tracker):
        seed(tracker)
        response = handle_request(tracker, {"action": "getStatus"})
        assert response == {
            "success": True,
            "trackedTabs": 2,
            "activeTabs": 1,
            "closedTabs": 1,
            "totalSessionEntries": 3,
        }

    def test_clear_closed_tabs(self, tracker):
        seed(tracker)
        assert handle_request(tracker, {"action": "clearClosedTabs"}) == {"success": True}
        assert tracker.closed == {}
        assert 1 in tracker.active

    def test_clear_history(self, tracker):
        seed(tracker)
        assert handle_request(tracker, {"action": "clearHistory"}) == {"success": True}
        assert tracker.get_status()["trackedTabs"] == 0

    def test_refresh_tab_history(self, tracker):
        seed(tracker)
        response = handle_request(tracker, {"action": "refreshTabHistory", "tabId": 1})
        assert response["success"]
        assert response["tree"]["currentIndex"] == 1

    def test_refresh_untracked_tab(self, tracker):
        response = handle_request(tracker, {"action": "refreshTabHistory", "tabId": 9})
        assert response == {"success": True, "tree": None}

    def test_refresh_requires_tab_id(self, tracker):
        response = handle_request(tracker, {"action": "refreshTabHistory"})
        assert not response["success"]
        assert "tabId" in response["error"]

    def test_refresh_rejects_non_integer_tab_id(self, tracker):
        seed(tracker)
        for tab_id in ({"x": 1}, [1], "one", True):
            response = handle_request(tracker, {"action": "refreshTabHistory", "tabId": tab_id})
            assert response["success"] is False
            assert "tabId" in response["error"] or "invalid literal" in response["error"]

    def test_debug_info(self, tracker):
        seed(tracker)
        response = handle_request(tracker, {"action": "debugInfo"})
        assert response["debugInfo"]["totalActive"] == 1

    def test_unknown_action(self, tracker):
        response = handle_request(tracker, {"action": "launchRockets"})
        assert response == {"success": False, "error": "Unknown action: launchRockets"}

    def test_non_string_action(self, tracker):
        response = handle_request(tracker, {"action": ["getStatus"]})
        assert response["success"] is False
        assert "Unknown action" in response["error"]

    def test_missing_action(self, tracker):
        response = handle_request(tracker, {})
        assert response["success"] is False
