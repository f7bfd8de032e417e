"""Tests for history data models."""

import pytest
from conftest import A, B, make_entries
from pydantic import ValidationError

from tabtree.history.builder import build_tree
from tabtree.history.models import (
    HistoryEntry,
    NavigationKind,
    NavInfo,
    SessionLog,
    TabRecord,
    domain_from_url,
)


class TestHistoryEntry:
    def test_create_defaults(self):
        entry = HistoryEntry.create(A, "", NavigationKind.NAVIGATION, 5)
        assert entry.title == "a.example"
        assert entry.history_length == 1
        assert not entry.can_go_back
        assert entry.state is None

    def test_immutable(self):
        entry = HistoryEntry.create(A, "A", NavigationKind.NAVIGATION, 5)
        with pytest.raises(ValidationError):
            entry.url = B

    def test_wire_format(self):
        nav = NavInfo(history_length=2, can_go_forward=True)
        entry = HistoryEntry.create(A, "A", NavigationKind.BACK, 5, nav)
        assert entry.to_wire() == {
            "url": A,
            "title": "A",
            "timestamp": 5,
            "type": "back",
            "historyLength": 2,
            "canGoBack": False,
            "canGoForward": True,
            "state": None,
        }
        assert HistoryEntry.model_validate(entry.to_wire()) == entry

    def test_kind_labels(self):
        assert NavigationKind.INITIAL.label == "Initial"
        assert NavigationKind.ACTIVATION.label == "Activation"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://news.example.com/a?b=1", "news.example.com"),
        ("http://localhost:8000/", "localhost"),
        ("not a url", "not a url"),
    ],
)
def test_domain_from_url(url, expected):
    assert domain_from_url(url) == expected


class TestTabRecord:
    def test_to_tab_tree(self):
        entries = make_entries(A, B)
        log = SessionLog(entries=entries, current_index=1, last_updated_at=9)
        log.tree = build_tree(entries, 1)
        record = TabRecord(tab_id=4, creation_time=3, log=log)

        data = record.to_tab_tree()
        assert data["tabId"] == 4
        assert data["creationTime"] == 3
        assert data["lastUpdated"] == 9
        assert data["isActive"] is True
        assert "closedAt" not in data
        assert data["tree"]["children"][0]["entry"]["url"] == B

    def test_current_entry(self):
        log = SessionLog(entries=make_entries(A, B), current_index=1)
        assert log.current_entry.url == B
        assert SessionLog().current_entry is None
