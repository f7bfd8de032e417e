"""Shared fixtures for tabtree tests."""

import pytest

from tabtree.history.models import HistoryEntry, NavigationKind, NavInfo
from tabtree.history.store import KeyValueStore
from tabtree.history.tracker import SessionTracker

A = "https://a.example/"
B = "https://b.example/"
C = "https://c.example/"
D = "https://d.example/"


class FakeClock:
    """Millisecond clock that ticks once per reading."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


def make_entries(*urls: str) -> list[HistoryEntry]:
    return [
        HistoryEntry.create(url, None, NavigationKind.NAVIGATION, 1000 + i)
        for i, url in enumerate(urls)
    ]


BACK = NavInfo(history_length=3, can_go_back=True)
FORWARD = NavInfo(history_length=3, can_go_forward=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv_store(tmp_path, monkeypatch):
    """Create a KeyValueStore with a temp database."""
    import tabtree.config as config

    monkeypatch.setattr(config, "TABTREE_DIR", tmp_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "test.db")
    s = KeyValueStore(db_path=tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def tracker(kv_store, clock):
    return SessionTracker(store=kv_store, clock=clock)
