"""Per-tab session tracking: classify navigations and keep trees current."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from enum import Enum

from pydantic import ValidationError

from tabtree import config
from tabtree.exceptions import PersistenceError, SnapshotLoadError
from tabtree.history.builder import rebuild
from tabtree.history.events import NavigationEventSource, OpenTab, probe_nav_info
from tabtree.history.models import (
    HistoryEntry,
    NavigationKind,
    NavInfo,
    SessionLog,
    Snapshot,
    TabRecord,
)
from tabtree.history.store import KeyValueStore

logger = logging.getLogger(__name__)


class Transition(str, Enum):
    """What a navigation did to a session log."""

    REFRESH = "refresh"
    BACK = "back"
    FORWARD = "forward"
    NEW = "new"


def classify(log: SessionLog, url: str, nav_info: NavInfo) -> Transition:
    """Decide how a navigation to ``url`` relates to the log.

    Only the neighbours of the current entry and the host's back/forward
    flags are consulted. First match wins: refresh, back, forward, new.
    """
    entries = log.entries
    index = log.current_index

    if entries[index].url == url:
        return Transition.REFRESH
    if index > 0 and entries[index - 1].url == url and nav_info.can_go_back:
        return Transition.BACK
    if index < len(entries) - 1 and entries[index + 1].url == url and nav_info.can_go_forward:
        return Transition.FORWARD
    return Transition.NEW


class SessionTracker:
    """Owns every tab's session log, active and closed."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        source: NavigationEventSource | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.store = store
        self.source = source
        self.clock = clock or config.now_ms
        self.active: dict[int, TabRecord] = {}
        self.closed: dict[int, TabRecord] = {}
        self.creation_times: dict[int, int] = {}

    # ── Event intake ─────────────────────────────────────────────

    def tab_created(self, tab_id: int) -> None:
        """Remember when a tab was opened."""
        self.creation_times[tab_id] = self.clock()
        logger.debug("Tab %s created at %s", tab_id, self.creation_times[tab_id])

    def tab_updated(
        self,
        tab_id: int,
        url: str,
        title: str | None,
        status_complete: bool,
        nav_info: NavInfo | None = None,
    ) -> Transition | None:
        """Handle a page load. Only completed loads of web pages count."""
        if not status_complete or not config.is_valid_url(url):
            return None
        if nav_info is None:
            nav_info = probe_nav_info(self.source, tab_id)
        return self.update(tab_id, url, title, NavigationKind.NAVIGATION, nav_info)

    def tab_activated(
        self,
        tab_id: int,
        url: str,
        title: str | None,
        nav_info: NavInfo | None = None,
    ) -> Transition | None:
        """Handle a tab being brought to the foreground."""
        if not config.is_valid_url(url):
            return None
        if nav_info is None:
            nav_info = probe_nav_info(self.source, tab_id)
        return self.update(tab_id, url, title, NavigationKind.ACTIVATION, nav_info)

    def tab_closed(self, tab_id: int) -> TabRecord | None:
        """Move a tab's record into the closed set. Its log is kept."""
        record = self.active.pop(tab_id, None)
        self.creation_times.pop(tab_id, None)
        if record is None:
            logger.info("No history found for closed tab %s", tab_id)
        else:
            record.closed = True
            record.closed_at = self.clock()
            self.closed[tab_id] = record
            logger.info(
                "Preserved history for closed tab %s with %d entries",
                tab_id,
                len(record.log.entries),
            )
        self.save()
        return record

    def initialize_existing_tabs(self, tabs: Iterable[OpenTab] | None = None) -> int:
        """Seed records for tabs that were already open before tracking began."""
        if tabs is None:
            if self.source is None:
                return 0
            try:
                tabs = self.source.list_tabs()
            except Exception as e:
                logger.warning("Error listing existing tabs: %s", e)
                return 0

        now = self.clock()
        seeded = 0
        for tab in tabs:
            self.creation_times.setdefault(tab.tab_id, now)
            if config.is_valid_url(tab.url) and tab.tab_id not in self.active:
                self._create_record(tab.tab_id, tab.url, tab.title)
                seeded += 1
        if seeded:
            self.save()
        logger.info("Initialized %d existing tabs", seeded)
        return seeded

    # ── Core update ──────────────────────────────────────────────

    def _create_record(self, tab_id: int, url: str, title: str | None) -> TabRecord:
        now = self.clock()
        creation_time = self.creation_times.get(tab_id) or now
        entry = HistoryEntry.create(url, title, NavigationKind.INITIAL, creation_time)
        record = TabRecord(
            tab_id=tab_id,
            creation_time=creation_time,
            log=SessionLog(entries=[entry], current_index=0, last_updated_at=now),
        )
        rebuild(record.log)
        self.active[tab_id] = record
        logger.info("Created history for tab %s with URL: %s", tab_id, url)
        return record

    def update(
        self,
        tab_id: int,
        url: str,
        title: str | None,
        kind: NavigationKind,
        nav_info: NavInfo | None = None,
    ) -> Transition | None:
        """Apply one navigation to a tab's log and persist the result."""
        if not config.is_valid_url(url):
            return None
        nav_info = nav_info or NavInfo()

        record = self.active.get(tab_id)
        if record is None:
            record = self._create_record(tab_id, url, title)
        log = record.log

        logger.debug(
            "Tab %s history: length=%s, back=%s, forward=%s, url=%s",
            tab_id,
            nav_info.history_length,
            nav_info.can_go_back,
            nav_info.can_go_forward,
            url,
        )

        transition = classify(log, url, nav_info)
        if transition is Transition.BACK:
            log.current_index -= 1
        elif transition is Transition.FORWARD:
            log.current_index += 1
        elif transition is Transition.NEW:
            if log.current_index < len(log.entries) - 1:
                logger.debug("Truncating forward history from index %d", log.current_index + 1)
                del log.entries[log.current_index + 1 :]
            log.entries.append(HistoryEntry.create(url, title, kind, self.clock(), nav_info))
            log.current_index = len(log.entries) - 1

        log.last_updated_at = self.clock()
        if transition is not Transition.REFRESH:
            rebuild(log)
        logger.info(
            "Tab %s %s: %s (index %d of %d)",
            tab_id,
            transition.value,
            url,
            log.current_index,
            len(log.entries),
        )
        self.save()
        return transition

    # ── Queries and commands ─────────────────────────────────────

    def get_record(self, tab_id: int) -> TabRecord | None:
        """A detached copy of a tab's record, active or closed."""
        record = self.active.get(tab_id) or self.closed.get(tab_id)
        return record.model_copy(deep=True) if record is not None else None

    def get_all_tab_trees(self) -> list[dict]:
        """Every tracked tab, most recently updated first."""
        trees = [record.to_tab_tree() for record in self.active.values()]
        trees.extend(record.to_tab_tree() for record in self.closed.values())
        trees.sort(key=lambda t: t["lastUpdated"], reverse=True)
        return trees

    def get_status(self) -> dict:
        records = [*self.active.values(), *self.closed.values()]
        return {
            "trackedTabs": len(records),
            "activeTabs": len(self.active),
            "closedTabs": len(self.closed),
            "totalSessionEntries": sum(len(r.log.entries) for r in records),
        }

    def clear_history(self) -> None:
        """Forget every active and closed tab."""
        self.active.clear()
        self.closed.clear()
        self.creation_times.clear()
        logger.info("Cleared all tab histories")
        self.save()

    def clear_closed_tabs(self) -> None:
        """Forget closed tabs only."""
        self.closed.clear()
        logger.info("Cleared closed tab histories")
        self.save()

    def refresh_tab_history(self, tab_id: int) -> dict | None:
        """Force a rebuild of an active tab's tree."""
        record = self.active.get(tab_id)
        if record is None:
            return None
        rebuild(record.log)
        tab_tree = record.to_tab_tree()
        return {
            "tabId": tab_id,
            "tree": tab_tree["tree"],
            "sessionHistory": tab_tree["sessionHistory"],
            "currentIndex": tab_tree["currentIndex"],
        }

    def debug_info(self) -> dict:
        def describe(record: TabRecord) -> dict:
            info = {
                "tabId": record.tab_id,
                "sessionLength": len(record.log.entries),
                "hasTree": record.log.tree is not None,
                "currentIndex": record.log.current_index,
            }
            if record.closed:
                info["closedAt"] = record.closed_at
            info["tree"] = record.log.tree.simplify() if record.log.tree else None
            return info

        return {
            "activeTabs": [describe(r) for r in self.active.values()],
            "closedTabs": [describe(r) for r in self.closed.values()],
            "totalActive": len(self.active),
            "totalClosed": len(self.closed),
        }

    # ── Persistence ──────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return Snapshot(
            active_records=list(self.active.items()),
            closed_records=list(self.closed.items()),
            creation_times=list(self.creation_times.items()),
            saved_at=self.clock(),
        )

    def save(self) -> bool:
        """Write the snapshot to the store. Failures are logged, not raised."""
        if self.store is None:
            return False
        try:
            self.store.set(config.STORAGE_KEY, self.snapshot().model_dump_json(by_alias=True))
        except PersistenceError as e:
            logger.error("Failed to save data: %s", e)
            return False
        logger.debug("Saved data to storage")
        return True

    def _read_snapshot(self) -> Snapshot | None:
        raw = self.store.get(config.STORAGE_KEY)
        if raw is None:
            return None
        try:
            return Snapshot.model_validate_json(raw)
        except ValidationError as e:
            raise SnapshotLoadError(f"Stored snapshot is malformed: {e}") from e

    def load(self) -> bool:
        """Restore state from the store. A missing or corrupt blob means start empty."""
        if self.store is None:
            return False
        try:
            snapshot = self._read_snapshot()
        except PersistenceError as e:
            logger.warning("Failed to load data, starting empty: %s", e)
            snapshot = None
        if snapshot is None:
            self.active, self.closed, self.creation_times = {}, {}, {}
            return False

        self.active = {}
        for tab_id, record in snapshot.active_records:
            log = record.log
            if not 0 <= log.current_index < len(log.entries):
                logger.warning("Dropping malformed history for tab %s", tab_id)
                continue
            self.active[tab_id] = record
        self.closed = dict(snapshot.closed_records)
        self.creation_times = dict(snapshot.creation_times)
        # Closed tabs keep the tree they were saved with
        for record in self.active.values():
            rebuild(record.log)
        logger.info(
            "Loaded %d active and %d closed tab histories from storage",
            len(self.active),
            len(self.closed),
        )
        return True

    def start(self, tabs: Iterable[OpenTab] | None = None) -> None:
        """Load saved state, then pick up tabs that are already open."""
        self.load()
        self.initialize_existing_tabs(tabs)
