"""Navigation event source interface, capability probe and event replay."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import Field, ValidationError

from tabtree.exceptions import EventParseError, ProbeError
from tabtree.history.models import NavInfo, WireModel

if TYPE_CHECKING:
    from tabtree.history.tracker import SessionTracker

logger = logging.getLogger(__name__)


class OpenTab(WireModel):
    """A tab the host reports as currently open."""

    tab_id: int
    url: str = ""
    title: str = ""


@runtime_checkable
class NavigationEventSource(Protocol):
    """Host that can describe its open tabs and their navigation state."""

    def fetch_nav_info(self, tab_id: int) -> NavInfo: ...
    def list_tabs(self) -> list[OpenTab]: ...


def probe_nav_info(source: NavigationEventSource | None, tab_id: int) -> NavInfo:
    """Ask the source for a tab's navigation state, or fall back to defaults.

    The probe is best-effort: a missing source, a closed tab or any other
    failure yields ``NavInfo()`` (no back, no forward).
    """
    if source is None:
        return NavInfo()
    try:
        return source.fetch_nav_info(tab_id)
    except ProbeError as e:
        logger.info("Could not get history info from tab %s: %s", tab_id, e)
    except Exception as e:
        logger.warning("Navigation probe for tab %s failed: %s", tab_id, e)
    return NavInfo()


class ReportedNavigationSource:
    """In-memory source for hosts that push tab state instead of being polled."""

    def __init__(self) -> None:
        self._tabs: dict[int, OpenTab] = {}
        self._nav_info: dict[int, NavInfo] = {}

    def open_tab(self, tab_id: int, url: str = "", title: str = "") -> None:
        self._tabs[tab_id] = OpenTab(tab_id=tab_id, url=url, title=title)

    def report(self, tab_id: int, nav_info: NavInfo) -> None:
        """Record the latest navigation state for a tab."""
        self._nav_info[tab_id] = nav_info
        self._tabs.setdefault(tab_id, OpenTab(tab_id=tab_id))

    def close_tab(self, tab_id: int) -> None:
        self._tabs.pop(tab_id, None)
        self._nav_info.pop(tab_id, None)

    def fetch_nav_info(self, tab_id: int) -> NavInfo:
        if tab_id not in self._tabs:
            raise ProbeError(f"No tab with id {tab_id}")
        try:
            return self._nav_info[tab_id]
        except KeyError:
            raise ProbeError(f"Tab {tab_id} has not reported navigation state") from None

    def list_tabs(self) -> list[OpenTab]:
        return list(self._tabs.values())


# ── Recorded events ──────────────────────────────────────────────


class EventType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ACTIVATED = "activated"
    CLOSED = "closed"


class NavigationEvent(WireModel):
    """One line of a recorded navigation event log."""

    event: EventType
    tab_id: int
    url: str = ""
    title: str = ""
    status_complete: bool = True
    nav_info: NavInfo | None = Field(default=None, description="Omit to probe the source")


def parse_events(lines: Iterable[str]) -> Iterator[NavigationEvent]:
    """Parse JSON-lines events, skipping blank lines."""
    for number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield NavigationEvent.model_validate(json.loads(line))
        except json.JSONDecodeError as e:
            raise EventParseError(f"invalid JSON: {e.msg}", line=number) from e
        except ValidationError as e:
            raise EventParseError(f"invalid event: {e.errors()[0]['msg']}", line=number) from e


def read_events(path: Path) -> list[NavigationEvent]:
    """Read a JSON-lines event log from disk."""
    with path.open(encoding="utf-8") as handle:
        return list(parse_events(handle))


def replay(tracker: SessionTracker, events: Iterable[NavigationEvent]) -> int:
    """Feed recorded events to a tracker in order. Returns the number applied."""
    count = 0
    for event in events:
        if event.event is EventType.CREATED:
            tracker.tab_created(event.tab_id)
        elif event.event is EventType.UPDATED:
            tracker.tab_updated(
                event.tab_id, event.url, event.title, event.status_complete, event.nav_info
            )
        elif event.event is EventType.ACTIVATED:
            tracker.tab_activated(event.tab_id, event.url, event.title, event.nav_info)
        else:
            tracker.tab_closed(event.tab_id)
        count += 1
    logger.info("Replayed %d navigation events", count)
    return count
