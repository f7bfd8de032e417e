"""Tab navigation history data models."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def domain_from_url(url: str) -> str:
    """Host component of a URL, or the URL itself when it has none."""
    try:
        return urlsplit(url).hostname or url
    except ValueError:
        return url


class WireModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class NavigationKind(str, Enum):
    """How a visit was observed."""

    INITIAL = "initial"
    NAVIGATION = "navigation"
    ACTIVATION = "activation"
    BACK = "back"
    FORWARD = "forward"
    ROOT = "root"

    @property
    def label(self) -> str:
        return self.value.title()


class NavInfo(WireModel):
    """Navigation capability reported by the tab at visit time."""

    history_length: int = 1
    can_go_back: bool = False
    can_go_forward: bool = False
    state: Any = None


class HistoryEntry(WireModel):
    """An immutable visit record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    title: str
    timestamp: int = Field(description="Visit time in epoch milliseconds")
    kind: NavigationKind = Field(alias="type")
    history_length: int = 1
    can_go_back: bool = False
    can_go_forward: bool = False
    state: Any = None

    @classmethod
    def create(
        cls,
        url: str,
        title: str | None,
        kind: NavigationKind,
        timestamp: int,
        nav_info: NavInfo | None = None,
    ) -> HistoryEntry:
        nav_info = nav_info or NavInfo()
        return cls(
            url=url,
            title=title or domain_from_url(url),
            timestamp=timestamp,
            kind=kind,
            history_length=nav_info.history_length or 1,
            can_go_back=nav_info.can_go_back,
            can_go_forward=nav_info.can_go_forward,
            state=nav_info.state,
        )


class TreeNode(WireModel):
    """A node of the branching tree derived from a session log."""

    entry: HistoryEntry
    children: list[TreeNode] = Field(default_factory=list)
    depth: int = 0
    is_current: bool = False

    def walk(self) -> Iterator[TreeNode]:
        """Pre-order traversal."""
        yield self
        for child in self.children:
            yield from child.walk()

    def current_nodes(self) -> list[TreeNode]:
        return [node for node in self.walk() if node.is_current]

    def simplify(self) -> dict:
        """Structure-only view used for debug dumps."""
        return {
            "url": self.entry.url,
            "depth": self.depth,
            "isCurrent": self.is_current,
            "children": [child.simplify() for child in self.children],
        }


TreeNode.model_rebuild()


class SessionLog(WireModel):
    """A tab's ordered visit log plus the current position."""

    entries: list[HistoryEntry] = Field(default_factory=list)
    current_index: int = 0
    last_updated_at: int = 0
    tree: TreeNode | None = None

    @property
    def current_entry(self) -> HistoryEntry | None:
        if 0 <= self.current_index < len(self.entries):
            return self.entries[self.current_index]
        return None


class TabRecord(WireModel):
    """A tab's session log with lifecycle metadata."""

    tab_id: int
    creation_time: int
    closed: bool = False
    closed_at: int | None = None
    log: SessionLog

    def to_tab_tree(self) -> dict:
        """Serialized view handed to renderers and the command surface."""
        data = {
            "tabId": self.tab_id,
            "tree": self.log.tree.to_wire() if self.log.tree else None,
            "sessionHistory": [entry.to_wire() for entry in self.log.entries],
            "currentIndex": self.log.current_index,
            "lastUpdated": self.log.last_updated_at,
            "creationTime": self.creation_time,
            "isClosed": self.closed,
            "isActive": not self.closed,
        }
        if self.closed:
            data["closedAt"] = self.closed_at
        return data


class Snapshot(WireModel):
    """The persisted blob: every tracked tab, active and closed."""

    active_records: list[tuple[int, TabRecord]] = Field(default_factory=list)
    closed_records: list[tuple[int, TabRecord]] = Field(default_factory=list)
    creation_times: list[tuple[int, int]] = Field(default_factory=list)
    saved_at: int = 0
