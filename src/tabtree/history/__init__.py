"""Session history tracking and tree reconstruction."""

from tabtree.history.builder import build_tree, rebuild
from tabtree.history.models import HistoryEntry, NavigationKind, NavInfo, SessionLog, TabRecord, TreeNode
from tabtree.history.tracker import SessionTracker, Transition, classify

__all__ = [
    "build_tree",
    "rebuild",
    "HistoryEntry",
    "NavigationKind",
    "NavInfo",
    "SessionLog",
    "TabRecord",
    "TreeNode",
    "SessionTracker",
    "Transition",
    "classify",
]
