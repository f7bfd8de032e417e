"""Rebuild a branching navigation tree from a tab's session log.

The log is a flat, ordered list of visits. A visit whose URL already appears
on the branch currently being walked is treated as a return to that node
(the user went back), so the walk resumes from there and any later visit
becomes a sibling of what came after it. Only the current branch is
searched, never the whole tree.

The builder never touches the log itself; ``build_tree`` is a pure function
of ``(entries, current_index)`` and ``rebuild`` only replaces ``log.tree``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tabtree.history.models import HistoryEntry, SessionLog, TreeNode

logger = logging.getLogger(__name__)


def _find_on_branch(branch: list[TreeNode], url: str) -> int:
    for position, node in enumerate(branch):
        if node.entry.url == url:
            return position
    return -1


def build_tree(entries: Sequence[HistoryEntry], current_index: int) -> TreeNode | None:
    """Build the tree rooted at ``entries[0]``.

    Returns None for an empty log. Exactly one node is marked current when
    ``current_index`` is in range.
    """
    if not entries:
        return None

    root = TreeNode(entry=entries[0], depth=0)
    branch = [root]
    current: TreeNode | None = root if current_index == 0 else None

    for i, entry in enumerate(entries[1:], start=1):
        position = _find_on_branch(branch, entry.url)
        if position != -1:
            # Return to a node already on this branch
            del branch[position + 1 :]
            node = branch[position]
            logger.debug("Entry %d revisits %s at depth %d", i, entry.url, position)
        else:
            node = TreeNode(entry=entry, depth=len(branch))
            branch[-1].children.append(node)
            branch.append(node)
            logger.debug("Entry %d adds %s at depth %d", i, entry.url, node.depth)

        if i == current_index:
            current = node

    if current is not None:
        current.is_current = True
    else:
        logger.warning(
            "Current index %d outside log of %d entries", current_index, len(entries)
        )
    return root


def rebuild(log: SessionLog) -> TreeNode | None:
    """Rebuild ``log.tree`` from its entries. An empty log is left as-is."""
    if not log.entries:
        logger.debug("No session history to build")
        return None

    log.tree = build_tree(log.entries, log.current_index)
    return log.tree
