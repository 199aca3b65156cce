# logbook/services/thread_tree.py
"""
Thread reconstruction.

A thread is stored flat: every log carries `parent_log_id` and `root_log_id`.
`assemble_thread` rebuilds the reply tree from those rows.

Canonical order: children are listed by ascending id at every level. Ids are
handed out in creation order, so this is also reply order, and any member of a
thread produces the same tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Generic, List, Protocol, Sequence, TypeVar


class ThreadMember(Protocol):
    id: int
    parent_log_id: int | None


T = TypeVar("T", bound=ThreadMember)


@dataclass
class ThreadNode(Generic[T]):
    log: T
    children: List["ThreadNode[T]"] = field(default_factory=list)

    def walk(self):
        """Depth-first, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


def assemble_thread(rows: Sequence[T], root_log_id: int) -> ThreadNode[T]:
    """
    Build the reply tree of one thread.

    `rows` are all logs sharing `root_log_id`, in any order. A row whose parent
    is missing from `rows` hangs directly under the root.

    Raises:
        ValueError: the root itself is not among the rows.
    """
    ordered = sorted(rows, key=lambda r: r.id)
    nodes: Dict[int, ThreadNode[T]] = {r.id: ThreadNode(r) for r in ordered}

    root = nodes.get(root_log_id)
    if root is None:
        raise ValueError(f"Thread root {root_log_id} is not among the thread rows")

    for row in ordered:
        if row.id == root_log_id:
            continue
        parent = None
        if row.parent_log_id is not None and row.parent_log_id != row.id:
            parent = nodes.get(row.parent_log_id)
        (parent or root).children.append(nodes[row.id])

    return root
