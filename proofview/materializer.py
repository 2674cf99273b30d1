"""
LazyTree — on-demand child materialization for converted trees.

A converted document can be huge, and let-bound nodes are shared between
parents. LazyTree keeps all presentation state in side tables keyed by
Occurrence (the path of child indices from a root), never on TreeNode, so a
shared node can be expanded under one parent and collapsed under another.

    lazy = LazyTree(roots, on_materialize=render_children)
    root = lazy.roots()[0]
    lazy.expand(root)      # materializes root's children once
    lazy.collapse(root)    # hides, keeps materialized state
    lazy.expand(root)      # no second materialization
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Sequence

from .tree import TreeNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Occurrence:
    """One parent edge: root index followed by child indices."""
    path: tuple[int, ...]

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    @property
    def parent(self) -> Occurrence | None:
        if len(self.path) <= 1:
            return None
        return Occurrence(self.path[:-1])

    def child(self, index: int) -> Occurrence:
        return Occurrence(self.path + (index,))

    def __repr__(self):
        return "Occurrence(" + "/".join(str(i) for i in self.path) + ")"


MaterializeHook = Callable[[Occurrence, list[Occurrence]], None]


class LazyTree:
    """Per-occurrence expand/collapse state over a list of root nodes."""

    def __init__(self, roots: Sequence[TreeNode],
                 on_materialize: MaterializeHook | None = None):
        self._roots = list(roots)
        self.on_materialize = on_materialize
        self._nodes: dict[Occurrence, TreeNode] = {}
        self._children: dict[Occurrence, tuple[Occurrence, ...]] = {}
        self._expanded: set[Occurrence] = set()
        self.materialized_count = 0
        for i, node in enumerate(self._roots):
            self._nodes[Occurrence((i,))] = node

    def roots(self) -> list[Occurrence]:
        return [Occurrence((i,)) for i in range(len(self._roots))]

    def node(self, occ: Occurrence) -> TreeNode:
        try:
            return self._nodes[occ]
        except KeyError:
            raise KeyError(f"{occ!r} has not been materialized") from None

    def has_children(self, occ: Occurrence) -> bool:
        return bool(self.node(occ).children)

    # -------------------------------------------------------------------
    # Materialization
    # -------------------------------------------------------------------

    def is_materialized(self, occ: Occurrence) -> bool:
        return occ in self._children

    def children(self, occ: Occurrence) -> list[Occurrence]:
        """Child occurrences of ``occ``, materializing them on first call."""
        cached = self._children.get(occ)
        if cached is not None:
            return list(cached)

        node = self.node(occ)
        if not node.children:
            return []
        kids = []
        for i, child in enumerate(node.children):
            child_occ = occ.child(i)
            self._nodes[child_occ] = child
            kids.append(child_occ)
        self._children[occ] = tuple(kids)
        self.materialized_count += 1
        logger.debug("Materialized %d children of %r", len(kids), occ)

        if self.on_materialize is not None:
            self.on_materialize(occ, kids)
        return list(kids)

    # -------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------

    def is_expanded(self, occ: Occurrence) -> bool:
        return occ in self._expanded

    def expand(self, occ: Occurrence) -> list[Occurrence]:
        kids = self.children(occ)
        if kids:
            self._expanded.add(occ)
        return kids

    def collapse(self, occ: Occurrence) -> None:
        self._expanded.discard(occ)

    def toggle(self, occ: Occurrence) -> bool:
        """Flip visibility of ``occ``; return True if it is now expanded."""
        if self.is_expanded(occ):
            self.collapse(occ)
            return False
        self.expand(occ)
        return self.is_expanded(occ)

    def visible(self) -> Iterator[tuple[int, Occurrence]]:
        """(depth, occurrence) for every occurrence currently on screen."""
        stack = list(reversed(self.roots()))
        while stack:
            occ = stack.pop()
            yield occ.depth, occ
            if occ in self._expanded:
                stack.extend(reversed(self._children[occ]))

    def walk(self, max_depth: int) -> Iterator[tuple[int, Occurrence]]:
        """Depth-first (depth, occurrence) pairs, materializing up to max_depth."""
        stack = list(reversed(self.roots()))
        while stack:
            occ = stack.pop()
            yield occ.depth, occ
            if occ.depth < max_depth:
                stack.extend(reversed(self.children(occ)))
