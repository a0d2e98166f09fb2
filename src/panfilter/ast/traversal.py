#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/ast/traversal.py
"""Pre-order depth-first traversal that tolerates edits.

:class:`DepthFirstWalker` is a single-use iterator over a live tree. It keeps
a stack of frames, one per node whose children are being walked, and only
looks at a node's children after that node has been handed out and the
consumer has asked for the next one. Edits made in between are therefore
seen by the walk:

- a node replaced through :meth:`Node.replace_with` is not descended into;
  its replacement's children are walked instead
- a removed node is not descended into and its following sibling is not
  skipped
- children appended to the node just visited are walked

Structural parts (list items, table cells, ...) are walked through but not
yielded.

Examples
--------
    >>> kinds = [node.kind for node in DepthFirstWalker(doc)]
    >>> kinds[:3]
    ['Document', 'Header', 'Str']

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from panfilter.ast.nodes import Node

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    parent: Node
    index: int = 0


class DepthFirstWalker:
    """Single-pass pre-order iterator over a document tree.

    Parameters
    ----------
    root : Node
        Root of the walk; yielded first

    Notes
    -----
    The walker cannot be restarted. Iterating it again after exhaustion
    yields nothing.

    """

    def __init__(self, root: Node):
        self._root = root
        self._stack: list[_Frame] = []
        self._pending: Optional[Node] = None
        self._started = False

    def __iter__(self) -> Iterator[Node]:
        return self

    def __next__(self) -> Node:
        if not self._started:
            self._started = True
            self._pending = self._root
            return self._root

        if self._pending is not None:
            self._descend(self._pending)
            self._pending = None

        while self._stack:
            frame = self._stack[-1]
            if frame.index >= len(frame.parent.children):
                self._stack.pop()
                continue

            child = frame.parent.children[frame.index]
            frame.parent._adopt(child)
            # A replaced node found back in the tree (inside its wrapper) is live again
            child._clear_replacement()
            frame.index += 1

            if child.is_part:
                self._stack.append(_Frame(child))
                continue

            self._pending = child
            return child

        raise StopIteration

    def _descend(self, node: Node) -> None:
        """Schedule the children of the node handed out last."""
        if node is self._root:
            self._stack.append(_Frame(node))
            return

        frame = self._stack[-1]
        current = node.final_replacement()
        position = frame.parent.index_of(current)
        if position is None:
            # Removed from its parent; the next sibling moved into its slot
            frame.index = max(frame.index - 1, 0)
            logger.debug(f"{node.kind} node was removed during traversal, not descending")
            return

        frame.index = position + 1
        if current.children:
            self._stack.append(_Frame(current))


def walk(root: Node) -> Iterator[Node]:
    """Yield ``root`` and every vocabulary node below it in pre-order."""
    return DepthFirstWalker(root)
