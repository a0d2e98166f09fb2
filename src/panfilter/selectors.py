#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/selectors.py
"""Selector language for choosing the nodes a filter acts on.

A selector is one or more kind terms joined by combinators::

    Image                 every Image
    Inline                every inline node
    Div > Header          Headers whose parent is a Div
    Header + Image        Images visited after some Header
    Header +1 Para        Paras visited two positions after a Header

Terms are vocabulary kind names or the categories ``Block`` and
``Inline``. Combinators:

``A > B``
    the parent of the B node (structural parts skipped) matches ``A``
``A + B``
    some node visited earlier in the run matches ``A``
``A +N B``
    with the B node at history position ``i``, the node at position
    ``i - N - 1`` matches ``A``; N nodes lie between them

Selectors are matched right to left against a node and the run's history
of visited nodes.

Examples
--------
    >>> selector = compile_selector("Header +1 Para")
    >>> [str(term) for term in selector.terms]
    ['Header', '+1 Para']
    >>> selector.matches(para, history)
    True

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from panfilter.ast.nodes import Node
from panfilter.constants import CATEGORIES, CATEGORY_BLOCK, CATEGORY_INLINE, NODE_KINDS
from panfilter.exceptions import SelectorSyntaxError

logger = logging.getLogger(__name__)

CHILD_OF = ">"
FOLLOWS = "+"

_DISTANCE = re.compile(r"[0-9]+")
_VALID_TERMS = frozenset(NODE_KINDS) | frozenset(CATEGORIES)
# Kind names are capitalized, so a distance ends where the next term begins
_TOKEN = re.compile(r"\s*(?:(?P<child>>)|(?P<follows>\+)(?P<distance>[^\s>+A-Z]*)|(?P<kind>[^\s>+]+))")


@dataclass(frozen=True)
class Term:
    """One kind test plus the combinator linking it to the term on its left.

    Parameters
    ----------
    kind : str
        Vocabulary kind name, ``"Block"`` or ``"Inline"``
    combinator : str or None
        ``">"`` or ``"+"``; None for the leftmost term
    distance : int or None
        Exact distance for ``"+"``; None for any earlier position

    """

    kind: str
    combinator: Optional[str] = None
    distance: Optional[int] = None

    def accepts(self, node: Node) -> bool:
        if self.kind == CATEGORY_BLOCK:
            return node.is_block
        if self.kind == CATEGORY_INLINE:
            return node.is_inline
        return node.kind == self.kind

    def __str__(self) -> str:
        if self.combinator is None:
            return self.kind
        distance = "" if self.distance is None else str(self.distance)
        return f"{self.combinator}{distance} {self.kind}"


def _position_of(node: Node, history: Sequence[Node], before: Optional[int] = None) -> Optional[int]:
    end = len(history) if before is None else before
    for index in range(end - 1, -1, -1):
        if history[index] is node:
            return index
    return None


@dataclass(frozen=True)
class Selector:
    """A compiled selector.

    Parameters
    ----------
    text : str
        The source text
    terms : tuple of Term
        Terms from left to right; the last one tests the candidate node

    """

    text: str
    terms: tuple[Term, ...]

    def matches(self, node: Node, history: Sequence[Node]) -> bool:
        """Return True if ``node`` is selected given the visit ``history``.

        ``node`` is normally the last entry of ``history``.
        """
        if history and history[-1] is node:
            position: Optional[int] = len(history) - 1
        else:
            position = _position_of(node, history)
        return self._match_term(len(self.terms) - 1, node, position, history)

    def _match_term(self, index: int, node: Node, position: Optional[int], history: Sequence[Node]) -> bool:
        term = self.terms[index]
        if not term.accepts(node):
            return False
        if index == 0:
            return True

        if term.combinator == CHILD_OF:
            parent = node.parent
            if parent is None:
                return False
            return self._match_term(index - 1, parent, _position_of(parent, history, position), history)

        if position is None:
            return False
        if term.distance is not None:
            target = position - term.distance - 1
            return target >= 0 and self._match_term(index - 1, history[target], target, history)
        return any(self._match_term(index - 1, history[j], j, history) for j in range(position - 1, -1, -1))

    def __str__(self) -> str:
        return self.text


def _parse_distance(raw: str, text: str) -> Optional[int]:
    if raw == "":
        return None
    if _DISTANCE.fullmatch(raw) is None:
        raise SelectorSyntaxError(f"Malformed distance {raw!r}", text)
    return int(raw)


def compile_selector(text: str) -> Selector:
    """Compile selector ``text``.

    Raises
    ------
    SelectorSyntaxError
        On an empty selector or term, an unknown kind, a malformed distance,
        or two terms without a combinator between them

    """
    if not isinstance(text, str) or not text.strip():
        raise SelectorSyntaxError("Empty selector", text if isinstance(text, str) else None)

    terms: list[Term] = []
    pending: Optional[tuple[str, Optional[int]]] = None
    position = 0
    stripped = text.rstrip()
    while position < len(stripped):
        match = _TOKEN.match(stripped, position)
        if match is None:  # pragma: no cover - the token pattern accepts any non-space run
            raise SelectorSyntaxError(f"Unexpected input at offset {position}", text)
        position = match.end()

        if match.group("kind") is not None:
            kind = match.group("kind")
            if kind not in _VALID_TERMS:
                raise SelectorSyntaxError(f"Unknown node kind {kind!r}", text)
            if terms and pending is None:
                raise SelectorSyntaxError(f"Missing combinator before {kind!r}", text)
            combinator, distance = pending if pending is not None else (None, None)
            terms.append(Term(kind, combinator, distance))
            pending = None
            continue

        if not terms or pending is not None:
            raise SelectorSyntaxError("Empty term before combinator", text)
        if match.group("child") is not None:
            pending = (CHILD_OF, None)
        else:
            pending = (FOLLOWS, _parse_distance(match.group("distance"), text))

    if pending is not None:
        raise SelectorSyntaxError("Empty term after combinator", text)

    selector = Selector(text, tuple(terms))
    logger.debug(f"Compiled selector {text!r} into {len(terms)} term(s)")
    return selector


class SelectorCache:
    """Compiled selectors keyed by their text, kept for one filter run."""

    def __init__(self) -> None:
        self._selectors: dict[str, Selector] = {}

    def get(self, text: str) -> Selector:
        selector = self._selectors.get(text)
        if selector is None:
            selector = compile_selector(text)
            self._selectors[text] = selector
        return selector

    def __contains__(self, text: object) -> bool:
        return text in self._selectors

    def __len__(self) -> int:
        return len(self._selectors)
