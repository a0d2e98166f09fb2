#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/filter.py
"""Filter runtime: selector rules applied during one traversal.

A filter is a list of rules, each a selector and an action. The runtime
walks the document depth-first, starting with the Document itself, and calls
the action of every rule whose selector matches the visited node.

Actions receive the node and a :class:`FilterContext`. They may edit the node
in place, swap it for a new node with :meth:`Node.replace_with`, read and
write metadata through ``context.metadata``, or end the run early by
returning ``context.stop()``.

A replaced node is followed by its replacement: the replacement is visited
next, takes over the replaced node's history position, and its children are
walked instead of the old node's.

Examples
--------
A filter script that numbers level 1 headers:

    >>> from panfilter import FilterRuntime, make_node
    >>> runtime = FilterRuntime()
    >>>
    >>> @runtime.rule("Header")
    ... def number_chapters(node, context):
    ...     if node.level == 1:
    ...         count = context.get_shared("chapter", 0) + 1
    ...         context.set_shared("chapter", count)
    ...         node.prepend(make_node("Space"))
    ...         node.prepend(make_node("Str", text=f"{count}."))
    >>>
    >>> if __name__ == "__main__":
    ...     raise SystemExit(runtime.main())

"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Iterable, Optional, Sequence

from panfilter.ast.document import Document
from panfilter.ast.nodes import Node
from panfilter.ast.renderer import PlainTextRenderer, Renderer, get_inner_markup, set_inner_markup
from panfilter.ast.serialization import decode_document, encode_document
from panfilter.ast.traversal import DepthFirstWalker
from panfilter.exceptions import FilterError, PanfilterError
from panfilter.metadata import MetadataStore
from panfilter.options import FilterOptions
from panfilter.selectors import SelectorCache

logger = logging.getLogger(__name__)


class FilterSignal(enum.Enum):
    """Control result of an action."""

    CONTINUE = "continue"
    HALT = "halt"


# Actions: (node, context) -> FilterSignal | None
FilterAction = Callable[[Node, "FilterContext"], Optional[FilterSignal]]


@dataclass(frozen=True)
class Rule:
    """A selector and the action run on the nodes it matches."""

    selector: str
    action: FilterAction


@dataclass
class FilterResult:
    """Outcome of :meth:`FilterRuntime.apply`.

    Parameters
    ----------
    document : Document
        The filtered document, edited in place
    halted : bool
        True if an action stopped the run early
    visited : int
        Number of visit steps taken, replacements included

    """

    document: Document
    halted: bool = False
    visited: int = 0


@dataclass
class FilterContext:
    """Context passed to filter actions.

    Parameters
    ----------
    document : Document
        The document being filtered
    metadata : MetadataStore
        Path-addressed view of the document metadata
    renderer : Renderer
        Converter used by :meth:`inner_markup` and :meth:`set_inner_markup`
    target_format : str, default = ""
        Output format pandoc was asked for, e.g. ``"html"``
    current_node : Node, optional
        The node being visited
    history : list of Node, default = empty list
        Nodes visited so far, the current node last.
        WARNING: This list is mutated during traversal.
    shared : dict, default = empty dict
        Mutable dictionary for passing data between actions

    Examples
    --------
        >>> def count_images(node, context):
        ...     context.set_shared("images", context.get_shared("images", 0) + 1)
        ...     if context.target_format == "latex":
        ...         context.metadata.set("graphics", True)

    """

    document: Document
    metadata: MetadataStore
    renderer: Renderer
    target_format: str = ""
    current_node: Optional[Node] = None
    history: list[Node] = field(default_factory=list)
    shared: dict[str, Any] = field(default_factory=dict)
    stop_requested: bool = False

    def get_shared(self, key: str, default: Any = None) -> Any:
        """Get a value from shared state."""
        return self.shared.get(key, default)

    def set_shared(self, key: str, value: Any) -> None:
        """Set a value in shared state."""
        self.shared[key] = value

    def inner_markup(self, node: Optional[Node] = None) -> str:
        """Return the markup of the children of ``node`` (default: current node)."""
        return get_inner_markup(self._target(node), self.renderer)

    def set_inner_markup(self, text: str, node: Optional[Node] = None) -> None:
        """Replace the children of ``node`` (default: current node) with parsed ``text``."""
        set_inner_markup(self._target(node), text, self.renderer)

    def stop(self) -> FilterSignal:
        """Request the end of the run after the current action.

        Returns
        -------
        FilterSignal
            ``FilterSignal.HALT``, so an action can ``return context.stop()``

        """
        self.stop_requested = True
        return FilterSignal.HALT

    def _target(self, node: Optional[Node]) -> Node:
        target = node if node is not None else self.current_node
        if target is None:
            raise FilterError("No node is being visited")
        return target


class FilterRuntime:
    """Registry of rules and driver of filter runs.

    Parameters
    ----------
    rules : iterable of Rule or (selector, action) pairs, optional
        Initial rules, run in the given order
    renderer : Renderer, optional
        Markup converter for actions; defaults to :class:`PlainTextRenderer`
    options : FilterOptions, optional
        Output options for :meth:`filter_text` and :meth:`run`

    Notes
    -----
    Every visited node is tested against every rule in registration order.
    Runtime state lives in the :class:`FilterContext` of one :meth:`apply`
    call, so one runtime can filter several documents in turn.

    An action that replaces a node with one its own selector matches again
    will see the replacement too; such actions must recognize their own
    output to avoid replacing forever.

    """

    def __init__(
        self,
        rules: Optional[Iterable[Rule | tuple[str, FilterAction]]] = None,
        renderer: Optional[Renderer] = None,
        options: Optional[FilterOptions] = None,
    ) -> None:
        self._rules: list[Rule] = []
        self.renderer: Renderer = renderer if renderer is not None else PlainTextRenderer()
        self.options = options if options is not None else FilterOptions()
        for rule in rules or ():
            if isinstance(rule, Rule):
                self.add_rule(rule.selector, rule.action)
            else:
                self.add_rule(*rule)

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def add_rule(self, selector: str, action: FilterAction) -> None:
        """Register ``action`` for the nodes matching ``selector``.

        The selector is compiled when a run starts, so syntax errors surface
        before any node is visited.
        """
        if not callable(action):
            raise TypeError(f"Action for selector {selector!r} is not callable")
        self._rules.append(Rule(selector, action))
        logger.debug(f"Registered rule for '{selector}'")

    def rule(self, selector: str) -> Callable[[FilterAction], FilterAction]:
        """Decorator form of :meth:`add_rule`."""

        def decorator(action: FilterAction) -> FilterAction:
            self.add_rule(selector, action)
            return action

        return decorator

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def apply(self, document: Document, target_format: str = "") -> FilterResult:
        """Run every rule over ``document``, editing it in place.

        Parameters
        ----------
        document : Document
            The document to filter
        target_format : str, default = ""
            Output format made available as ``context.target_format``

        Returns
        -------
        FilterResult
            The document and how the run ended

        Raises
        ------
        SelectorSyntaxError
            If a rule's selector does not compile
        PanfilterError
            Raised by an action, unchanged
        FilterError
            Wrapping any other exception raised by an action

        """
        selectors = SelectorCache()
        for rule in self._rules:
            selectors.get(rule.selector)

        context = FilterContext(
            document=document,
            metadata=MetadataStore(document.meta),
            renderer=self.renderer,
            target_format=target_format,
        )
        history = context.history
        walker = DepthFirstWalker(document)
        current: Optional[Node] = None
        result = FilterResult(document)
        logger.debug(f"Filtering with {len(self._rules)} rule(s), target format {target_format!r}")

        while True:
            if current is not None and current.has_been_replaced:
                current = current.final_replacement()
                history[-1] = current
                logger.debug(f"Visiting replacement {current.kind} node at position {len(history) - 1}")
            else:
                try:
                    current = next(walker)
                except StopIteration:
                    break
                history.append(current)

            result.visited += 1
            context.current_node = current
            if self._dispatch(current, context, selectors) is FilterSignal.HALT:
                result.halted = True
                logger.debug(f"Filter halted at {current.kind} node, position {len(history) - 1}")
                break

        document.meta = context.metadata.to_meta()
        logger.debug(f"Filter finished after {result.visited} visit(s)")
        return result

    def _dispatch(self, node: Node, context: FilterContext, selectors: SelectorCache) -> FilterSignal:
        for rule in self._rules:
            if not selectors.get(rule.selector).matches(node, context.history):
                continue

            try:
                signal = rule.action(node, context)
            except PanfilterError:
                raise
            except Exception as e:
                logger.error(f"Action for '{rule.selector}' failed on {node.kind} node: {e}", exc_info=True)
                raise FilterError(
                    f"Action for selector {rule.selector!r} failed on {node.kind} node: {e}",
                    selector=rule.selector,
                    original_error=e,
                ) from e

            if signal is FilterSignal.HALT or context.stop_requested:
                return FilterSignal.HALT
            if signal is not None and signal is not FilterSignal.CONTINUE:
                logger.warning(f"Ignoring unexpected return value {signal!r} from action for '{rule.selector}'")

        return FilterSignal.CONTINUE

    def filter_text(self, text: str | bytes, target_format: str = "") -> str:
        """Decode, filter and re-encode a whole JSON document."""
        document = decode_document(text)
        self.apply(document, target_format)
        return self._encode(document)

    def run(self, input: IO[str], output: IO[str], target_format: str = "") -> FilterResult:
        """Filter the document read from ``input`` and write it to ``output``.

        The output is written once, after the run completed or halted;
        nothing is written when an error is raised.
        """
        document = decode_document(input.read())
        result = self.apply(document, target_format)
        text = self._encode(document)
        output.write(text)
        output.flush()
        return result

    def main(self, argv: Optional[Sequence[str]] = None) -> int:
        """Entry point for filter scripts; see :func:`panfilter.cli.run_filter_main`."""
        from panfilter.cli import run_filter_main

        return run_filter_main(self, argv)

    def _encode(self, document: Document) -> str:
        return encode_document(
            document,
            schema=self.options.schema,
            indent=self.options.json_indent,
            ensure_ascii=self.options.ensure_ascii,
        )


__all__ = [
    "FilterAction",
    "FilterContext",
    "FilterResult",
    "FilterRuntime",
    "FilterSignal",
    "Rule",
]
