#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/panfilter/metadata.py
"""Path-addressed access to document metadata.

:class:`MetadataStore` wraps the document's root :class:`MetaMap` and
addresses values by dot-separated paths: ``"author.name"`` is the ``name``
entry of the map stored under ``author``. The empty path ``""`` is the root
map itself.

Values passed to :meth:`MetadataStore.replace` and :meth:`MetadataStore.set`
may be metadata values, plain Python values, or text. Text is read as a
YAML metadata block, so ``store.set("draft", "true")`` stores a MetaBool and
``store.set("author", "name: Ada")`` stores a MetaMap.

Missing intermediate maps are never created: mutating ``"a.b.c"`` when
``a.b`` does not exist raises :class:`PathNotFoundError`. The final segment
may be absent and is then added.

Examples
--------
    >>> store = MetadataStore()
    >>> store.merge_from_text("title: Hi\\nopts:\\n  from: markdown\\n")
    >>> store.set("opts", {"toc": True})
    >>> store.get("opts").to_python()
    {'from': 'markdown', 'toc': True}

"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from panfilter.ast.meta import MetaMap, MetaValue, meta_from_python, meta_from_yaml
from panfilter.constants import METADATA_PATH_SEPARATOR
from panfilter.exceptions import MalformedInputError, PathNotFoundError

logger = logging.getLogger(__name__)


def _split_path(path: str) -> list[str]:
    if path == "":
        return []
    return path.split(METADATA_PATH_SEPARATOR)


def _coerce(value: Any) -> MetaValue:
    if isinstance(value, MetaValue):
        return value
    if isinstance(value, str):
        return meta_from_yaml(value)
    return meta_from_python(value)


class MetadataStore:
    """Mutable view over a document's metadata map.

    Parameters
    ----------
    meta : MetaMap, optional
        The map to operate on; edits are made to it in place. A new empty
        map is used when omitted.

    """

    def __init__(self, meta: Optional[MetaMap] = None):
        self._root = meta if meta is not None else MetaMap()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(self, path: str) -> Optional[MetaValue]:
        current: MetaValue = self._root
        for segment in _split_path(path):
            if not isinstance(current, MetaMap) or segment not in current.entries:
                return None
            current = current.entries[segment]
        return current

    def _resolve_parent(self, path: str) -> tuple[MetaMap, str]:
        segments = _split_path(path)
        current: MetaValue = self._root
        for depth, segment in enumerate(segments[:-1]):
            if not isinstance(current, MetaMap) or segment not in current.entries:
                missing = METADATA_PATH_SEPARATOR.join(segments[: depth + 1])
                raise PathNotFoundError(f"Metadata path {missing!r} does not exist", path)
            current = current.entries[segment]
        if not isinstance(current, MetaMap):
            parent = METADATA_PATH_SEPARATOR.join(segments[:-1])
            raise PathNotFoundError(f"Metadata value at {parent!r} is not a map", path)
        return current, segments[-1]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, path: str) -> Optional[MetaValue]:
        """Return the value at ``path``, or None if it does not exist."""
        return self._resolve(path)

    def has(self, path: str) -> bool:
        return self._resolve(path) is not None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace(self, path: str, value: Any) -> None:
        """Store ``value`` at ``path``, overwriting whatever is there.

        Raises
        ------
        PathNotFoundError
            If an intermediate segment is missing or not a map
        TypeError
            If the root is replaced by something other than a map

        """
        new_value = _coerce(value)
        if path == "":
            if not isinstance(new_value, MetaMap):
                raise TypeError(f"The metadata root must be a map, got {new_value.tag}")
            self._root.entries = dict(new_value.entries)
            return

        parent, key = self._resolve_parent(path)
        parent.entries[key] = new_value
        logger.debug(f"Replaced metadata {path!r}")

    def set(self, path: str, value: Any) -> None:
        """Store ``value`` at ``path``, merging maps one level deep.

        When both the current value and ``value`` are maps, the keys of
        ``value`` are added to the current map, overwriting equal keys.
        Nested maps are not merged. Otherwise this behaves like
        :meth:`replace`.

        Raises
        ------
        PathNotFoundError
            If an intermediate segment is missing or not a map

        """
        new_value = _coerce(value)
        existing = self._resolve(path)
        if isinstance(existing, MetaMap) and isinstance(new_value, MetaMap):
            existing.entries.update(new_value.entries)
            logger.debug(f"Merged {len(new_value.entries)} key(s) into metadata {path!r}")
            return
        self.replace(path, new_value)

    def delete(self, path: str) -> Optional[MetaValue]:
        """Remove the value at ``path`` and return it; None if absent."""
        if path == "" or not self.has(path):
            return None
        parent, key = self._resolve_parent(path)
        return parent.entries.pop(key)

    def merge_from_text(self, text: str) -> None:
        """Add the top-level keys of a YAML metadata block, overwriting.

        Raises
        ------
        MalformedInputError
            If the text is not YAML or its top level is not a map

        """
        parsed = meta_from_yaml(text)
        if not isinstance(parsed, MetaMap):
            raise MalformedInputError(f"Metadata block must be a map, got {parsed.tag}")
        self._root.entries.update(parsed.entries)
        logger.debug(f"Merged {len(parsed.entries)} metadata key(s) from text")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_meta(self) -> MetaMap:
        """Return the root map holding every edit made through this store."""
        return self._root

    def to_python(self) -> dict[str, Any]:
        return self._root.to_python()

    # ------------------------------------------------------------------
    # Mapping protocol over top-level keys
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> MetaValue:
        value = self._resolve(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self.replace(key, value)

    def __delitem__(self, key: str) -> None:
        if self.delete(key) is None:
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._root.entries)

    def __len__(self) -> int:
        return len(self._root.entries)

    def __repr__(self) -> str:
        return f"MetadataStore({self._root.entries!r})"
