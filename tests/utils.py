"""Test utilities for the panfilter test suite.

Builders for the pandoc JSON of nodes and documents, and for small trees of
in-memory nodes.
"""

import json

from panfilter import make_node


def node(kind, contents=None):
    """Build the JSON object of a node; ``contents`` None omits ``c``."""
    if contents is None:
        return {"t": kind}
    return {"t": kind, "c": contents}


def words(value):
    """Build the JSON inlines of a sentence: Str nodes separated by Space."""
    inlines = []
    for index, word in enumerate(value.split(" ")):
        if index:
            inlines.append(node("Space"))
        inlines.append(node("Str", word))
    return inlines


def empty_attr():
    return ["", [], []]


def document_json(blocks, meta=None, api_version=(1, 17, 5, 4)):
    """Build the v2 JSON text of a document."""
    return json.dumps({"pandoc-api-version": list(api_version), "meta": meta or {}, "blocks": blocks})


def para(*texts):
    """Build an in-memory Para holding one Str per argument."""
    return make_node("Para", [make_node("Str", text=value) for value in texts])


def header(level, value):
    return make_node("Header", [make_node("Str", text=value)], level=level)
