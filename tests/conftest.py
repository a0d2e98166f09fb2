"""Pytest configuration and shared fixtures for the panfilter test suite.

This module registers markers and Hypothesis profiles and provides a sample
pandoc JSON document in both wire layouts.
"""

import copy
import json
import os

import pytest
from hypothesis import Phase, Verbosity, settings
from utils import empty_attr, node, words

from panfilter import decode_document

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=30)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


SAMPLE_META = {
    "title": node("MetaInlines", words("Sample Document")),
    "draft": node("MetaBool", True),
    "keywords": node("MetaList", [node("MetaString", "a"), node("MetaString", "b")]),
    "opts": node("MetaMap", {"from": node("MetaString", "markdown")}),
}

# Visit order: Document, Header, Str, Space, Str(Introduction)...
SAMPLE_BLOCKS = [
    node("Header", [1, ["intro", [], []], words("An Introduction")]),
    node("Para", words("See the") + [node("Space"), node("Image", [empty_attr(), words("a cat"), ["cat.png", ""]])]),
    node(
        "BulletList",
        [
            [node("Plain", words("first item"))],
            [node("Para", [node("Emph", words("second"))])],
        ],
    ),
    node("Div", [["box", ["note"], [["data-level", "2"]]], [node("Header", [2, empty_attr(), words("Inside")])]]),
    node("CodeBlock", [["", ["python"], []], "print('hi')"]),
    node("HorizontalRule"),
]


@pytest.fixture
def sample_data():
    """Provide the parsed JSON of a v2 sample document."""
    return {
        "pandoc-api-version": [1, 17, 5, 4],
        "meta": copy.deepcopy(SAMPLE_META),
        "blocks": copy.deepcopy(SAMPLE_BLOCKS),
    }


@pytest.fixture
def sample_json(sample_data):
    """Provide the sample document as v2 JSON text."""
    return json.dumps(sample_data)


@pytest.fixture
def sample_v1_json(sample_data):
    """Provide the sample document in the v1 layout."""
    return json.dumps([{"unMeta": sample_data["meta"]}, sample_data["blocks"]])


@pytest.fixture
def sample_document(sample_json):
    """Provide the decoded sample document."""
    return decode_document(sample_json)
