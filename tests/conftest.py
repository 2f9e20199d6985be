"""Shared fixtures for the extraction tests."""
from __future__ import annotations

import pytest

from json_type_extractor.formats import DEFAULT_FORMATS
from json_type_extractor.io_utils import parse_json


@pytest.fixture
def people_json():
    return '[{"name": "john", "age": 32}, {"name": "joe", "age": 23}]'


@pytest.fixture
def people(people_json):
    return parse_json(people_json)


@pytest.fixture
def formats():
    return DEFAULT_FORMATS


@pytest.fixture
def deep_chain():
    """Factory for a {"next": {"next": ...}} object nested ``depth`` levels."""
    from json_type_extractor.nodes import JObject

    def build(depth):
        node = JObject()
        for _ in range(depth):
            node = JObject([("next", node)])
        return node

    return build


@pytest.fixture
def json_file(tmp_path):
    path = tmp_path / "doc.json"
    path.write_text('{"user": {"name": "ann", "tags": ["a", "b"]}, "count": 2}', encoding="utf-8")
    return path
