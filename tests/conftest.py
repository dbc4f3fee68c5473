"""Shared fixtures for genogram tests."""

import pytest

from genogram.config import EditorConfig
from genogram.editor import GenogramEditor
from genogram.models import PartnerEdge, Person
from genogram.store import GraphStore


@pytest.fixture
def config():
    return EditorConfig(snap_to_grid=False, history_limit=50)


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def editor(config):
    return GenogramEditor(config)


@pytest.fixture
def family(store):
    """Two partners with one child: ada + bo -> cy."""
    store.add_person(Person(id="ada", name="Ada Lovelace", gender="female", x=100, y=100))
    store.add_person(Person(id="bo", name="Bo Lovelace", gender="male", x=300, y=100))
    store.add_person(Person(id="cy", name="Cy", x=200, y=250))
    store.add_relationship(PartnerEdge(id="m1", person_a="ada", person_b="bo"))
    store.add_relationship({"id": "c1", "type": "child", "from": "m1", "to": "cy"})
    return store
