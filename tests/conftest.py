"""Shared fixtures for pypejoint tests."""

import pytest

from pypejoint.catalog import load_default_catalog
from pypejoint.context import StructureContext
from pypejoint.structure_graph import StructureGraph


@pytest.fixture(scope="session")
def catalog():
    return load_default_catalog()


@pytest.fixture
def graph():
    return StructureGraph()


@pytest.fixture
def ctx(catalog):
    return StructureContext(catalog)
