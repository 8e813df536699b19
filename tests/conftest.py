"""Shared fixtures for the term_console test suite."""

import pytest
from term_console import Console, MemorySurface, QueueKeySource


@pytest.fixture
def surface():
    """A 20x10 in-memory surface."""
    return MemorySurface(width=20, height=10)


@pytest.fixture
def keys():
    return QueueKeySource()


@pytest.fixture
def console(surface, keys):
    """A Console initialized against the surface and key source fixtures."""
    console = Console()
    assert console.initialize(surface, keys)
    yield console
    console.shutdown()


def row_text(window, row):
    """Read one row of a window back from its own buffer."""
    return ''.join(window.get_char(row, col) for col in range(window.rect.w))
