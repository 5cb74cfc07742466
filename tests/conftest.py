"""
hydrochain Test Configuration and Fixtures

Shared stores, managers and element factories.
"""

import pytest

from hydrochain.core import (
    Channel,
    Chute,
    ElementStore,
    RectangularSection,
    Transition,
)
from hydrochain.network import ConnectionManager


@pytest.fixture
def store():
    """Empty element store."""
    return ElementStore()


@pytest.fixture
def manager(store):
    """ConnectionManager over the empty store."""
    return ConnectionManager(store)


@pytest.fixture
def make_channel():
    """Factory for channels with sensible defaults."""
    def _make(element_id, length=50.0, slope=0.01, width=2.0, depth=1.5, **kwargs):
        return Channel(
            id=element_id,
            length=length,
            slope=slope,
            section=RectangularSection(width, depth),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_chute():
    """Factory for chutes with sensible defaults."""
    def _make(element_id, inlet_length=1.0, inlet_slope=0.0, length=20.0, drop=10.0, **kwargs):
        return Chute(
            id=element_id,
            inlet_length=inlet_length,
            inlet_slope=inlet_slope,
            length=length,
            drop=drop,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_transition():
    """Factory for transitions with sensible defaults."""
    def _make(element_id, length=5.0, **kwargs):
        return Transition(id=element_id, length=length, **kwargs)
    return _make


@pytest.fixture
def channel_chute_chain(manager, make_channel, make_chute):
    """Channel c1 (50 m @ 1%) connected upstream of chute r1 (1 + 20 m, 10 m drop)."""
    manager.add_element(make_channel("c1"))
    manager.add_element(make_chute("r1"))
    manager.connect("c1", "r1")
    return manager
