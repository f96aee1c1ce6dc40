"""Shared fixtures for the muon_mc test suite."""

import numpy as np
import pytest

from muon_mc.core.config import RunConfig
from muon_mc.core.geometry import LayeredGeometry
from muon_mc.core.state import ParticleState
from muon_mc.physics.materials import MaterialTable
from muon_mc.transport.context import TransportContext


@pytest.fixture
def geometry():
    """Geometry with 100 m of rock below 900 m of air."""
    return LayeredGeometry(rock_thickness=100.0)


@pytest.fixture
def materials():
    return MaterialTable()


@pytest.fixture
def make_state():
    """Factory for muon states at a given altitude and vertical cosine."""
    def factory(z=0.0, uz=-1.0, kinetic=10.0, weight=1.0):
        ux = np.sqrt(max(0.0, 1.0 - uz * uz))
        return ParticleState(charge=-1.0, kinetic=kinetic, weight=weight,
                             position=(0.0, 0.0, z), direction=(ux, 0.0, uz))
    return factory


@pytest.fixture
def backward_context(geometry):
    return TransportContext.create(geometry, seed=12345, forward=False)


@pytest.fixture
def point_config():
    """Vertical point estimate at 10 GeV without rock."""
    return RunConfig(rock_thickness=0.0, elevation=90.0, kinetic_min=10.0,
                     n_events=50, seed=3)
