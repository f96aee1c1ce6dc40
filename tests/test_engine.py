"""Tests of the reference transport engine."""

import numpy as np
import pytest

from muon_mc.core.geometry import LayeredGeometry, LocalProperties, UniformLayer
from muon_mc.errors import EngineError
from muon_mc.transport.context import Event, Scheme, TransportContext
from muon_mc.transport.engine import TransportEngine


def _context(geometry, **kwargs):
    kwargs.setdefault('forward', False)
    return TransportContext.create(geometry, seed=1, **kwargs)


def test_exit_outside(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=-5.0)
    event, media = engine.transport(_context(geometry), state)
    assert event == Event.MEDIUM
    assert media == (None, None)


def test_backward_leg_to_top(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=0.0, uz=-1.0, kinetic=10.0)
    event, media = engine.transport(_context(geometry), state)

    assert event == Event.MEDIUM
    assert media == (geometry.rock, None)
    assert geometry.is_top_exit(state)
    assert state.kinetic > 10.0
    assert state.distance == pytest.approx(geometry.primary_altitude, abs=1e-3)


def test_stop_on_medium_change(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=0.0, uz=-1.0, kinetic=10.0)
    context = _context(geometry, event=Event.MEDIUM)

    event, media = engine.transport(context, state)
    assert event == Event.MEDIUM
    assert media == (geometry.rock, geometry.air)
    assert state.position[2] == pytest.approx(geometry.rock_thickness, abs=1e-5)

    # Rock energy loss, exact in the continuous approximation
    a, b = engine.materials.coefficients(engine.materials.index('StandardRock'))
    e0 = a / b
    expected = (10.0 + e0) * np.exp(b * 2.65e3 * state.distance) - e0
    assert state.kinetic == pytest.approx(expected, rel=1e-12)
    assert state.weight == pytest.approx((a + b * expected) / (a + b * 10.0), rel=1e-12)


def test_kinetic_limit(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=0.0, uz=-1.0, kinetic=10.0)
    context = _context(geometry, event=Event.LIMIT_KINETIC, kinetic_limit=20.0)

    event, media = engine.transport(context, state)
    assert event == Event.LIMIT_KINETIC
    assert media == (geometry.rock, geometry.rock)
    assert state.kinetic == 20.0
    assert 0.0 < state.position[2] < geometry.rock_thickness


def test_limit_already_reached(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=10.0, kinetic=50.0)
    context = _context(geometry, event=Event.LIMIT_KINETIC, kinetic_limit=20.0)
    event, _ = engine.transport(context, state)
    assert event == Event.LIMIT_KINETIC
    assert state.distance == 0.0


def test_forward_energy_loss(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=geometry.primary_altitude - 1.0, uz=-1.0, kinetic=100.0)
    context = _context(geometry, forward=True, event=Event.MEDIUM)

    event, media = engine.transport(context, state)
    assert event == Event.MEDIUM
    assert media == (geometry.air, geometry.rock)
    assert state.kinetic < 100.0


def test_forward_range_out(make_state):
    geometry = LayeredGeometry(rock_thickness=1e3)
    engine = TransportEngine()
    state = make_state(z=999.0, uz=-1.0, kinetic=0.5)
    event, _ = engine.transport(_context(geometry, forward=True), state)
    assert event == Event.LIMIT_KINETIC
    assert state.kinetic == 0.0


def test_hybrid_keeps_direction(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=0.0, uz=-0.6, kinetic=500.0)
    direction = state.direction.copy()
    context = _context(geometry, scheme=Scheme.HYBRID, longitudinal=True)
    engine.transport(context, state)
    np.testing.assert_array_equal(state.direction, direction)


def test_detailed_scatters(geometry, make_state):
    engine = TransportEngine()
    state = make_state(z=0.0, uz=-1.0, kinetic=5.0)
    context = _context(geometry, scheme=Scheme.DETAILED, longitudinal=False,
                       event=Event.MEDIUM)
    engine.transport(context, state)
    assert state.direction[2] > -1.0
    assert np.linalg.norm(state.direction) == pytest.approx(1.0)


def test_step_caps(geometry, make_state):
    """Every step honours the geometry and local property caps."""
    steps = []

    class Spy:
        def __init__(self, geometry):
            self.geometry = geometry
            self.last = None

        def __call__(self, state):
            if self.last is not None:
                z0, cap = self.last
                steps.append((abs(state.position[2] - z0), cap))
            layer, step = self.geometry.classify(state)
            if layer is not None:
                _, local = layer.provide_local_properties(state)
                if local > 0.0:
                    step = min(step, local)
            self.last = (state.position[2], step)
            return layer, step

    engine = TransportEngine()
    state = make_state(z=200.0, uz=-1.0, kinetic=1e3)
    context = _context(Spy(geometry), scheme=Scheme.HYBRID, longitudinal=True)
    engine.transport(context, state)

    assert len(steps) > 1
    for dz, cap in steps:
        assert dz <= cap + 1e-5


def test_reproducible(geometry, make_state):
    engine = TransportEngine()
    results = []
    for _ in range(2):
        state = make_state(z=0.0, uz=-0.8, kinetic=3.0)
        context = _context(geometry, scheme=Scheme.DETAILED, longitudinal=False)
        engine.transport(context, state)
        results.append((state.kinetic, tuple(state.position), tuple(state.direction)))
    assert results[0] == results[1]


def test_unknown_material(make_state):
    geometry = LayeredGeometry(rock_thickness=10.0,
                               rock=UniformLayer('rock', 'Granite'))
    with pytest.raises(EngineError):
        TransportEngine().transport(_context(geometry), make_state(z=1.0))


def test_invalid_density(make_state):
    class Vacuum(UniformLayer):
        def provide_local_properties(self, state):
            return LocalProperties(0.0), 0.0

    geometry = LayeredGeometry(rock_thickness=10.0,
                               rock=Vacuum('rock', 'StandardRock'))
    with pytest.raises(EngineError):
        TransportEngine().transport(_context(geometry), make_state(z=1.0))


def test_step_limit(geometry, make_state):
    engine = TransportEngine(max_steps=2)
    context = _context(geometry, scheme=Scheme.DETAILED, longitudinal=False)
    with pytest.raises(EngineError):
        engine.transport(context, make_state(z=0.0, uz=-1.0, kinetic=1.0))
