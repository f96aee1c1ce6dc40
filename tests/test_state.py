"""Tests of the muon state."""

import numpy as np
import pytest

from muon_mc.core.state import STATE_DTYPE, ParticleState


def test_direction_normalised():
    state = ParticleState(direction=(0.0, 3.0, -4.0))
    np.testing.assert_allclose(state.direction, [0.0, 0.6, -0.8])
    assert np.linalg.norm(state.direction) == pytest.approx(1.0)


def test_invalid_state():
    with pytest.raises(ValueError):
        ParticleState(direction=(0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        ParticleState(kinetic=-1.0)


def test_structured_array():
    state = ParticleState(charge=1.0, kinetic=2.0, weight=0.5,
                          position=(1.0, 2.0, 3.0), direction=(0.0, 0.0, -1.0),
                          distance=7.0)
    record = state.to_structured_array()
    assert record.dtype == STATE_DTYPE
    assert record.shape == (1,)
    assert record['kinetic'][0] == 2.0
    assert record['weight'][0] == 0.5
    np.testing.assert_array_equal(record['position'][0], [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(record['direction'][0], [0.0, 0.0, -1.0])


def test_repr():
    text = repr(ParticleState(charge=-1.0, kinetic=10.0))
    assert text.startswith("ParticleState(charge=-1")
    assert "kinetic=10 GeV" in text
