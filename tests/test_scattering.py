"""Tests of multiple scattering and magnetic deflection."""

import numpy as np
import pytest

from muon_mc.physics.flux import MUON_MASS
from muon_mc.physics.scattering import (
    highland_angle, magnetic_deflection, rotate_direction, scatter)


def test_highland_one_radiation_length():
    energy = 10.0 + MUON_MASS
    beta_p = (energy**2 - MUON_MASS**2) / energy
    assert highland_angle(10.0, -1.0, 265.4, 265.4) == pytest.approx(13.6e-3 / beta_p)


def test_highland_scaling():
    assert highland_angle(10.0, -1.0, 0.0, 265.4) == 0.0
    # Higher energies scatter less
    assert highland_angle(100.0, -1.0, 100.0, 265.4) < highland_angle(10.0, -1.0, 100.0, 265.4)


@pytest.mark.parametrize("direction", [
    (0.0, 0.0, -1.0),
    (0.6, 0.0, 0.8),
    (0.0, 1.0, 0.0),
])
def test_rotate_direction(direction):
    u = np.array(direction)
    theta = 0.1
    for phi in (0.0, 1.0, 4.0):
        v = rotate_direction(u, theta, phi)
        assert np.linalg.norm(v) == pytest.approx(1.0)
        assert np.dot(u, v) == pytest.approx(np.cos(theta))


def test_scatter():
    u = np.array([0.0, 0.0, -1.0])
    assert scatter(u, 0.0, np.random.default_rng(0).random) is u

    first = scatter(u, 1e-2, np.random.default_rng(1).random)
    second = scatter(u, 1e-2, np.random.default_rng(1).random)
    np.testing.assert_array_equal(first, second)
    assert first[2] > -1.0


def test_magnetic_deflection():
    magnet = np.array([0.0, 2e-5, -4e-5])
    u = np.array([0.6, 0.0, -0.8])

    forward = magnetic_deflection(u, magnet, -1.0, 1.0, 100.0, False)
    backward = magnetic_deflection(u, magnet, -1.0, 1.0, 100.0, True)
    assert not np.allclose(forward, u)
    assert np.linalg.norm(forward) == pytest.approx(1.0)

    # Backward bending undoes the forward one at first order
    mean = forward + backward
    np.testing.assert_allclose(mean / np.linalg.norm(mean), u, atol=1e-12)

    # No force along the field
    along = magnet / np.linalg.norm(magnet)
    np.testing.assert_allclose(
        magnetic_deflection(along, magnet, -1.0, 1.0, 100.0, False), along, atol=1e-15)
