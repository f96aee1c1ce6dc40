"""Tests of the primary flux model."""

import math

import numpy as np
import pytest
from scipy import integrate

from muon_mc.physics.flux import (
    cos_theta_star, flux_gaisser, flux_gccly, integrated_flux)


def _reference_gccly(cos_theta, kinetic):
    p = (0.102573, -0.068287, 0.958633, 0.0407253, 0.817285)
    cs2 = (cos_theta * cos_theta + p[0] * p[0] + p[1] * math.pow(cos_theta, p[2]) +
           p[3] * math.pow(cos_theta, p[4])) / (1.0 + p[0] * p[0] + p[1] + p[3])
    cs = math.sqrt(cs2) if cs2 > 0.0 else 0.0
    emu = kinetic + 0.10566
    ec = 1.1 * emu * cs
    gaisser = 1.4E+03 * math.pow(emu, -2.7) * (1.0 / (1.0 + ec / 115.0) +
                                                0.054 / (1.0 + ec / 850.0))
    return math.pow(1.0 + 3.64 / (emu * math.pow(cs, 1.29)), -2.7) * gaisser


def test_vertical_cos_theta_star():
    assert cos_theta_star(1.0) == 1.0


def test_cos_theta_star_horizontal():
    # Earth curvature keeps the effective angle above the horizon
    assert cos_theta_star(0.0) > 0.0
    assert cos_theta_star(0.0) == pytest.approx(
        math.sqrt(0.102573 ** 2 / (1.0 + 0.102573 ** 2 - 0.068287 + 0.0407253)))


@pytest.mark.parametrize("cos_theta", [-0.01, -0.5, -1.0])
def test_below_horizon(cos_theta):
    assert cos_theta_star(cos_theta) == 0.0
    assert flux_gccly(cos_theta, 10.0) == 0.0


@pytest.mark.parametrize("cos_theta", [1.0, 0.7, 0.3, 0.05])
@pytest.mark.parametrize("kinetic", [1.0, 10.0, 1e3])
def test_closed_form(cos_theta, kinetic):
    assert flux_gccly(cos_theta, kinetic) == pytest.approx(
        _reference_gccly(cos_theta, kinetic), rel=1e-13)


def test_gaisser_spectrum_falls():
    energies = np.logspace(0, 4, 20)
    values = [flux_gaisser(1.0, e) for e in energies]
    assert np.all(np.diff(values) < 0.0)


def test_vertical_flux_magnitude():
    # A few muons per GeV, m^2, s and sr around 10 GeV at sea level
    assert 0.1 < flux_gccly(1.0, 10.0) < 10.0


def test_integrated_flux_point():
    assert integrated_flux(0.5, 10.0, 10.0) == flux_gccly(0.5, 10.0)


def test_integrated_flux_trapezoid():
    k = np.logspace(0, 2, 4001)
    values = np.array([flux_gccly(0.8, ki) for ki in k])
    reference = integrate.trapezoid(values, k)
    assert integrated_flux(0.8, 1.0, 100.0) == pytest.approx(reference, rel=1e-4)
